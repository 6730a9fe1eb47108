"""
Finance Tracker - Source Package

A personal finance tracker: registration and login, expenses, income,
budgets and savings goals, plus a dashboard and budget variance reports.

DESIGN PRINCIPLES:
1. The backend is an in-process mock: one repository per collection
2. Every record crosses a textual transport, services restore typing
3. Invalid credentials are an outcome, not a fault
4. Failures surface as notifications, never crash the app
5. Storage is injected, never ambient
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
