"""
Data Models Package

This package contains all Pydantic models used in the Finance Tracker.
All data flowing through the system must conform to these schemas.
"""

from finance_tracker.models.records import (
    BUDGET_CATEGORIES,
    EXPENSE_CATEGORIES,
    MONTH_NAMES,
    Budget,
    BudgetCategory,
    Expense,
    Goal,
    Income,
    OwnedRecord,
    Record,
    RecurringFrequency,
    User,
)
from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from finance_tracker.models.transport import (
    ApiRequest,
    ApiResponse,
    HttpMethod,
)
from finance_tracker.models.validation import (
    ValidationIssue,
    ValidationResult,
)
from finance_tracker.models.reports import (
    NO_DATA_LABEL,
    CategoryReport,
    ChartData,
    ChartSeries,
    DashboardSummary,
    FinancialReport,
    variance_status,
)

__all__ = [
    # Records
    "BUDGET_CATEGORIES",
    "EXPENSE_CATEGORIES",
    "MONTH_NAMES",
    "Budget",
    "BudgetCategory",
    "Expense",
    "Goal",
    "Income",
    "OwnedRecord",
    "Record",
    "RecurringFrequency",
    "User",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Transport
    "ApiRequest",
    "ApiResponse",
    "HttpMethod",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    # Reports
    "NO_DATA_LABEL",
    "CategoryReport",
    "ChartData",
    "ChartSeries",
    "DashboardSummary",
    "FinancialReport",
    "variance_status",
]
