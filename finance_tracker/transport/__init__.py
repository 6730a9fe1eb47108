"""
Transport Package

The simulated REST surface: an async client with an interceptor chain,
and the in-memory router that answers it.
"""

from finance_tracker.transport.router import InMemoryRouter, NextHandler, Route
from finance_tracker.transport.client import ApiClient, Interceptor

__all__ = [
    "ApiClient",
    "InMemoryRouter",
    "Interceptor",
    "NextHandler",
    "Route",
]
