"""
Shared fixtures.

Every test gets its own database, client and session. Nothing is shared
between tests.
"""

import pytest

from finance_tracker.audit import AuditLogger
from finance_tracker.config import get_settings
from finance_tracker.orchestrator import create_app_components
from finance_tracker.services import (
    AuthService,
    BudgetService,
    ExpenseService,
    GoalService,
    IncomeService,
    InMemoryLocalStorage,
    SessionState,
)
from finance_tracker.store import InMemoryAuditStorage, InMemoryDatabase
from finance_tracker.transport import ApiClient, InMemoryRouter


@pytest.fixture
def empty_db():
    return InMemoryDatabase()


@pytest.fixture
def seeded_db():
    return InMemoryDatabase(seed=True)


@pytest.fixture
def client(seeded_db):
    return ApiClient([InMemoryRouter(seeded_db)])


@pytest.fixture
def empty_client(empty_db):
    return ApiClient([InMemoryRouter(empty_db)])


@pytest.fixture
def broken_client():
    """A client with nothing to answer it: every call is a transport failure."""
    return ApiClient([])


@pytest.fixture
def expense_service(client):
    return ExpenseService(client)


@pytest.fixture
def income_service(client):
    return IncomeService(client)


@pytest.fixture
def budget_service(client):
    return BudgetService(client)


@pytest.fixture
def goal_service(client):
    return GoalService(client)


@pytest.fixture
def local_storage():
    return InMemoryLocalStorage()


@pytest.fixture
def session(local_storage):
    return SessionState(local_storage)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def auth_service(client, session, audit_storage):
    return AuthService(client, session, AuditLogger(audit_storage))


@pytest.fixture
def app(seeded_db, local_storage):
    components = create_app_components(
        settings=get_settings(),
        database=seeded_db,
        storage=local_storage,
    )
    yield components
    components.close()
