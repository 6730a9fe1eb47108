"""
Main Orchestrator for Finance Tracker

This module ties together all the components and defines the flows the
UI drives:
1. Auth (login → session → redirect, registration, logout)
2. Records (load sorted lists, save from a form, delete) per entity
3. Aggregations (dashboard, reports)

DESIGN DECISION: The flows are the UI boundary. Services raise; flows
turn every failure into a Notification the page can show, and audit
every user action. Nothing that goes wrong here stops the app.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar
from urllib.parse import urlencode
from uuid import UUID

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from finance_tracker.audit import AuditLogger, configure_logging, create_correlation_id
from finance_tracker.config import Settings, get_settings
from finance_tracker.guard import DEFAULT_PATH, LOGIN_PATH, AccessDecision, navigate
from finance_tracker.models.records import (
    Budget,
    BudgetCategory,
    Expense,
    Goal,
    Income,
    Record,
    RecurringFrequency,
    User,
)
from finance_tracker.models.reports import DashboardSummary, FinancialReport
from finance_tracker.models.validation import ValidationResult
from finance_tracker.queries import AggregationError, DashboardAggregator, ReportAggregator
from finance_tracker.services import (
    AuthService,
    BudgetService,
    ExpenseService,
    FileLocalStorage,
    GoalService,
    IncomeService,
    LocalStorage,
    RecordService,
    SessionState,
)
from finance_tracker.store import InMemoryAuditStorage, InMemoryDatabase, NotFoundError
from finance_tracker.store.interface import DuplicateEmailError, TransportError
from finance_tracker.transport import ApiClient, InMemoryRouter
from finance_tracker.validation import FormValidator, parse_amount, parse_date


logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Record)
Form = dict[str, Any]


# =============================================================================
# OUTCOMES
# =============================================================================

class NotificationLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Notification(BaseModel):
    """A short message for the user, shown for duration_ms."""

    message: str
    level: NotificationLevel = NotificationLevel.INFO
    duration_ms: int = 3000


class FlowOutcome(BaseModel):
    """What a flow step produced, for the page to render."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool
    notification: Optional[Notification] = None
    redirect_to: Optional[str] = None
    validation: Optional[ValidationResult] = None
    record: Optional[Any] = None
    correlation_id: Optional[UUID] = None

    def notifications(self) -> list[Notification]:
        """The main notification, then one warning per validation warning."""
        shown = [self.notification] if self.notification else []
        if self.validation is not None:
            duration_ms = self.notification.duration_ms if self.notification else 3000
            shown.extend(
                Notification(message=message, level=NotificationLevel.WARNING, duration_ms=duration_ms)
                for message in self.validation.warnings
            )
        return shown


class _Notifier:
    def __init__(self, duration_ms: int):
        self._duration_ms = duration_ms

    def success(self, message: str) -> Notification:
        return Notification(
            message=message,
            level=NotificationLevel.SUCCESS,
            duration_ms=self._duration_ms,
        )

    def error(self, message: str) -> Notification:
        return Notification(
            message=message,
            level=NotificationLevel.ERROR,
            duration_ms=self._duration_ms,
        )


# =============================================================================
# AUTH
# =============================================================================

class AuthFlow:
    """
    Orchestrates sign-in, registration, logout and navigation.

    Keeps the current user in step with the session through a
    subscription, released by close().
    """

    def __init__(
        self,
        auth_service: AuthService,
        validator: FormValidator,
        audit_logger: AuditLogger,
        notification_duration_ms: int = 3000,
    ):
        self._auth = auth_service
        self._validator = validator
        self._audit = audit_logger
        self._notify = _Notifier(notification_duration_ms)
        self.current_user: Optional[User] = None
        self._unsubscribe: Optional[Callable[[], None]] = auth_service.session.subscribe(
            self._on_session_change
        )

    def _on_session_change(self, user: Optional[User]) -> None:
        self.current_user = user
        logger.debug("session_changed", user_id=user.id if user else None)

    async def login(self, form: Form, return_url: Optional[str] = None) -> FlowOutcome:
        """
        Sign in from the login form.

        Redirects to return_url when one was carried over from the gate,
        otherwise to the dashboard.
        """
        validation = self._validator.validate_login(form)
        if not validation.is_valid:
            return FlowOutcome(success=False, validation=validation)

        user = await self._auth.login(form["email"], form["password"])
        if user is None:
            return FlowOutcome(
                success=False,
                validation=validation,
                notification=self._notify.error("Invalid email or password"),
            )

        return FlowOutcome(
            success=True,
            record=user,
            validation=validation,
            redirect_to=return_url or DEFAULT_PATH,
            notification=self._notify.success("Login successful!"),
        )

    async def register(self, form: Form) -> FlowOutcome:
        """Create an account, then send the user to login with the email prefilled."""
        validation = self._validator.validate_registration(form)
        if not validation.is_valid:
            return FlowOutcome(success=False, validation=validation)

        email = form["email"].strip()
        try:
            user = await self._auth.register(
                email=email,
                password=form["password"],
                first_name=form["first_name"].strip(),
                last_name=form["last_name"].strip(),
            )
        except DuplicateEmailError as e:
            return FlowOutcome(
                success=False,
                validation=validation,
                notification=self._notify.error(str(e)),
            )
        except Exception as e:
            logger.exception("registration_failed", error=str(e))
            return FlowOutcome(
                success=False,
                validation=validation,
                notification=self._notify.error("Registration failed. Please try again."),
            )

        return FlowOutcome(
            success=True,
            record=user,
            validation=validation,
            redirect_to=f"{LOGIN_PATH}?{urlencode({'email': email})}",
            notification=self._notify.success(
                "Registration successful! Please log in to continue."
            ),
        )

    async def logout(self) -> FlowOutcome:
        await self._auth.logout()
        return FlowOutcome(success=True, redirect_to=LOGIN_PATH)

    async def navigate(self, path: str) -> AccessDecision:
        """Resolve a path and apply the gate, auditing refusals."""
        decision = navigate(self.current_user, path)
        if not decision.allowed:
            await self._audit.log_access_denied(path, decision.redirect_to)
        return decision

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None


# =============================================================================
# RECORDS
# =============================================================================

class RecordFlow(ABC, Generic[ModelT]):
    """
    Load, save and delete for one entity.

    Subclasses say how to sort, validate and build a record from a form.
    """

    noun: str = ""
    plural: str = ""
    created_verb: str = "added"
    create_verb: str = "adding"

    def __init__(
        self,
        service: RecordService[ModelT],
        validator: FormValidator,
        audit_logger: AuditLogger,
        notification_duration_ms: int = 3000,
    ):
        self._service = service
        self._validator = validator
        self._audit = audit_logger
        self._notify = _Notifier(notification_duration_ms)

    # Subclass hooks

    def sort(self, records: list[ModelT]) -> list[ModelT]:
        return records

    @abstractmethod
    async def validate(
        self,
        user_id: int,
        form: Form,
        editing_id: Optional[int],
    ) -> ValidationResult:
        """Both validation stages for this entity's form."""

    @abstractmethod
    def build(self, user_id: int, form: Form) -> ModelT:
        """A new record from a valid form."""

    # Flow steps

    async def load(self, user_id: int) -> tuple[list[ModelT], Optional[Notification]]:
        """The user's records, sorted for display. Failure gives an empty list."""
        try:
            records = await self._service.list_for_user(user_id)
        except Exception as e:
            logger.exception("load_failed", collection=self._service.collection, error=str(e))
            return [], self._notify.error(f"Error loading {self.plural}")
        return self.sort(records), None

    async def save(
        self,
        user_id: int,
        form: Form,
        editing_id: Optional[int] = None,
    ) -> FlowOutcome:
        """Create, or update when editing_id is given."""
        correlation_id = create_correlation_id()
        collection = self._service.collection

        validation = await self.validate(user_id, form, editing_id)
        if not validation.is_valid:
            first_error = validation.first_error()
            return FlowOutcome(
                success=False,
                validation=validation,
                notification=self._notify.error(first_error) if first_error else None,
                correlation_id=correlation_id,
            )

        try:
            record = self.build(user_id, form)
            if editing_id is None:
                saved = await self._service.create(record)
                await self._audit.log_record_created(
                    collection, saved.id, user_id, correlation_id
                )
                message = f"{self.noun} {self.created_verb} successfully"
            else:
                changes = record.model_dump(exclude={"id", "created_at"})
                saved = await self._service.update(editing_id, changes)
                await self._audit.log_record_updated(
                    collection, editing_id, list(changes), user_id, correlation_id
                )
                message = f"{self.noun} updated successfully"
        except NotFoundError:
            await self._audit.log_record_not_found(collection, editing_id, correlation_id)
            return self._failed(editing_id, validation, correlation_id)
        except TransportError as e:
            await self._audit.log_transport_error(f"save {collection}", str(e), correlation_id)
            return self._failed(editing_id, validation, correlation_id)
        except ValidationError as e:
            logger.warning("record_build_failed", collection=collection, error=str(e))
            return self._failed(editing_id, validation, correlation_id)
        except Exception as e:
            logger.exception("save_failed", collection=collection, error=str(e))
            return self._failed(editing_id, validation, correlation_id)

        return FlowOutcome(
            success=True,
            record=saved,
            validation=validation,
            notification=self._notify.success(message),
            correlation_id=correlation_id,
        )

    def _failed(
        self,
        editing_id: Optional[int],
        validation: ValidationResult,
        correlation_id: UUID,
    ) -> FlowOutcome:
        action = self.create_verb if editing_id is None else "updating"
        return FlowOutcome(
            success=False,
            validation=validation,
            notification=self._notify.error(f"Error {action} {self.noun.lower()}"),
            correlation_id=correlation_id,
        )

    async def delete(self, record_id: int, user_id: Optional[int] = None) -> FlowOutcome:
        correlation_id = create_correlation_id()
        collection = self._service.collection
        try:
            await self._service.delete(record_id)
        except NotFoundError:
            await self._audit.log_record_not_found(collection, record_id, correlation_id)
            return self._delete_failed(correlation_id)
        except TransportError as e:
            await self._audit.log_transport_error(f"delete {collection}", str(e), correlation_id)
            return self._delete_failed(correlation_id)
        except Exception as e:
            logger.exception("delete_failed", collection=collection, error=str(e))
            return self._delete_failed(correlation_id)

        await self._audit.log_record_deleted(collection, record_id, user_id, correlation_id)
        return FlowOutcome(
            success=True,
            notification=self._notify.success(f"{self.noun} deleted successfully"),
            correlation_id=correlation_id,
        )

    def _delete_failed(self, correlation_id: UUID) -> FlowOutcome:
        return FlowOutcome(
            success=False,
            notification=self._notify.error(f"Error deleting {self.noun.lower()}"),
            correlation_id=correlation_id,
        )


class ExpenseFlow(RecordFlow[Expense]):
    noun = "Expense"
    plural = "expenses"

    def sort(self, records: list[Expense]) -> list[Expense]:
        return sorted(records, key=lambda e: e.date, reverse=True)

    async def validate(self, user_id, form, editing_id) -> ValidationResult:
        return self._validator.validate_expense(form)

    def build(self, user_id: int, form: Form) -> Expense:
        is_recurring = bool(form.get("is_recurring"))
        frequency = form.get("recurring_frequency") or RecurringFrequency.MONTHLY
        return Expense(
            user_id=user_id,
            amount=parse_amount(form["amount"]),
            category=form["category"],
            description=form["description"],
            date=parse_date(form["date"]),
            is_recurring=is_recurring,
            recurring_frequency=frequency if is_recurring else None,
        )


class IncomeFlow(RecordFlow[Income]):
    noun = "Income"
    plural = "income"

    def sort(self, records: list[Income]) -> list[Income]:
        return sorted(records, key=lambda i: i.date, reverse=True)

    async def validate(self, user_id, form, editing_id) -> ValidationResult:
        return self._validator.validate_income(form)

    def build(self, user_id: int, form: Form) -> Income:
        description = (form.get("description") or "").strip()
        return Income(
            user_id=user_id,
            amount=parse_amount(form["amount"]),
            source=form["source"],
            description=description or None,
            date=parse_date(form["date"]),
        )


class BudgetFlow(RecordFlow[Budget]):
    noun = "Budget"
    plural = "budgets"
    created_verb = "created"
    create_verb = "creating"

    def sort(self, records: list[Budget]) -> list[Budget]:
        return sorted(records, key=lambda b: (b.year, b.month), reverse=True)

    async def validate(self, user_id, form, editing_id) -> ValidationResult:
        return await self._validator.validate_budget(form, user_id, editing_id)

    def build(self, user_id: int, form: Form) -> Budget:
        return Budget(
            user_id=user_id,
            month=form["month"],
            year=form["year"],
            total_income=parse_amount(form["total_income"]),
            categories=[
                BudgetCategory(
                    category=line["category"],
                    limit=parse_amount(line["limit"]),
                )
                for line in form.get("categories") or []
            ],
        )


class GoalFlow(RecordFlow[Goal]):
    noun = "Goal"
    plural = "goals"
    created_verb = "created"
    create_verb = "creating"

    def __init__(self, service: GoalService, *args, **kwargs):
        super().__init__(service, *args, **kwargs)
        self._goals = service

    def sort(self, records: list[Goal]) -> list[Goal]:
        return sorted(records, key=lambda g: g.target_date)

    async def validate(self, user_id, form, editing_id) -> ValidationResult:
        return self._validator.validate_goal(form)

    def build(self, user_id: int, form: Form) -> Goal:
        description = (form.get("description") or "").strip()
        current = parse_amount(form.get("current_amount"))
        return Goal(
            user_id=user_id,
            title=form["title"],
            description=description or None,
            target_amount=parse_amount(form["target_amount"]),
            current_amount=current if current is not None else Decimal("0"),
            target_date=parse_date(form["target_date"]),
        )

    async def contribute(
        self,
        goal_id: int,
        amount: Decimal,
        user_id: Optional[int] = None,
    ) -> FlowOutcome:
        """Add to (or, with a negative amount, take from) a goal."""
        correlation_id = create_correlation_id()
        try:
            goal = await self._goals.update_goal_progress(goal_id, amount)
        except NotFoundError:
            await self._audit.log_record_not_found("goals", goal_id, correlation_id)
            return self._contribute_failed(correlation_id)
        except TransportError as e:
            await self._audit.log_transport_error("contribute goals", str(e), correlation_id)
            return self._contribute_failed(correlation_id)
        except Exception as e:
            logger.exception("contribute_failed", goal_id=goal_id, error=str(e))
            return self._contribute_failed(correlation_id)
        await self._audit.log_record_updated(
            "goals", goal_id, ["current_amount"], user_id, correlation_id
        )
        return FlowOutcome(
            success=True,
            record=goal,
            notification=self._notify.success("Goal updated successfully"),
            correlation_id=correlation_id,
        )

    def _contribute_failed(self, correlation_id: UUID) -> FlowOutcome:
        return FlowOutcome(
            success=False,
            notification=self._notify.error("Error updating goal"),
            correlation_id=correlation_id,
        )


# =============================================================================
# AGGREGATIONS
# =============================================================================

class DashboardFlow:
    def __init__(
        self,
        aggregator: DashboardAggregator,
        audit_logger: AuditLogger,
        notification_duration_ms: int = 3000,
    ):
        self._aggregator = aggregator
        self._audit = audit_logger
        self._notify = _Notifier(notification_duration_ms)

    async def load(
        self,
        user_id: int,
        today: Optional[date] = None,
    ) -> tuple[Optional[DashboardSummary], Optional[Notification]]:
        """The dashboard, or None and an error when any source failed."""
        try:
            return await self._aggregator.build(user_id, today), None
        except AggregationError as e:
            await self._audit.log_aggregation_failed("dashboard", e.branch, str(e), user_id)
            return None, self._notify.error("Error loading dashboard data")


class ReportFlow:
    def __init__(
        self,
        aggregator: ReportAggregator,
        audit_logger: AuditLogger,
        notification_duration_ms: int = 3000,
    ):
        self._aggregator = aggregator
        self._audit = audit_logger
        self._notify = _Notifier(notification_duration_ms)

    async def generate(
        self,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> tuple[Optional[FinancialReport], Optional[Notification]]:
        try:
            return await self._aggregator.generate(user_id, start_date, end_date), None
        except AggregationError as e:
            await self._audit.log_aggregation_failed("reports", e.branch, str(e), user_id)
            return None, self._notify.error("Error generating report")


# =============================================================================
# WIRING
# =============================================================================

class AppComponents:
    """Everything the UI needs, wired together."""

    def __init__(
        self,
        settings: Settings,
        database: InMemoryDatabase,
        client: ApiClient,
        session: SessionState,
        audit_logger: AuditLogger,
    ):
        self.settings = settings
        self.database = database
        self.client = client
        self.session = session
        self.audit_logger = audit_logger

        self.expenses = ExpenseService(client)
        self.incomes = IncomeService(client)
        self.budgets = BudgetService(client)
        self.goals = GoalService(client)
        self.auth = AuthService(client, session, audit_logger)
        self.validator = FormValidator(self.budgets, settings.app)

        duration = settings.app.notification_duration_ms
        flow_args = (self.validator, audit_logger, duration)
        self.auth_flow = AuthFlow(self.auth, *flow_args)
        self.expense_flow = ExpenseFlow(self.expenses, *flow_args)
        self.income_flow = IncomeFlow(self.incomes, *flow_args)
        self.budget_flow = BudgetFlow(self.budgets, *flow_args)
        self.goal_flow = GoalFlow(self.goals, *flow_args)
        self.dashboard_flow = DashboardFlow(
            DashboardAggregator(
                self.expenses,
                self.incomes,
                self.budgets,
                self.goals,
                trailing_window=settings.app.trailing_months,
            ),
            audit_logger,
            duration,
        )
        self.report_flow = ReportFlow(
            ReportAggregator(self.expenses, self.incomes, self.budgets),
            audit_logger,
            duration,
        )

    def close(self) -> None:
        """Release session subscriptions."""
        self.auth_flow.close()


def create_app_components(
    settings: Optional[Settings] = None,
    database: Optional[InMemoryDatabase] = None,
    storage: Optional[LocalStorage] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Defaults to the cached environment settings
        database: Defaults to a new database, seeded per settings
        storage: Local storage for the session. Defaults to the
                 configured session file.
    """
    settings = settings or get_settings()
    configure_logging(settings.app.log_level)
    if database is None:
        database = InMemoryDatabase(seed=settings.store.seed_fixtures)
    if storage is None:
        storage = FileLocalStorage(settings.session.storage_file)

    router = InMemoryRouter(database, api_prefix=settings.store.api_prefix)
    client = ApiClient([router], api_prefix=settings.store.api_prefix)
    session = SessionState(storage, key=settings.session.storage_key)
    audit_logger = AuditLogger(InMemoryAuditStorage())

    logger.info(
        "app_components_created",
        environment=settings.app.app_environment,
        seeded=len(database.users) > 0,
        restored_session=session.is_authenticated,
    )
    return AppComponents(settings, database, client, session, audit_logger)
