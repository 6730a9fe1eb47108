"""
Two-Stage Form Validation

DESIGN DECISION: Every form the user submits goes through two stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Minimum lengths and amounts
- Email and date format

STAGE 2 - SEMANTIC VALIDATION:
- Password confirmation
- Budget year range and category lines
- Duplicate budget month (needs the budget service)

Stage 2 only runs when stage 1 passes. Warnings never block a save.

IMPORTANT: Validation NEVER silently fixes values. It reports what is
wrong and the flow decides what to do.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import structlog

from finance_tracker.config import AppSettings, get_settings
from finance_tracker.models.validation import ValidationIssue, ValidationResult
from finance_tracker.services.budgets import BudgetService


logger = structlog.get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_AMOUNT = Decimal("0.01")
MAX_DECIMAL_PLACES = 2
MIN_NAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 6
MIN_GOAL_TITLE_LENGTH = 3

# Same limits as the record models
MAX_EMAIL_LENGTH = 254
MAX_NAME_LENGTH = 100
MAX_CATEGORY_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 200
MAX_SOURCE_LENGTH = 100
MAX_GOAL_TITLE_LENGTH = 100
MAX_GOAL_DESCRIPTION_LENGTH = 500

Form = dict[str, Any]


def parse_amount(value: Any) -> Optional[Decimal]:
    """Decimal from a form value, or None if it is blank or not a number."""
    if value is None or value == "":
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount


def parse_date(value: Any) -> Optional[date]:
    """A date from a date object or an ISO string, else None."""
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def _text(form: Form, field: str) -> str:
    value = form.get(field)
    return str(value).strip() if value is not None else ""


def _result(
    form_name: str,
    schema_valid: bool,
    semantic_valid: bool,
    issues: list[ValidationIssue],
) -> ValidationResult:
    logger.debug(
        "form_validated",
        form=form_name,
        is_valid=schema_valid and semantic_valid,
        issue_count=len(issues),
    )
    return ValidationResult(
        form=form_name,
        schema_valid=schema_valid,
        semantic_valid=semantic_valid,
        is_valid=schema_valid and semantic_valid,
        issues=issues,
    )


def _no_errors(issues: list[ValidationIssue]) -> bool:
    return not any(issue.severity == "error" for issue in issues)


class FormValidator:
    """
    Validates the registration, login, expense, income, budget and goal
    forms.

    Forms are plain dicts keyed by field name, as collected by the UI.
    """

    def __init__(
        self,
        budget_service: Optional[BudgetService] = None,
        settings: Optional[AppSettings] = None,
    ):
        """
        Args:
            budget_service: Used to warn about a second budget for the
                            same month. If None, that check is skipped.
            settings: Budget year range. Defaults to the environment.
        """
        self._budgets = budget_service
        self._settings = settings or get_settings().app

    # =========================================================================
    # STAGE 1 HELPERS
    # =========================================================================

    @staticmethod
    def _require_text(
        form: Form,
        field: str,
        label: str,
        issues: list[ValidationIssue],
        min_length: int = 1,
        max_length: Optional[int] = None,
    ) -> None:
        value = _text(form, field)
        if not value:
            issues.append(ValidationIssue(
                field=field,
                issue_type="required",
                message=f"{label} is required",
                severity="error",
            ))
        elif len(value) < min_length:
            issues.append(ValidationIssue(
                field=field,
                issue_type="min_length",
                message=f"{label} must be at least {min_length} characters",
                severity="error",
            ))
        elif max_length is not None and len(value) > max_length:
            issues.append(ValidationIssue(
                field=field,
                issue_type="max_length",
                message=f"{label} must be at most {max_length} characters",
                severity="error",
            ))

    @staticmethod
    def _limit_text(
        form: Form,
        field: str,
        label: str,
        issues: list[ValidationIssue],
        max_length: int,
    ) -> None:
        """Length check for an optional text field."""
        if len(_text(form, field)) > max_length:
            issues.append(ValidationIssue(
                field=field,
                issue_type="max_length",
                message=f"{label} must be at most {max_length} characters",
                severity="error",
            ))

    @staticmethod
    def _require_email(form: Form, issues: list[ValidationIssue]) -> None:
        email = _text(form, "email")
        if not email:
            issues.append(ValidationIssue(
                field="email",
                issue_type="required",
                message="Email is required",
                severity="error",
            ))
        elif not EMAIL_PATTERN.match(email):
            issues.append(ValidationIssue(
                field="email",
                issue_type="format",
                message="Please enter a valid email",
                severity="error",
                suggested_fix="Use the form name@example.com",
            ))

    @staticmethod
    def _require_amount(
        form: Form,
        field: str,
        label: str,
        issues: list[ValidationIssue],
        minimum: Decimal = MIN_AMOUNT,
        issue_field: Optional[str] = None,
    ) -> None:
        raw = form.get(field)
        field = issue_field or field
        amount = parse_amount(raw)
        if raw is None or raw == "":
            issues.append(ValidationIssue(
                field=field,
                issue_type="required",
                message=f"{label} is required",
                severity="error",
            ))
        elif amount is None:
            issues.append(ValidationIssue(
                field=field,
                issue_type="format",
                message=f"{label} must be a number",
                severity="error",
            ))
        elif amount < minimum:
            issues.append(ValidationIssue(
                field=field,
                issue_type="min_value",
                message=f"{label} must be at least {minimum}",
                severity="error",
            ))
        elif amount.as_tuple().exponent < -MAX_DECIMAL_PLACES:
            issues.append(ValidationIssue(
                field=field,
                issue_type="precision",
                message=f"{label} can have at most {MAX_DECIMAL_PLACES} decimal places",
                severity="error",
                suggested_fix="Round to whole cents",
            ))

    @staticmethod
    def _require_date(
        form: Form,
        field: str,
        label: str,
        issues: list[ValidationIssue],
    ) -> None:
        if parse_date(form.get(field)) is None:
            issues.append(ValidationIssue(
                field=field,
                issue_type="required",
                message=f"{label} is required",
                severity="error",
                suggested_fix="Use YYYY-MM-DD",
            ))

    # =========================================================================
    # FORMS
    # =========================================================================

    def validate_registration(self, form: Form) -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._require_text(form, "first_name", "First name", issues, MIN_NAME_LENGTH, MAX_NAME_LENGTH)
        self._require_text(form, "last_name", "Last name", issues, MIN_NAME_LENGTH, MAX_NAME_LENGTH)
        self._require_email(form, issues)
        self._limit_text(form, "email", "Email", issues, MAX_EMAIL_LENGTH)
        self._require_text(form, "password", "Password", issues, MIN_PASSWORD_LENGTH)
        self._require_text(form, "confirm_password", "Confirm password", issues)

        schema_valid = _no_errors(issues)
        semantic_valid = False
        if schema_valid:
            semantic_issues = []
            if form.get("password") != form.get("confirm_password"):
                semantic_issues.append(ValidationIssue(
                    field="confirm_password",
                    issue_type="mismatch",
                    message="Passwords do not match",
                    severity="error",
                ))
            issues.extend(semantic_issues)
            semantic_valid = _no_errors(semantic_issues)

        return _result("registration", schema_valid, semantic_valid, issues)

    def validate_login(self, form: Form) -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._require_email(form, issues)
        self._require_text(form, "password", "Password", issues, MIN_PASSWORD_LENGTH)
        schema_valid = _no_errors(issues)
        return _result("login", schema_valid, schema_valid, issues)

    def validate_expense(self, form: Form) -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._require_amount(form, "amount", "Amount", issues)
        self._require_text(form, "category", "Category", issues, max_length=MAX_CATEGORY_LENGTH)
        self._require_text(form, "description", "Description", issues, max_length=MAX_DESCRIPTION_LENGTH)
        self._require_date(form, "date", "Date", issues)

        schema_valid = _no_errors(issues)
        semantic_valid = False
        if schema_valid:
            semantic_issues = []
            if form.get("is_recurring") and not form.get("recurring_frequency"):
                semantic_issues.append(ValidationIssue(
                    field="recurring_frequency",
                    issue_type="missing",
                    message="Recurring expense has no frequency",
                    severity="warning",
                    suggested_fix="Pick how often it repeats",
                ))
            issues.extend(semantic_issues)
            semantic_valid = _no_errors(semantic_issues)

        return _result("expense", schema_valid, semantic_valid, issues)

    def validate_income(self, form: Form) -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._require_amount(form, "amount", "Amount", issues)
        self._require_text(form, "source", "Source", issues, max_length=MAX_SOURCE_LENGTH)
        self._limit_text(form, "description", "Description", issues, MAX_DESCRIPTION_LENGTH)
        self._require_date(form, "date", "Date", issues)
        schema_valid = _no_errors(issues)
        return _result("income", schema_valid, schema_valid, issues)

    async def validate_budget(
        self,
        form: Form,
        user_id: Optional[int] = None,
        editing_id: Optional[int] = None,
    ) -> ValidationResult:
        """
        Budget form, including its category lines.

        When a budget service is configured and user_id is given, a
        second budget for the same month produces a warning.
        """
        issues: list[ValidationIssue] = []

        month = form.get("month")
        if not isinstance(month, int) or not 1 <= month <= 12:
            issues.append(ValidationIssue(
                field="month",
                issue_type="range",
                message="Month must be between 1 and 12",
                severity="error",
            ))
        year = form.get("year")
        if not isinstance(year, int):
            issues.append(ValidationIssue(
                field="year",
                issue_type="required",
                message="Year is required",
                severity="error",
            ))
        self._require_amount(form, "total_income", "Total income", issues)

        categories = form.get("categories") or []
        for index, line in enumerate(categories):
            if not str(line.get("category") or "").strip():
                issues.append(ValidationIssue(
                    field=f"categories.{index}.category",
                    issue_type="required",
                    message=f"Category {index + 1} needs a name",
                    severity="error",
                ))
            elif len(str(line["category"]).strip()) > MAX_CATEGORY_LENGTH:
                issues.append(ValidationIssue(
                    field=f"categories.{index}.category",
                    issue_type="max_length",
                    message=f"Category {index + 1} must be at most {MAX_CATEGORY_LENGTH} characters",
                    severity="error",
                ))
            self._require_amount(
                line,
                "limit",
                f"Limit for category {index + 1}",
                issues,
                issue_field=f"categories.{index}.limit",
            )

        schema_valid = _no_errors(issues)
        semantic_valid = False
        if schema_valid:
            semantic_issues = self._budget_semantics(form)
            if self._budgets is not None and user_id is not None:
                semantic_issues.extend(
                    await self._check_duplicate_budget(user_id, month, year, editing_id)
                )
            issues.extend(semantic_issues)
            semantic_valid = _no_errors(semantic_issues)

        return _result("budget", schema_valid, semantic_valid, issues)

    def _budget_semantics(self, form: Form) -> list[ValidationIssue]:
        issues = []
        year = form["year"]
        low, high = self._settings.min_budget_year, self._settings.max_budget_year
        if not low <= year <= high:
            issues.append(ValidationIssue(
                field="year",
                issue_type="range",
                message=f"Year must be between {low} and {high}",
                severity="error",
            ))

        categories = form.get("categories") or []
        if not categories:
            issues.append(ValidationIssue(
                field="categories",
                issue_type="required",
                message="Please add at least one category",
                severity="error",
            ))

        names = [str(line["category"]).strip() for line in categories]
        repeated = sorted({n for n in names if names.count(n) > 1})
        for name in repeated:
            issues.append(ValidationIssue(
                field="categories",
                issue_type="duplicate",
                message=f"Category '{name}' appears more than once",
                severity="warning",
                suggested_fix="Only the first line for a category is used in reports",
            ))

        total_income = parse_amount(form.get("total_income"))
        total_limits = sum((parse_amount(line["limit"]) for line in categories), Decimal("0"))
        if total_income is not None and total_limits > total_income:
            issues.append(ValidationIssue(
                field="categories",
                issue_type="over_allocated",
                message="Category limits add up to more than the expected income",
                severity="warning",
            ))
        return issues

    async def _check_duplicate_budget(
        self,
        user_id: int,
        month: int,
        year: int,
        editing_id: Optional[int],
    ) -> list[ValidationIssue]:
        existing = await self._budgets.get_budget_by_month(user_id, month, year)
        if existing is None or existing.id == editing_id:
            return []
        return [ValidationIssue(
            field="month",
            issue_type="potential_duplicate",
            message=f"A budget for {month}/{year} already exists",
            severity="warning",
            suggested_fix="Edit the existing budget instead",
        )]

    def validate_goal(self, form: Form) -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._require_text(form, "title", "Title", issues, MIN_GOAL_TITLE_LENGTH, MAX_GOAL_TITLE_LENGTH)
        self._limit_text(form, "description", "Description", issues, MAX_GOAL_DESCRIPTION_LENGTH)
        self._require_amount(form, "target_amount", "Target amount", issues)
        if form.get("current_amount") not in (None, ""):
            self._require_amount(
                form, "current_amount", "Current amount", issues, minimum=Decimal("0")
            )
        self._require_date(form, "target_date", "Target date", issues)

        schema_valid = _no_errors(issues)
        semantic_valid = False
        if schema_valid:
            semantic_issues = []
            target_date = parse_date(form["target_date"])
            if target_date < date.today():
                semantic_issues.append(ValidationIssue(
                    field="target_date",
                    issue_type="past_date",
                    message="Target date is in the past",
                    severity="warning",
                ))
            issues.extend(semantic_issues)
            semantic_valid = _no_errors(semantic_issues)

        return _result("goal", schema_valid, semantic_valid, issues)

    @staticmethod
    def get_user_friendly_summary(result: ValidationResult) -> str:
        """Short text for the form footer."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []
        errors = [i for i in result.issues if i.severity == "error"]
        if errors:
            lines.append("Please fix the following:")
            lines.extend(f"- {issue.message}" for issue in errors)
        if result.warnings:
            lines.append("Please double-check:")
            lines.extend(f"- {message}" for message in result.warnings)
        return "\n".join(lines)
