"""Tests for the access gate and route resolution."""

from datetime import datetime

import pytest

from finance_tracker.guard import (
    DEFAULT_PATH,
    ROUTES,
    check_access,
    navigate,
    resolve_route,
)
from finance_tracker.models.records import User


@pytest.fixture
def user():
    return User(
        id=1,
        email="demo@example.com",
        password="demo123",
        first_name="Demo",
        last_name="User",
        created_at=datetime(2024, 1, 1),
    )


class TestCheckAccess:
    """Tests for the gate itself."""

    def test_signed_in_is_allowed(self, user):
        decision = check_access(user, "/expenses")
        assert decision.allowed
        assert decision.redirect_to is None

    def test_anonymous_is_sent_to_login(self):
        decision = check_access(None, "/expenses")
        assert not decision.allowed
        assert decision.redirect_to == "/login?returnUrl=%2Fexpenses"
        assert decision.return_url == "/expenses"

    def test_custom_login_path(self):
        decision = check_access(None, "/goals", login_path="/signin")
        assert decision.redirect_to == "/signin?returnUrl=%2Fgoals"


class TestResolveRoute:
    """Tests for path normalization."""

    @pytest.mark.parametrize("path,expected", [
        ("/expenses", "/expenses"),
        ("expenses/", "/expenses"),
        ("/login?returnUrl=%2Fgoals", "/login"),
        ("", DEFAULT_PATH),
        ("/", DEFAULT_PATH),
        ("/nowhere", DEFAULT_PATH),
    ])
    def test_resolution(self, path, expected):
        assert resolve_route(path) == expected

    def test_only_auth_views_are_public(self):
        public = {path for path, info in ROUTES.items() if not info.protected}
        assert public == {"/login", "/register"}


class TestNavigate:
    """Tests for resolving and gating together."""

    def test_public_route_without_user(self):
        assert navigate(None, "/register").allowed
        assert navigate(None, "/register").redirect_to is None

    def test_login_with_query_does_not_redirect(self):
        decision = navigate(None, "/login?returnUrl=%2Fexpenses")
        assert decision.allowed
        assert decision.redirect_to is None

    def test_protected_route_without_user(self):
        decision = navigate(None, "/budgets")
        assert not decision.allowed
        assert decision.redirect_to == "/login?returnUrl=%2Fbudgets"

    def test_unknown_path_gated_as_dashboard(self):
        decision = navigate(None, "/settings")
        assert decision.redirect_to == "/login?returnUrl=%2Fdashboard"

    def test_unknown_path_with_user_redirects_to_dashboard(self, user):
        decision = navigate(user, "/settings")
        assert decision.allowed
        assert decision.redirect_to == "/dashboard"

    def test_known_path_with_user(self, user):
        decision = navigate(user, "/reports")
        assert decision.allowed
        assert decision.redirect_to is None
