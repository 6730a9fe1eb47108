"""
Access Gate

Decides whether a requested view may be shown.

DESIGN DECISION: The gate is a pure function of the current user and the
requested path. It reads no global state, so the UI and the tests call
it the same way.
"""

from typing import NamedTuple, Optional
from urllib.parse import urlencode

from finance_tracker.models.records import User


LOGIN_PATH = "/login"
DEFAULT_PATH = "/dashboard"


class RouteInfo(NamedTuple):
    view: str
    title: str
    protected: bool


ROUTES: dict[str, RouteInfo] = {
    "/login": RouteInfo("login", "Login", protected=False),
    "/register": RouteInfo("register", "Register", protected=False),
    "/dashboard": RouteInfo("dashboard", "Dashboard", protected=True),
    "/expenses": RouteInfo("expenses", "Expenses", protected=True),
    "/income": RouteInfo("income", "Income", protected=True),
    "/budgets": RouteInfo("budgets", "Budgets", protected=True),
    "/goals": RouteInfo("goals", "Goals", protected=True),
    "/reports": RouteInfo("reports", "Reports", protected=True),
}


class AccessDecision(NamedTuple):
    """Result of the gate: allowed, or where to go instead."""
    allowed: bool
    redirect_to: Optional[str] = None
    return_url: Optional[str] = None


def check_access(
    current_user: Optional[User],
    requested_path: str,
    login_path: str = LOGIN_PATH,
) -> AccessDecision:
    """
    Allow when someone is signed in, otherwise send them to login.

    The redirect carries the requested path as `returnUrl` so login can
    come back to it.
    """
    if current_user is not None:
        return AccessDecision(allowed=True)

    redirect = f"{login_path}?{urlencode({'returnUrl': requested_path})}"
    return AccessDecision(
        allowed=False,
        redirect_to=redirect,
        return_url=requested_path,
    )


def resolve_route(path: str) -> str:
    """Normalize a path to a known route. Empty and unknown go to the dashboard."""
    normalized = "/" + path.split("?", 1)[0].strip().strip("/")
    if normalized in ROUTES:
        return normalized
    return DEFAULT_PATH


def navigate(current_user: Optional[User], path: str) -> AccessDecision:
    """
    Resolve a path and apply the gate when the route is protected.

    An allowed decision for a redirected path carries the resolved path
    in redirect_to. Query strings are kept on known routes.
    """
    resolved = resolve_route(path)
    if ROUTES[resolved].protected:
        decision = check_access(current_user, resolved)
        if not decision.allowed:
            return decision
    if resolved != path.split("?", 1)[0]:
        return AccessDecision(allowed=True, redirect_to=resolved)
    return AccessDecision(allowed=True)
