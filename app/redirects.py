"""Navigation policy derived from authentication and onboarding state.

The same rules drive the client session store and the server-rendered pages,
so a user lands on the same route whichever side decides.
"""

from typing import Protocol

HOME_ROUTE = "/"
LOGIN_ROUTE = "/login"
PLAN_SELECTION_ROUTE = "/pricing"
MAIN_ROUTE = "/record"

PROTECTED_ROUTES = frozenset({"/record", "/settings", "/history", "/pricing"})
ONBOARDED_BOUNCE_ROUTES = frozenset({LOGIN_ROUTE, HOME_ROUTE, PLAN_SELECTION_ROUTE})


class HasPlanSelected(Protocol):
    plan_selected: bool


def resolve_redirect(is_authenticated: bool, profile: HasPlanSelected | None, pathname: str) -> str | None:
    """Return the route to force navigation to, or None to stay put."""
    if is_authenticated and profile is not None:
        if not profile.plan_selected:
            return PLAN_SELECTION_ROUTE if pathname != PLAN_SELECTION_ROUTE else None
        if pathname in ONBOARDED_BOUNCE_ROUTES:
            return MAIN_ROUTE
        return None
    if not is_authenticated and pathname in PROTECTED_ROUTES:
        return LOGIN_ROUTE
    return None
