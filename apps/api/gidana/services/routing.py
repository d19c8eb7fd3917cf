"""Session router: map the resolved session inputs to exactly one view."""
from __future__ import annotations

from ..models.account import Role
from ..schemas.session import NavigationIntent, View


def route(
    *,
    authenticated: bool,
    loading: bool,
    role: Role | None,
    linked: bool,
    intent: NavigationIntent = NavigationIntent.LANDING,
    failed: bool = False,
) -> View:
    """Return the view a session is entitled to.

    Pure function of its arguments; callers re-invoke it after anything that
    could change ``linked`` instead of caching the result.
    """

    if not authenticated:
        return View.AUTH if intent is NavigationIntent.AUTH else View.LANDING
    if loading:
        return View.SPLASH
    if failed:
        return View.ERROR
    if role is Role.TENANT:
        return View.TENANT_DASHBOARD if linked else View.TENANT_LINKING
    if role is Role.LANDLORD:
        return View.LANDLORD_DASHBOARD
    # Unassigned or unresolved accounts wait on splash until a role exists.
    return View.SPLASH
