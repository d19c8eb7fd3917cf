"""Session resolution endpoint."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..core.errors import StoreUnavailableError
from ..models.account import Role
from ..schemas.session import NavigationIntent, SessionView
from ..services.identity import Identity
from ..services.routing import route
from .deps import get_app_settings, get_optional_identity, get_session, resolve_with_deadline

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/session", response_model=SessionView)
async def current_session(
    intent: NavigationIntent = NavigationIntent.LANDING,
    identity: Identity | None = Depends(get_optional_identity),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> SessionView:
    """Resolve the caller's account and return the view it is entitled to.

    Store failures resolve to the error view instead of an error response.
    """

    if identity is None:
        view = route(authenticated=False, loading=False, role=None, linked=False, intent=intent)
        return SessionView(view=view, authenticated=False)

    try:
        resolution = await resolve_with_deadline(session, identity, settings)
    except StoreUnavailableError as exc:
        logger.warning("Session resolution for %s failed: %s", identity.account_id, exc)
        view = route(authenticated=True, loading=False, role=None, linked=False, failed=True)
        return SessionView(view=view, authenticated=True)

    view = route(authenticated=True, loading=False, role=resolution.role, linked=resolution.linked)
    return SessionView(
        view=view,
        authenticated=True,
        account=resolution.account,
        needs_linking=resolution.role is Role.TENANT and not resolution.linked,
        repaired=resolution.repaired,
    )
