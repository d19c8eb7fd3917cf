"""Sign-up, sign-in and sign-out endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..core.context import AppContext
from ..core.errors import UnauthenticatedError
from ..models.account import Role
from ..schemas import auth as auth_schema
from ..schemas.session import View
from ..services import auth as auth_service
from ..services.identity import PASSWORD_PROVIDER, Identity
from ..services.routing import route
from .deps import get_app_settings, get_context, get_session, get_token, resolve_with_deadline

router = APIRouter()


async def _issue_token(
    identity: Identity,
    context: AppContext,
    session: AsyncSession,
    settings: Settings,
) -> auth_schema.TokenResponse:
    resolution = await resolve_with_deadline(session, identity, settings)
    token = context.identity.sign_in(identity)
    view = route(authenticated=True, loading=False, role=resolution.role, linked=resolution.linked)
    return auth_schema.TokenResponse(token=token, account_id=identity.account_id, view=view)


@router.post("/signup", response_model=auth_schema.TokenResponse)
async def sign_up(
    payload: auth_schema.SignUpRequest,
    context: AppContext = Depends(get_context),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> auth_schema.TokenResponse:
    """Create the account with its chosen role, then sign it in."""

    identity = await auth_service.sign_up(
        session,
        email=payload.email,
        password=payload.password,
        display_name=payload.display_name,
        role=Role(payload.role),
        settings=settings,
    )
    return await _issue_token(identity, context, session, settings)


@router.post("/signin", response_model=auth_schema.TokenResponse)
async def sign_in(
    payload: auth_schema.SignInRequest,
    context: AppContext = Depends(get_context),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> auth_schema.TokenResponse:
    """Sign in with a password or a verified provider ID token.

    Federated providers create a tenant account on first use.
    """

    if payload.provider == PASSWORD_PROVIDER:
        identity = await auth_service.authenticate_password(
            session, email=payload.email, password=payload.password, settings=settings
        )
    else:
        identity = await auth_service.authenticate_federated(payload.provider, payload.id_token, settings)
    return await _issue_token(identity, context, session, settings)


@router.post("/signout")
async def sign_out(
    token: str | None = Depends(get_token),
    context: AppContext = Depends(get_context),
) -> dict[str, str]:
    """Revoke the bearer token."""

    if not token:
        raise UnauthenticatedError()
    context.identity.sign_out(token)
    return {"status": "signed_out", "view": View.LANDING.value}
