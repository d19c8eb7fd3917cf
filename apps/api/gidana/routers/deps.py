"""Shared FastAPI dependencies."""
from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..core.context import AppContext
from ..core.errors import AccountNotFoundError, StoreUnavailableError, UnauthenticatedError
from ..schemas.documents import AccountSnapshot
from ..services.identity import Identity
from ..services.profiles import ProfileResolution, resolve_profile

bearer = HTTPBearer(auto_error=False)


def get_context(request: Request) -> AppContext:
    context = getattr(request.app.state, "context", None)
    if context is None:
        raise RuntimeError("Application context is not initialised")
    return context


def get_app_settings(context: AppContext = Depends(get_context)) -> Settings:
    return context.settings


async def get_session(context: AppContext = Depends(get_context)) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency to provide an async session."""

    async with context.session_factory() as session:
        yield session


def get_token(credentials: HTTPAuthorizationCredentials | None = Depends(bearer)) -> str | None:
    return credentials.credentials if credentials else None


def get_optional_identity(
    token: str | None = Depends(get_token),
    context: AppContext = Depends(get_context),
) -> Identity | None:
    if not token:
        return None
    return context.identity.authenticate(token)


def require_identity(identity: Identity | None = Depends(get_optional_identity)) -> Identity:
    if identity is None:
        raise UnauthenticatedError()
    return identity


async def resolve_with_deadline(session: AsyncSession, identity: Identity, settings: Settings) -> ProfileResolution:
    """Resolve the profile, converting an overrun into ``StoreUnavailableError``."""

    try:
        return await asyncio.wait_for(
            resolve_profile(session, identity, settings),
            timeout=settings.resolve_timeout_seconds,
        )
    except asyncio.TimeoutError as exc:
        raise StoreUnavailableError("Timed out loading your profile.") from exc


async def get_resolution(
    identity: Identity = Depends(require_identity),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> ProfileResolution:
    return await resolve_with_deadline(session, identity, settings)


def require_account(resolution: ProfileResolution = Depends(get_resolution)) -> AccountSnapshot:
    if resolution.account is None:
        raise AccountNotFoundError("Finish signing up to continue.")
    return resolution.account
