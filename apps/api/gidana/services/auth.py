"""Credential-checked sign-up and sign-in.

Identities are only handed to ``IdentityProvider.sign_in`` after one of
these functions has verified a password or a provider ID token.
"""
from __future__ import annotations

import asyncio
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..core.errors import AccountExistsError, InvalidCredentialsError
from ..models.account import Role
from ..repositories import accounts as accounts_repo
from .credentials import hash_password, verify_federated_token, verify_password
from .identity import Identity, make_identity
from .store import guarded

logger = logging.getLogger(__name__)


async def sign_up(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    display_name: str,
    role: Role,
    settings: Settings,
) -> Identity:
    """Create a password account; an existing account is a conflict, never a sign-in."""

    identity = make_identity(email, display_name=display_name)
    password_hash = await asyncio.to_thread(hash_password, password, settings.password_hash_rounds)

    async def _create() -> bool:
        async with session.begin():
            if await accounts_repo.get_by_id(session, identity.account_id) is not None:
                return False
            await accounts_repo.create_account(
                session,
                account_id=identity.account_id,
                email=identity.email,
                display_name=display_name,
                role=role,
                password_hash=password_hash,
            )
            return True

    try:
        created = await guarded(_create, settings, description="create account")
    except IntegrityError:
        created = False
    if not created:
        logger.info("Sign-up rejected: account %s already exists", identity.account_id)
        raise AccountExistsError()

    logger.info("Created %s account %s", role.value, identity.account_id)
    return identity


async def authenticate_password(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    settings: Settings,
) -> Identity:
    """Return the identity for ``email`` if ``password`` matches its stored hash."""

    identity = make_identity(email)

    async def _load() -> tuple[str | None, str | None] | None:
        async with session.begin():
            record = await accounts_repo.get_by_id(session, identity.account_id)
            return (record.password_hash, record.display_name) if record else None

    stored = await guarded(_load, settings, description="load credentials")
    password_hash, display_name = stored if stored else (None, None)
    if not await asyncio.to_thread(verify_password, password, password_hash):
        logger.info("Password sign-in failed for %s", identity.account_id)
        raise InvalidCredentialsError()
    return make_identity(email, display_name=display_name)


async def authenticate_federated(provider: str, token: str, settings: Settings) -> Identity:
    """Verify a provider ID token; the resolver creates the account on first use."""

    claims = await verify_federated_token(provider, token, settings)
    return make_identity(claims.email, provider=provider, display_name=claims.name)
