"""Profile resolver: load the account behind an identity and reconcile it."""
from __future__ import annotations

from dataclasses import dataclass
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..core.errors import MalformedDocumentError
from ..models.account import Role
from ..repositories import accounts as accounts_repo
from ..repositories import units as units_repo
from ..schemas.documents import AccountSnapshot, UnitSnapshot
from .identity import Identity
from .store import guarded

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProfileResolution:
    """Outcome of resolving an identity; ``account is None`` means unresolved."""

    account: AccountSnapshot | None
    created: bool = False
    repaired: bool = False

    @property
    def resolved(self) -> bool:
        return self.account is not None

    @property
    def role(self) -> Role | None:
        return self.account.role if self.account else None

    @property
    def linked(self) -> bool:
        return bool(self.account and self.account.linked)


async def resolve_profile(session: AsyncSession, identity: Identity, settings: Settings) -> ProfileResolution:
    """Resolve ``identity`` to its account.

    Federated identities get a default tenant account on first sign-in.
    Tenant linkage is reconciled against the unit's occupant reference
    before the account is returned.
    """

    account = await load_account(session, identity.account_id, settings)
    created = False
    if account is None:
        if not identity.allows_implicit_signup:
            return ProfileResolution(account=None)
        account, created = await ensure_account(
            session,
            identity=identity,
            role=Role.TENANT,
            settings=settings,
        )

    repaired = False
    if account.role is not Role.LANDLORD:
        account, repaired = await reconcile_linkage(session, account, settings)

    return ProfileResolution(account=account, created=created, repaired=repaired)


async def load_account(session: AsyncSession, account_id: str, settings: Settings) -> AccountSnapshot | None:
    async def _load() -> AccountSnapshot | None:
        async with session.begin():
            record = await accounts_repo.get_by_id(session, account_id)
            return AccountSnapshot.model_validate(record) if record else None

    return await guarded(_load, settings, description="load account")


async def ensure_account(
    session: AsyncSession,
    *,
    identity: Identity,
    role: Role,
    settings: Settings,
) -> tuple[AccountSnapshot, bool]:
    """Check-then-create the account; a concurrent create counts as success."""

    async def _create() -> tuple[AccountSnapshot, bool]:
        async with session.begin():
            existing = await accounts_repo.get_by_id(session, identity.account_id)
            if existing is not None:
                return AccountSnapshot.model_validate(existing), False
            record = await accounts_repo.create_account(
                session,
                account_id=identity.account_id,
                email=identity.email,
                display_name=identity.display_name,
                role=role,
            )
            return AccountSnapshot.model_validate(record), True

    try:
        account, created = await guarded(_create, settings, description="create account")
    except IntegrityError:
        logger.info("Account %s was created concurrently; using stored record", identity.account_id)
        stored = await load_account(session, identity.account_id, settings)
        if stored is None:
            raise MalformedDocumentError(f"Account {identity.account_id} could not be created or read back.")
        return stored, False

    if created:
        logger.info("Created %s account %s", role.value, identity.account_id)
    return account, created


async def reconcile_linkage(
    session: AsyncSession,
    account: AccountSnapshot,
    settings: Settings,
) -> tuple[AccountSnapshot, bool]:
    """Make the account's linkage agree with the units' occupant references.

    A linkage pointing at a unit the account no longer occupies is cleared.
    A unit naming the account as occupant while the account has no linkage
    is an orphaned claim and the linkage is re-written.
    """

    changed = False

    if account.unit_id is not None:
        unit = await _load_unit(session, account.unit_id, settings)
        if unit is not None and unit.tenant_id == account.id:
            return account, False

        stale_unit_id = account.unit_id
        logger.warning(
            "Account %s links unit %s which names occupant %s; clearing linkage",
            account.id,
            stale_unit_id,
            unit.tenant_id if unit else None,
        )

        async def _clear() -> None:
            async with session.begin():
                await accounts_repo.clear_unit(session, account_id=account.id, unit_id=stale_unit_id)

        await guarded(_clear, settings, description="clear stale linkage")
        account = account.model_copy(update={"unit_id": None})
        changed = True

    async def _find_orphan() -> UnitSnapshot | None:
        async with session.begin():
            record = await units_repo.find_occupied_by(session, account.id)
            return UnitSnapshot.model_validate(record) if record else None

    orphan = await guarded(_find_orphan, settings, description="look up occupied unit")
    if orphan is None:
        return account, changed

    logger.warning("Orphaned claim: unit %s names account %s without a linkage; repairing", orphan.id, account.id)

    async def _repair() -> None:
        async with session.begin():
            await accounts_repo.link_unit(session, account_id=account.id, unit_id=orphan.id)

    await guarded(_repair, settings, description="repair orphaned claim")
    return account.model_copy(update={"unit_id": orphan.id, "role": Role.TENANT}), True


async def _load_unit(session: AsyncSession, unit_id: str, settings: Settings) -> UnitSnapshot | None:
    async def _load() -> UnitSnapshot | None:
        async with session.begin():
            record = await units_repo.get_by_id(session, unit_id)
            return UnitSnapshot.model_validate(record) if record else None

    return await guarded(_load, settings, description="load unit")
