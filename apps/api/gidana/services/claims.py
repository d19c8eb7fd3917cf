"""Occupancy claim coordinator.

A claim re-reads the unit, then issues a conditional write that only lands
while the unit is still vacant, then mirrors the linkage onto the account.
The conditional write carries the correctness guarantee; the re-read only
short-circuits units that are visibly taken already.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..core.errors import (
    AccountNotEligibleError,
    OrphanedClaimError,
    StoreUnavailableError,
    UnitAlreadyClaimedError,
    UnitNotFoundError,
)
from ..models.account import Role
from ..models.base import utcnow
from ..models.unit import UnitStatus
from ..repositories import accounts as accounts_repo
from ..repositories import properties as properties_repo
from ..repositories import units as units_repo
from ..schemas.documents import AccountSnapshot, UnitSnapshot
from .store import guarded

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ClaimOutcome:
    unit: UnitSnapshot
    account: AccountSnapshot
    already_held: bool = False


@dataclass(slots=True)
class VacateOutcome:
    unit: UnitSnapshot
    released_account_ids: list[str]


async def claim_unit(
    session: AsyncSession,
    account: AccountSnapshot,
    unit_id: str,
    settings: Settings,
) -> ClaimOutcome:
    """Transition ``unit_id`` from vacant to occupied by ``account``.

    Raises ``UnitAlreadyClaimedError`` when another account holds the unit,
    whether seen on the re-read or by a rejected conditional write. Raises
    ``OrphanedClaimError`` when the unit was won but the account linkage
    could not be written; the profile resolver finishes it later.
    """

    if account.role is Role.LANDLORD:
        raise AccountNotEligibleError("Landlord accounts cannot claim a unit.")
    if account.linked and account.unit_id != unit_id:
        raise AccountNotEligibleError("This account is already linked to a unit.")

    current = await _read_unit(session, unit_id, settings)
    if current is None:
        raise UnitNotFoundError()

    already_held = False
    if current.tenant_id == account.id:
        already_held = True
        claimed = current
    elif not current.vacant:
        logger.info("Unit %s already occupied; claim by %s rejected before write", unit_id, account.id)
        raise UnitAlreadyClaimedError(unit_id)
    else:
        claimed_at = utcnow()

        async def _conditional_claim() -> bool:
            async with session.begin():
                return await units_repo.mark_occupied_if_vacant(
                    session,
                    unit_id=unit_id,
                    tenant_id=account.id,
                    tenant_name=account.name,
                    tenant_email=account.email,
                    claimed_at=claimed_at,
                )

        won = await guarded(_conditional_claim, settings, description="claim unit")
        if won:
            claimed = current.model_copy(
                update={
                    "status": UnitStatus.OCCUPIED,
                    "tenant_id": account.id,
                    "tenant_name": account.name,
                    "tenant_email": account.email,
                    "claimed_at": claimed_at,
                }
            )
        else:
            # No row changed: either another claim won, or an earlier attempt
            # of ours committed before its acknowledgement was lost.
            after = await _read_unit(session, unit_id, settings)
            if after is None or after.tenant_id != account.id:
                logger.info("Claim race on unit %s lost by %s", unit_id, account.id)
                raise UnitAlreadyClaimedError(unit_id)
            already_held = True
            claimed = after

    async def _mirror() -> None:
        async with session.begin():
            await accounts_repo.link_unit(session, account_id=account.id, unit_id=unit_id)

    try:
        await guarded(_mirror, settings, description="link account to unit")
    except StoreUnavailableError as exc:
        logger.error("Orphaned claim: unit %s is held by %s but the account linkage failed", unit_id, account.id)
        raise OrphanedClaimError(unit_id) from exc

    logger.info("Account %s claimed unit %s", account.id, unit_id)
    return ClaimOutcome(
        unit=claimed,
        account=account.model_copy(update={"unit_id": unit_id, "role": Role.TENANT}),
        already_held=already_held,
    )


async def vacate_unit(
    session: AsyncSession,
    landlord: AccountSnapshot,
    unit_id: str,
    settings: Settings,
) -> VacateOutcome:
    """Return an occupied unit to vacant on the owning landlord's request."""

    if landlord.role is not Role.LANDLORD:
        raise AccountNotEligibleError("Only landlords can vacate a unit.")

    async def _read_owned() -> tuple[UnitSnapshot | None, str | None]:
        async with session.begin():
            record = await units_repo.get_by_id(session, unit_id)
            if record is None:
                return None, None
            prop = await properties_repo.get_by_id(session, record.property_id)
            return UnitSnapshot.model_validate(record), prop.landlord_id if prop else None

    unit, owner_id = await guarded(_read_owned, settings, description="read unit for vacate")
    if unit is None:
        raise UnitNotFoundError()
    if owner_id != landlord.id:
        raise AccountNotEligibleError("This unit belongs to another landlord.")

    occupant_id = unit.tenant_id

    async def _release() -> bool:
        async with session.begin():
            return await units_repo.mark_vacant_if_occupied_by(session, unit_id=unit_id, tenant_id=occupant_id)

    released = await guarded(_release, settings, description="vacate unit")
    if not released:
        logger.info("Unit %s changed occupant during vacate; leaving it as stored", unit_id)
        current = await _read_unit(session, unit_id, settings)
        return VacateOutcome(unit=current or unit, released_account_ids=[])

    async def _unlink() -> list[str]:
        async with session.begin():
            linked = await accounts_repo.list_linked_to_unit(session, unit_id)
            for account in linked:
                await accounts_repo.clear_unit(session, account_id=account.id, unit_id=unit_id)
            return [account.id for account in linked]

    released_ids = await guarded(_unlink, settings, description="clear account linkage")
    logger.info("Landlord %s vacated unit %s (former occupant %s)", landlord.id, unit_id, occupant_id)

    vacant = unit.model_copy(
        update={
            "status": UnitStatus.VACANT,
            "tenant_id": None,
            "tenant_name": None,
            "tenant_email": None,
            "claimed_at": None,
        }
    )
    return VacateOutcome(unit=vacant, released_account_ids=released_ids)


async def _read_unit(session: AsyncSession, unit_id: str, settings: Settings) -> UnitSnapshot | None:
    async def _read() -> UnitSnapshot | None:
        async with session.begin():
            record = await units_repo.get_by_id(session, unit_id)
            return UnitSnapshot.model_validate(record) if record else None

    return await guarded(_read, settings, description="re-read unit")
