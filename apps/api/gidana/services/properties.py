"""Landlord property creation and listing."""
from __future__ import annotations

import logging
import random

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.codes import generate_code
from ..core.config import Settings
from ..core.errors import AccountNotEligibleError, StoreUnavailableError
from ..models.account import Role
from ..repositories import properties as properties_repo
from ..repositories import units as units_repo
from ..schemas import properties as schemas
from ..schemas.documents import AccountSnapshot, PropertySnapshot, UnitSnapshot
from .store import guarded

logger = logging.getLogger(__name__)


async def create_property(
    session: AsyncSession,
    landlord: AccountSnapshot,
    payload: schemas.CreatePropertyRequest,
    settings: Settings,
    *,
    rng: random.Random | None = None,
) -> schemas.PropertyDetail:
    """Create a property with a fresh code and its vacant units.

    Codes are drawn at random and retried on collision, up to
    ``property_code_attempts`` times.
    """

    _require_landlord(landlord)
    labels = payload.resolved_labels()
    rent = payload.rent if payload.rent is not None else settings.default_unit_rent

    for _ in range(settings.property_code_attempts):
        code = generate_code(settings.property_code_prefix, rng)

        async def _insert() -> schemas.PropertyDetail | None:
            async with session.begin():
                if await properties_repo.code_exists(session, code):
                    return None
                prop = await properties_repo.create_property(
                    session,
                    landlord_id=landlord.id,
                    code=code,
                    name=payload.name,
                    address=payload.address,
                    city=payload.city,
                    state=payload.state,
                )
                units = await units_repo.create_units(session, property_id=prop.id, labels=labels, rent=rent)
                return schemas.PropertyDetail(
                    property=PropertySnapshot.model_validate(prop),
                    units=[UnitSnapshot.model_validate(unit) for unit in units],
                )

        try:
            detail = await guarded(_insert, settings, description="create property")
        except IntegrityError:
            detail = None
        if detail is not None:
            logger.info("Landlord %s created property %s with %d units", landlord.id, code, len(labels))
            return detail
        logger.info("Property code %s already taken; drawing another", code)

    raise StoreUnavailableError("Could not allocate a unique property code. Please try again.")


async def list_properties(
    session: AsyncSession,
    landlord: AccountSnapshot,
    settings: Settings,
) -> list[schemas.PropertyDetail]:
    """Return the landlord's properties with every unit."""

    _require_landlord(landlord)

    async def _list() -> list[schemas.PropertyDetail]:
        async with session.begin():
            records = await properties_repo.list_for_landlord(session, landlord.id)
            return [
                schemas.PropertyDetail(
                    property=PropertySnapshot.model_validate(record),
                    units=[UnitSnapshot.model_validate(unit) for unit in record.units],
                )
                for record in records
            ]

    return await guarded(_list, settings, description="list properties")


def _require_landlord(account: AccountSnapshot) -> None:
    if account.role is not Role.LANDLORD:
        raise AccountNotEligibleError("Only landlords can manage properties.")
