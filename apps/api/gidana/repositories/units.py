"""Unit repository helpers, including the conditional occupancy writes."""
from __future__ import annotations

from datetime import datetime
from typing import Iterable
from uuid import uuid4

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.unit import Unit, UnitStatus


async def get_by_id(session: AsyncSession, unit_id: str) -> Unit | None:
    """Return the unit as currently stored, bypassing the identity map."""

    return await session.get(Unit, unit_id, populate_existing=True)


async def list_for_property(session: AsyncSession, property_id: str) -> list[Unit]:
    """Return every unit of a property regardless of occupancy."""

    stmt: Select[tuple[Unit]] = (
        select(Unit)
        .where(Unit.property_id == property_id)
        .order_by(Unit.label.asc(), Unit.id.asc())
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def find_occupied_by(session: AsyncSession, tenant_id: str) -> Unit | None:
    """Return the unit naming ``tenant_id`` as occupant, oldest claim first."""

    stmt: Select[tuple[Unit]] = (
        select(Unit)
        .where(Unit.tenant_id == tenant_id)
        .order_by(Unit.claimed_at.asc(), Unit.id.asc())
        .limit(1)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def mark_occupied_if_vacant(
    session: AsyncSession,
    *,
    unit_id: str,
    tenant_id: str,
    tenant_name: str | None,
    tenant_email: str | None,
    claimed_at: datetime,
) -> bool:
    """Compare-and-swap the unit from vacant to occupied.

    The precondition is evaluated by the store inside the single UPDATE
    statement; exactly one concurrent caller can see a changed row. Status
    is compared trimmed and case-insensitively, as the snapshots read it.
    """

    stmt = (
        update(Unit)
        .where(
            Unit.id == unit_id,
            func.lower(func.trim(Unit.status)) == UnitStatus.VACANT.value,
            Unit.tenant_id.is_(None),
        )
        .values(
            status=UnitStatus.OCCUPIED.value,
            tenant_id=tenant_id,
            tenant_name=tenant_name,
            tenant_email=tenant_email,
            claimed_at=claimed_at,
        )
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.rowcount == 1


async def mark_vacant_if_occupied_by(session: AsyncSession, *, unit_id: str, tenant_id: str | None) -> bool:
    """Compare-and-swap the unit back to vacant if ``tenant_id`` still holds it."""

    occupant = Unit.tenant_id.is_(None) if tenant_id is None else Unit.tenant_id == tenant_id
    stmt = (
        update(Unit)
        .where(Unit.id == unit_id, occupant)
        .values(
            status=UnitStatus.VACANT.value,
            tenant_id=None,
            tenant_name=None,
            tenant_email=None,
            claimed_at=None,
        )
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.rowcount == 1


async def create_units(
    session: AsyncSession,
    *,
    property_id: str,
    labels: Iterable[str],
    rent: int,
) -> list[Unit]:
    """Insert vacant units for a property."""

    units = [
        Unit(
            id=str(uuid4()),
            property_id=property_id,
            label=label,
            rent=rent,
            status=UnitStatus.VACANT.value,
        )
        for label in labels
    ]
    session.add_all(units)
    await session.flush()
    return units
