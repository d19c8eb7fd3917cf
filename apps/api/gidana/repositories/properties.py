"""Property repository helpers."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models.property import Property


async def get_by_id(session: AsyncSession, property_id: str) -> Property | None:
    """Return a property by identifier."""

    return await session.get(Property, property_id)


async def get_by_code(session: AsyncSession, code: str) -> Property | None:
    """Return the property whose stored code equals ``code`` exactly."""

    stmt: Select[tuple[Property]] = select(Property).where(Property.code == code).limit(1)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def code_exists(session: AsyncSession, code: str) -> bool:
    stmt: Select[tuple[int]] = select(func.count(Property.id)).where(Property.code == code)
    result = await session.execute(stmt)
    return result.scalar_one() > 0


async def create_property(
    session: AsyncSession,
    *,
    landlord_id: str,
    code: str,
    name: str,
    address: str,
    city: str | None = None,
    state: str | None = None,
) -> Property:
    """Insert a property; raises ``IntegrityError`` if the code is taken."""

    prop = Property(
        id=str(uuid4()),
        code=code,
        landlord_id=landlord_id,
        name=name,
        address=address,
        city=city,
        state=state,
    )
    session.add(prop)
    await session.flush()
    return prop


async def list_for_landlord(session: AsyncSession, landlord_id: str) -> list[Property]:
    """Return a landlord's properties with their units loaded."""

    stmt: Select[tuple[Property]] = (
        select(Property)
        .where(Property.landlord_id == landlord_id)
        .options(selectinload(Property.units))
        .order_by(Property.created_at.asc(), Property.id.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
