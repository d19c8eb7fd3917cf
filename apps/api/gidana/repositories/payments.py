"""Payment persistence helpers."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.payment import Payment


async def get_by_reference(session: AsyncSession, reference: str) -> Payment | None:
    stmt: Select[tuple[Payment]] = select(Payment).where(Payment.reference == reference)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def create_payment(
    session: AsyncSession,
    *,
    reference: str,
    account_id: str,
    unit_id: str,
    landlord_id: str,
    amount: int,
    method: str,
) -> Payment:
    """Persist a confirmed payment; raises ``IntegrityError`` on a reused reference."""

    payment = Payment(
        id=str(uuid4()),
        reference=reference,
        account_id=account_id,
        unit_id=unit_id,
        landlord_id=landlord_id,
        amount=amount,
        method=method,
        status="success",
    )
    session.add(payment)
    await session.flush()
    return payment


async def list_for_unit(session: AsyncSession, unit_id: str) -> list[Payment]:
    """Return payments for a unit, newest first."""

    stmt: Select[tuple[Payment]] = (
        select(Payment).where(Payment.unit_id == unit_id).order_by(Payment.paid_at.desc(), Payment.id.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
