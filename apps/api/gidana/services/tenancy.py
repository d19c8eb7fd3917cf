"""Home summary for a linked tenant."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..core.errors import AccountNotEligibleError, UnitNotFoundError
from ..repositories import payments as payments_repo
from ..repositories import properties as properties_repo
from ..repositories import units as units_repo
from ..schemas.documents import AccountSnapshot, UnitSnapshot
from ..schemas.payments import PaymentRecord
from ..schemas.tenancy import TenancySummary
from .store import guarded


async def load_tenancy(session: AsyncSession, account: AccountSnapshot, settings: Settings) -> TenancySummary:
    """Return the tenant's unit, property, lease end and payment history."""

    if not account.linked:
        raise AccountNotEligibleError("No property linked. Please search for your unit code.")
    unit_id = account.unit_id

    async def _load() -> TenancySummary | None:
        async with session.begin():
            unit_record = await units_repo.get_by_id(session, unit_id)
            if unit_record is None:
                return None
            unit = UnitSnapshot.model_validate(unit_record)
            if unit.tenant_id != account.id:
                return None
            prop = await properties_repo.get_by_id(session, unit.property_id)
            payments = await payments_repo.list_for_unit(session, unit.id)
            return TenancySummary(
                account_id=account.id,
                tenant_name=account.name,
                unit_id=unit.id,
                unit_label=unit.label,
                rent=unit.rent,
                property_id=unit.property_id,
                property_name=prop.name if prop else "Unknown Property",
                property_address=prop.address if prop else "",
                landlord_id=prop.landlord_id if prop else "",
                moved_in_at=unit.claimed_at,
                lease_end=_one_year_after(unit.claimed_at),
                payments=[PaymentRecord.model_validate(payment) for payment in payments],
            )

    summary = await guarded(_load, settings, description="load tenancy")
    if summary is None:
        raise UnitNotFoundError("Your linked unit could not be found.")
    return summary


def _one_year_after(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    try:
        return value.replace(year=value.year + 1)
    except ValueError:
        # 29 February
        return value.replace(year=value.year + 1, day=28)
