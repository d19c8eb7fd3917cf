"""Record rent payments confirmed by the payment gateway."""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..core.errors import AccountNotEligibleError, PaymentReferenceConflictError, UnitNotFoundError
from ..repositories import payments as payments_repo
from ..repositories import properties as properties_repo
from ..repositories import units as units_repo
from ..schemas import payments as schemas
from ..schemas.documents import AccountSnapshot
from .store import guarded

logger = logging.getLogger(__name__)


async def record_gateway_callback(
    session: AsyncSession,
    account: AccountSnapshot,
    callback: schemas.PaymentCallback,
    settings: Settings,
) -> schemas.PaymentCallbackResponse:
    """Record a payment for the tenant's unit when the gateway reports success.

    Any other terminal status records nothing. A repeated callback with the
    same reference returns the payment recorded the first time; a reference
    already recorded for another account is a conflict.
    """

    if callback.status is not schemas.GatewayStatus.SUCCESS:
        logger.info("Gateway reported %s for reference %s; nothing recorded", callback.status.value, callback.reference)
        return schemas.PaymentCallbackResponse(recorded=False)

    if not account.linked:
        raise AccountNotEligibleError("Link a unit before making payments.")
    unit_id = account.unit_id

    async def _record() -> schemas.PaymentRecord:
        async with session.begin():
            existing = await payments_repo.get_by_reference(session, callback.reference)
            if existing is not None:
                _require_same_payer(existing.account_id, account, callback.reference)
                return schemas.PaymentRecord.model_validate(existing)
            unit = await units_repo.get_by_id(session, unit_id)
            if unit is None:
                raise UnitNotFoundError()
            prop = await properties_repo.get_by_id(session, unit.property_id)
            payment = await payments_repo.create_payment(
                session,
                reference=callback.reference,
                account_id=account.id,
                unit_id=unit.id,
                landlord_id=prop.landlord_id if prop else "",
                amount=unit.rent,
                method=callback.method,
            )
            return schemas.PaymentRecord.model_validate(payment)

    try:
        record = await guarded(_record, settings, description="record payment")
    except IntegrityError:
        async def _reload() -> schemas.PaymentRecord | None:
            async with session.begin():
                existing = await payments_repo.get_by_reference(session, callback.reference)
                if existing is None:
                    return None
                _require_same_payer(existing.account_id, account, callback.reference)
                return schemas.PaymentRecord.model_validate(existing)

        record = await guarded(_reload, settings, description="reload payment")
        if record is None:
            raise

    logger.info("Recorded payment %s for unit %s", record.reference, record.unit_id)
    return schemas.PaymentCallbackResponse(recorded=True, payment=record)


def _require_same_payer(payer_id: str, account: AccountSnapshot, reference: str) -> None:
    if payer_id != account.id:
        logger.warning("Payment reference %s reused by account %s", reference, account.id)
        raise PaymentReferenceConflictError()
