"""Tenant home and payment callback endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..schemas import payments as payments_schema
from ..schemas.documents import AccountSnapshot
from ..schemas.tenancy import TenancySummary
from ..services import payments as payments_service
from ..services import tenancy as tenancy_service
from .deps import get_app_settings, get_session, require_account

router = APIRouter()


@router.get("/tenancy", response_model=TenancySummary)
async def tenancy(
    account: AccountSnapshot = Depends(require_account),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> TenancySummary:
    """Return the linked tenant's unit, property and payments."""

    return await tenancy_service.load_tenancy(session, account, settings)


@router.post("/payments/callback", response_model=payments_schema.PaymentCallbackResponse)
async def payment_callback(
    payload: payments_schema.PaymentCallback,
    account: AccountSnapshot = Depends(require_account),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> payments_schema.PaymentCallbackResponse:
    """Record the gateway's terminal result for the tenant's rent payment."""

    return await payments_service.record_gateway_callback(session, account, payload, settings)
