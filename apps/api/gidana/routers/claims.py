"""Unit claim and vacate endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..schemas import claims as claims_schema
from ..schemas.documents import AccountSnapshot
from ..services import claims as claims_service
from ..services.identity import Identity
from ..services.routing import route
from .deps import get_app_settings, get_session, require_account, require_identity, resolve_with_deadline

router = APIRouter()


@router.post("/claims", response_model=claims_schema.ClaimResponse)
async def claim_unit(
    payload: claims_schema.ClaimRequest,
    identity: Identity = Depends(require_identity),
    account: AccountSnapshot = Depends(require_account),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> claims_schema.ClaimResponse:
    """Claim a vacant unit and return the re-resolved view."""

    outcome = await claims_service.claim_unit(session, account, payload.unit_id, settings)
    resolution = await resolve_with_deadline(session, identity, settings)
    view = route(authenticated=True, loading=False, role=resolution.role, linked=resolution.linked)
    return claims_schema.ClaimResponse(unit=outcome.unit, view=view)


@router.post("/units/{unit_id}/vacate", response_model=claims_schema.VacateResponse)
async def vacate_unit(
    unit_id: str,
    account: AccountSnapshot = Depends(require_account),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> claims_schema.VacateResponse:
    """Return a unit to vacant; landlords only."""

    outcome = await claims_service.vacate_unit(session, account, unit_id, settings)
    return claims_schema.VacateResponse(unit=outcome.unit, released_account_ids=outcome.released_account_ids)
