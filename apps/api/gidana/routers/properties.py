"""Landlord property endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..schemas import properties as properties_schema
from ..schemas.documents import AccountSnapshot
from ..services import properties as properties_service
from .deps import get_app_settings, get_session, require_account

router = APIRouter()


@router.post(
    "/properties",
    response_model=properties_schema.PropertyDetail,
    status_code=status.HTTP_201_CREATED,
)
async def create_property(
    payload: properties_schema.CreatePropertyRequest,
    account: AccountSnapshot = Depends(require_account),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> properties_schema.PropertyDetail:
    """Create a property with a generated code and its units."""

    return await properties_service.create_property(session, account, payload, settings)


@router.get("/properties", response_model=list[properties_schema.PropertyDetail])
async def list_properties(
    account: AccountSnapshot = Depends(require_account),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> list[properties_schema.PropertyDetail]:
    """Return the landlord's properties."""

    return await properties_service.list_properties(session, account, settings)
