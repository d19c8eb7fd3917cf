"""Property directory endpoint used by tenants linking their account."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..schemas.directory import DirectoryResponse
from ..services import directory as directory_service
from ..services.identity import Identity
from .deps import get_app_settings, get_session, require_identity

router = APIRouter()


@router.get("/directory/{code}", response_model=DirectoryResponse)
async def lookup_property(
    code: str,
    _: Identity = Depends(require_identity),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> DirectoryResponse:
    """Return the property for a code with all units and the vacant ones offered."""

    result = await directory_service.lookup_property(session, code, settings)
    return DirectoryResponse.from_units(result.property, result.units)
