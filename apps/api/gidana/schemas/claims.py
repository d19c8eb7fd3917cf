"""Schemas for unit claims and landlord vacate actions."""
from __future__ import annotations

from pydantic import BaseModel, Field

from .documents import UnitSnapshot
from .session import View


class ClaimRequest(BaseModel):
    unit_id: str = Field(min_length=1)


class ClaimResponse(BaseModel):
    unit: UnitSnapshot
    view: View


class VacateResponse(BaseModel):
    unit: UnitSnapshot
    released_account_ids: list[str] = Field(default_factory=list)
