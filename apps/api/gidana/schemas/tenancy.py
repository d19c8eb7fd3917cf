"""Schemas for the linked tenant's home summary."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from .payments import PaymentRecord


class TenancySummary(BaseModel):
    account_id: str
    tenant_name: str
    unit_id: str
    unit_label: str
    rent: int
    property_id: str
    property_name: str
    property_address: str
    landlord_id: str
    moved_in_at: datetime | None = None
    lease_end: datetime | None = None
    payments: list[PaymentRecord] = Field(default_factory=list)
