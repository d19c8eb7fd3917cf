"""Validated snapshots of stored documents.

Rows leave the store boundary only as these models. Missing or unknown
values are defaulted to the safest interpretation instead of raising, so a
malformed record degrades a view rather than crashing it.
"""
from __future__ import annotations

from datetime import datetime, timezone
import logging

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..core.codes import normalise_code
from ..models.account import Role
from ..models.unit import UnitStatus

logger = logging.getLogger(__name__)


class AccountSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str | None = None
    display_name: str | None = None
    role: Role = Role.UNASSIGNED
    unit_id: str | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _parse_role(cls, value: object) -> Role:
        if isinstance(value, Role):
            return value
        if isinstance(value, str):
            try:
                return Role(value.strip().lower())
            except ValueError:
                pass
        logger.warning("Account record has malformed role %r; treating as unassigned", value)
        return Role.UNASSIGNED

    @field_validator("unit_id", mode="before")
    @classmethod
    def _blank_unit_is_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def linked(self) -> bool:
        return self.unit_id is not None

    @property
    def name(self) -> str:
        return self.display_name or "Tenant"


class PropertySnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    landlord_id: str
    name: str
    address: str
    city: str | None = None
    state: str | None = None

    @field_validator("code", mode="before")
    @classmethod
    def _normalise(cls, value: object) -> object:
        if isinstance(value, str):
            return normalise_code(value)
        return value


class UnitSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    property_id: str
    label: str
    rent: int = Field(ge=0)
    status: UnitStatus = UnitStatus.OCCUPIED
    tenant_id: str | None = None
    tenant_name: str | None = None
    tenant_email: str | None = None
    claimed_at: datetime | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: object) -> UnitStatus:
        if isinstance(value, UnitStatus):
            return value
        if isinstance(value, str):
            try:
                return UnitStatus(value.strip().lower())
            except ValueError:
                pass
        logger.warning("Unit record has malformed status %r; treating as occupied", value)
        return UnitStatus.OCCUPIED

    @field_validator("claimed_at")
    @classmethod
    def _ensure_tz(cls, value: datetime | None) -> datetime | None:
        if value is None or value.tzinfo is not None:
            return value
        return value.replace(tzinfo=timezone.utc)

    @model_validator(mode="after")
    def _occupant_consistency(self) -> "UnitSnapshot":
        if self.status is UnitStatus.VACANT and self.tenant_id:
            logger.warning("Unit %s is vacant but references occupant %s; treating as occupied", self.id, self.tenant_id)
            self.status = UnitStatus.OCCUPIED
        elif self.status is UnitStatus.OCCUPIED and not self.tenant_id:
            logger.warning("Unit %s is occupied without an occupant reference", self.id)
        return self

    @property
    def vacant(self) -> bool:
        return self.status is UnitStatus.VACANT
