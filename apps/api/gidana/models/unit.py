"""Unit model."""
from __future__ import annotations

from datetime import datetime
import enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .property import Property


class UnitStatus(str, enum.Enum):
    VACANT = "vacant"
    OCCUPIED = "occupied"


class Unit(Base):
    """Individual rental unit and its current occupant, if any."""

    __tablename__ = "units"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    property_id: Mapped[str] = mapped_column(ForeignKey("properties.id", ondelete="CASCADE"), index=True, nullable=False)
    label: Mapped[str] = mapped_column(String, nullable=False)
    rent: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(32), default=UnitStatus.VACANT.value, nullable=False)
    tenant_id: Mapped[str | None] = mapped_column(String, index=True)
    tenant_name: Mapped[str | None] = mapped_column(String)
    tenant_email: Mapped[str | None] = mapped_column(String)
    claimed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    property: Mapped["Property"] = relationship("Property", back_populates="units")
