"""Account model."""
from __future__ import annotations

from datetime import datetime
import enum

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow


class Role(str, enum.Enum):
    LANDLORD = "landlord"
    TENANT = "tenant"
    UNASSIGNED = "unassigned"


class Account(Base):
    """Registered identity with a role and, for tenants, a unit linkage.

    ``role`` is stored as free text; the snapshot layer decides what an
    unknown or missing value means.
    """

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    email: Mapped[str | None] = mapped_column(String)
    display_name: Mapped[str | None] = mapped_column(String)
    role: Mapped[str | None] = mapped_column(String(32))
    password_hash: Mapped[str | None] = mapped_column(String(128))
    unit_id: Mapped[str | None] = mapped_column(
        ForeignKey("units.id", ondelete="SET NULL"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
