"""Schemas for payment gateway callbacks."""
from __future__ import annotations

from datetime import datetime
import enum

from pydantic import BaseModel, ConfigDict, Field


class GatewayStatus(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"
    CLOSED = "closed"


class PaymentCallback(BaseModel):
    reference: str = Field(min_length=1)
    status: GatewayStatus
    method: str = "paystack"


class PaymentRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    reference: str
    unit_id: str
    amount: int
    method: str
    status: str
    paid_at: datetime


class PaymentCallbackResponse(BaseModel):
    recorded: bool
    payment: PaymentRecord | None = None
