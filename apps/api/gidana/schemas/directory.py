"""Schemas for property directory lookups."""
from __future__ import annotations

from pydantic import BaseModel, Field

from .documents import PropertySnapshot, UnitSnapshot


class UnitCard(BaseModel):
    unit_id: str
    label: str
    rent: int
    status: str


class DirectoryResponse(BaseModel):
    property: PropertySnapshot
    units: list[UnitCard] = Field(default_factory=list, description="Every unit, for freshness re-checks")
    offered: list[UnitCard] = Field(default_factory=list, description="Units that were vacant when fetched")

    @classmethod
    def from_units(cls, prop: PropertySnapshot, units: list[UnitSnapshot]) -> "DirectoryResponse":
        cards = [
            UnitCard(unit_id=unit.id, label=unit.label, rent=unit.rent, status=unit.status.value)
            for unit in units
        ]
        offered = [card for card, unit in zip(cards, units) if unit.vacant]
        return cls(property=prop, units=cards, offered=offered)
