"""Schemas for landlord property management."""
from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from .documents import PropertySnapshot, UnitSnapshot


class CreatePropertyRequest(BaseModel):
    name: str = Field(min_length=1)
    address: str = Field(min_length=1)
    city: str | None = None
    state: str | None = None
    total_units: int = Field(default=0, ge=0, le=500)
    unit_labels: list[str] = Field(default_factory=list)
    rent: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _labels_are_unique(self) -> "CreatePropertyRequest":
        labels = [label.strip() for label in self.unit_labels]
        if any(not label for label in labels):
            raise ValueError("unit labels must not be blank")
        if len(set(labels)) != len(labels):
            raise ValueError("unit labels must be unique")
        self.unit_labels = labels
        return self

    def resolved_labels(self) -> list[str]:
        """Explicit labels win; otherwise number units 1..N."""

        if self.unit_labels:
            return list(self.unit_labels)
        return [str(number) for number in range(1, self.total_units + 1)]


class PropertyDetail(BaseModel):
    property: PropertySnapshot
    units: list[UnitSnapshot] = Field(default_factory=list)