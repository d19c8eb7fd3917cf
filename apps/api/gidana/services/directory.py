"""Property directory lookup by human-entered code."""
from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.codes import normalise_code
from ..core.config import Settings
from ..core.errors import PropertyNotFoundError
from ..repositories import properties as properties_repo
from ..repositories import units as units_repo
from ..schemas.documents import PropertySnapshot, UnitSnapshot
from .store import guarded


@dataclass(slots=True)
class DirectoryResult:
    """A property and every one of its units as fetched."""

    property: PropertySnapshot
    units: list[UnitSnapshot] = field(default_factory=list)

    def vacant_units(self) -> list[UnitSnapshot]:
        """Units offered for claiming; the coordinator re-checks before writing."""

        return [unit for unit in self.units if unit.vacant]


async def lookup_property(session: AsyncSession, code: str, settings: Settings) -> DirectoryResult:
    """Resolve ``code`` to its property and units.

    Read-only and safe to retry. Raises ``PropertyNotFoundError`` when no
    property carries the normalised code and ``StoreUnavailableError`` when
    the store cannot be reached.
    """

    normalised = normalise_code(code)
    if not normalised:
        raise PropertyNotFoundError()

    async def _lookup() -> DirectoryResult | None:
        async with session.begin():
            record = await properties_repo.get_by_code(session, normalised)
            if record is None:
                return None
            units = await units_repo.list_for_property(session, record.id)
            return DirectoryResult(
                property=PropertySnapshot.model_validate(record),
                units=[UnitSnapshot.model_validate(unit) for unit in units],
            )

    result = await guarded(_lookup, settings, description="look up property code")
    if result is None:
        raise PropertyNotFoundError()
    return result
