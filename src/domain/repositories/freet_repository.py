"""Freet store protocol."""

from typing import Iterable, Protocol
from uuid import UUID

from domain.entities.freet import Freet


class IFreetRepository(Protocol):
    """The parts of the freet store that groups depend on."""

    async def get(self, id: UUID) -> Freet | None:
        """Get a freet by ID."""
        ...

    async def get_many(self, ids: Iterable[UUID]) -> dict[UUID, Freet]:
        """Get several freets at once, keyed by ID. Unknown IDs are skipped."""
        ...

    async def set_in_group(self, id: UUID, in_group: bool) -> bool:
        """Flag a freet as shared into a group (or not)."""
        ...

    async def delete(self, id: UUID) -> bool:
        """Delete a freet and return success status."""
        ...
