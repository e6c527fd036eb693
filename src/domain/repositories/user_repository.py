"""User directory protocol."""

from typing import Iterable, Protocol
from uuid import UUID

from domain.entities.user import User


class IUserRepository(Protocol):
    """Read-only view of registered users."""

    async def get(self, id: UUID) -> User | None:
        """Get a user by ID."""
        ...

    async def get_by_username(self, username: str) -> User | None:
        """Get a user by username (case-insensitive)."""
        ...

    async def get_many(self, ids: Iterable[UUID]) -> dict[UUID, User]:
        """Get several users at once, keyed by ID. Unknown IDs are skipped."""
        ...
