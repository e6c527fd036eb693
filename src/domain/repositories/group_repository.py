"""Group repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.group import Group


class IGroupRepository(Protocol):
    """Repository interface for Group entities.

    Membership and post links are stored as keyed rows, so ``add_member``,
    ``add_post`` and ``create`` raise ``IntegrityError`` on a duplicate
    instead of writing it twice.
    """

    async def get(self, id: UUID) -> Group | None:
        """Get a group by ID."""
        ...

    async def get_by_name(self, name: str) -> Group | None:
        """Get a group by name (trimmed, case-insensitive)."""
        ...

    async def get_for_member(self, user_id: UUID) -> list[Group]:
        """Get all groups a user belongs to."""
        ...

    async def get_for_admin(self, user_id: UUID) -> list[Group]:
        """Get all groups a user administers."""
        ...

    async def create(self, group: Group) -> Group:
        """Create a group together with its founding membership."""
        ...

    async def delete(self, id: UUID) -> bool:
        """Delete a group (membership and post links go with it)."""
        ...

    async def add_member(self, group_id: UUID, user_id: UUID) -> None:
        """Append a member."""
        ...

    async def promote_administrator(self, group_id: UUID, user_id: UUID) -> bool:
        """Turn an existing plain member into an admin.

        Returns False when no plain-member row matched.
        """
        ...

    async def set_privacy(self, group_id: UUID, is_private: bool) -> bool:
        """Set the privacy flag."""
        ...

    async def add_post(self, group_id: UUID, post_id: UUID) -> None:
        """Link a post to the group."""
        ...

    async def remove_post(self, group_id: UUID, post_id: UUID) -> bool:
        """Unlink a post from the group."""
        ...

    async def get_group_id_for_post(self, post_id: UUID) -> UUID | None:
        """Get the group a post is linked to, if any."""
        ...
