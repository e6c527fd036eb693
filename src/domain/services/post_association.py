"""Keeps group post links and the freet store consistent."""

from uuid import UUID

import structlog

from domain.entities.group import Group
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger(__name__)


class PostAssociationManager:
    """Link, unlink and cascade freets for a group.

    Every method works inside the caller's unit of work; the caller commits.
    """

    async def attach(self, uow: IUnitOfWork, group: Group, freet_id: UUID) -> Group:
        """Link a freet to the group and flag it as shared in the freet store."""
        await uow.groups.add_post(group.id, freet_id)
        await uow.freets.set_in_group(freet_id, True)
        return group.with_post(freet_id)

    async def detach(self, uow: IUnitOfWork, group: Group, freet_id: UUID) -> Group:
        """Unlink a freet and delete it. A removed group post is gone for good."""
        await uow.groups.remove_post(group.id, freet_id)
        await uow.freets.delete(freet_id)
        return group.without_post(freet_id)

    async def cascade_delete(self, uow: IUnitOfWork, group: Group) -> bool:
        """Delete every linked freet, then the group itself.

        Freets go first, so a failed group delete leaves a group with links
        to missing freets for ``reconcile`` to repair.
        """
        deleted_freets = 0
        try:
            for freet_id in group.posts:
                await uow.freets.delete(freet_id)
                deleted_freets += 1
            deleted = await uow.groups.delete(group.id)
        except Exception:
            logger.error(
                "group_cascade_incomplete",
                group_id=str(group.id),
                deleted_freets=deleted_freets,
                total_freets=len(group.posts),
                exc_info=True,
            )
            raise
        return deleted

    async def find_dangling(self, uow: IUnitOfWork, group: Group) -> list[UUID]:
        """Post links whose freet no longer exists in the store."""
        existing = await uow.freets.get_many(group.posts)
        return [freet_id for freet_id in group.posts if freet_id not in existing]

    async def reconcile(self, uow: IUnitOfWork, group: Group) -> tuple[Group, list[UUID]]:
        """Drop dangling post links. Returns the repaired group and what was dropped."""
        dangling = await self.find_dangling(uow, group)
        for freet_id in dangling:
            await uow.groups.remove_post(group.id, freet_id)
            group = group.without_post(freet_id)

        if dangling:
            logger.warning(
                "group_posts_reconciled",
                group_id=str(group.id),
                removed=[str(freet_id) for freet_id in dangling],
            )
        return group, dangling
