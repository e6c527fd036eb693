"""Group service layer with business logic."""

from collections.abc import Callable
from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError

from core.exceptions import (
    AlreadyAGroupAdminError,
    AlreadyAGroupMemberError,
    FreetAlreadyInGroupError,
    GroupNameTakenError,
)
from domain.entities.freet import FreetSummary
from domain.entities.group import Group, GroupSnapshot
from domain.entities.user import CallerContext
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services import group_authorization as checks
from domain.services.group_authorization import GroupRequest, PrivacyFlag, run_checks
from domain.services.post_association import PostAssociationManager

logger = structlog.get_logger(__name__)


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = str(exc.orig).lower() if exc.orig else ""
    return "unique" in orig or "duplicate" in orig


class GroupService:
    """Service layer for groups, their members and their freets.

    Each public method opens one unit of work, runs the operation's check
    chain, applies the change and returns a snapshot of the resulting group.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        post_association: Optional[PostAssociationManager] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._posts = post_association or PostAssociationManager()

    # --- Queries ---

    async def get_for_member(self, caller: CallerContext) -> list[GroupSnapshot]:
        """Get all groups the caller belongs to."""
        async with self._uow_factory() as uow:
            await run_checks(GroupRequest(uow=uow, caller=caller), checks.LIST_GROUPS)
            groups = await uow.groups.get_for_member(caller.user_id)
            return [await self._snapshot(uow, g) for g in groups]

    async def get_for_admin(self, caller: CallerContext) -> list[GroupSnapshot]:
        """Get all groups the caller administers."""
        async with self._uow_factory() as uow:
            await run_checks(GroupRequest(uow=uow, caller=caller), checks.LIST_GROUPS)
            groups = await uow.groups.get_for_admin(caller.user_id)
            return [await self._snapshot(uow, g) for g in groups]

    async def get_by_id(self, group_id: str, caller: CallerContext) -> GroupSnapshot:
        """Get a group. Private groups are visible to members only."""
        async with self._uow_factory() as uow:
            request = GroupRequest(uow=uow, caller=caller, group_id=group_id)
            await run_checks(request, checks.VIEW_GROUP)
            return await self._snapshot(uow, request.loaded_group)

    # --- Group lifecycle ---

    async def create(
        self,
        caller: CallerContext,
        name: str | None,
        is_private: PrivacyFlag = None,
    ) -> GroupSnapshot:
        """Create a group with the caller as its sole member and admin.

        A blank privacy flag creates a public group.
        """
        async with self._uow_factory() as uow:
            request = GroupRequest(uow=uow, caller=caller, name=name, privacy=is_private)
            await run_checks(request, checks.CREATE_GROUP)

            group = Group.found(
                name=name or "",
                founder=request.caller_id,
                is_private=bool(checks.privacy_flag_value(is_private)),
            )

            try:
                created = await uow.groups.create(group)
                await uow.commit()
            except IntegrityError as exc:
                await uow.rollback()
                if _is_unique_violation(exc):
                    raise GroupNameTakenError(group.name) from exc
                raise

            logger.info(
                "group_created",
                group_id=str(created.id),
                founder_id=str(caller.user_id),
                is_private=created.is_private,
            )
            return await self._snapshot(uow, created)

    async def delete(self, group_id: str, caller: CallerContext) -> bool:
        """Delete a group and every freet in it. Requires group Admin."""
        async with self._uow_factory() as uow:
            request = GroupRequest(uow=uow, caller=caller, group_id=group_id)
            await run_checks(request, checks.DELETE_GROUP)

            group = request.loaded_group
            deleted = await self._posts.cascade_delete(uow, group)
            await uow.commit()

            logger.info(
                "group_deleted",
                group_id=str(group.id),
                deleted_freets=len(group.posts),
            )
            return deleted

    async def set_privacy(
        self,
        group_id: str,
        caller: CallerContext,
        is_private: PrivacyFlag,
    ) -> GroupSnapshot:
        """Change the privacy flag. Requires group Admin.

        A blank flag is accepted and leaves the group unchanged.
        """
        async with self._uow_factory() as uow:
            request = GroupRequest(
                uow=uow, caller=caller, group_id=group_id, privacy=is_private
            )
            await run_checks(request, checks.SET_PRIVACY)

            group = request.loaded_group
            value = checks.privacy_flag_value(is_private)
            if value is None or value == group.is_private:
                return await self._snapshot(uow, group)

            await uow.groups.set_privacy(group.id, value)
            await uow.commit()

            logger.info("group_privacy_changed", group_id=str(group.id), is_private=value)
            return await self._snapshot(uow, group.with_privacy(value))

    # --- Membership ---

    async def join(self, group_id: str, caller: CallerContext) -> GroupSnapshot:
        """Add the caller to a public group."""
        async with self._uow_factory() as uow:
            request = GroupRequest(uow=uow, caller=caller, group_id=group_id)
            await run_checks(request, checks.JOIN_GROUP)

            group = await self._append_member(uow, request.loaded_group, request.caller_id)
            return await self._snapshot(uow, group)

    async def add_member(
        self,
        group_id: str,
        caller: CallerContext,
        user_id: str | None = None,
        username: str | None = None,
    ) -> GroupSnapshot:
        """Add a user to a group.

        Without a target this is a self-join. Private groups only accept
        members added by an admin.
        """
        if user_id is None and username is None:
            return await self.join(group_id, caller)

        async with self._uow_factory() as uow:
            request = GroupRequest(
                uow=uow,
                caller=caller,
                group_id=group_id,
                user_id=user_id,
                username=username,
            )
            await run_checks(request, checks.ADD_MEMBER)

            group = await self._append_member(
                uow, request.loaded_group, request.loaded_user.id
            )
            return await self._snapshot(uow, group)

    async def promote_administrator(
        self,
        group_id: str,
        caller: CallerContext,
        user_id: str | None = None,
        username: str | None = None,
    ) -> GroupSnapshot:
        """Make an existing member an admin. Requires group Admin."""
        async with self._uow_factory() as uow:
            request = GroupRequest(
                uow=uow,
                caller=caller,
                group_id=group_id,
                user_id=user_id,
                username=username,
            )
            await run_checks(request, checks.PROMOTE_ADMIN)

            group = request.loaded_group
            target = request.loaded_user
            promoted = await uow.groups.promote_administrator(group.id, target.id)
            if not promoted:
                await uow.rollback()
                raise AlreadyAGroupAdminError(str(target.id))
            await uow.commit()

            logger.info(
                "group_admin_promoted",
                group_id=str(group.id),
                user_id=str(target.id),
                actor_id=str(caller.user_id),
            )
            return await self._snapshot(uow, group.with_administrator(target.id))

    # --- Freets ---

    async def attach_freet(
        self, group_id: str, caller: CallerContext, freet_id: str | None
    ) -> GroupSnapshot:
        """Share a freet into a group. Requires group membership."""
        async with self._uow_factory() as uow:
            request = GroupRequest(
                uow=uow, caller=caller, group_id=group_id, freet_id=freet_id
            )
            await run_checks(request, checks.ATTACH_FREET)

            freet = request.loaded_freet
            try:
                group = await self._posts.attach(uow, request.loaded_group, freet.id)
                await uow.commit()
            except IntegrityError as exc:
                await uow.rollback()
                if _is_unique_violation(exc):
                    raise FreetAlreadyInGroupError(str(freet.id)) from exc
                raise

            logger.info(
                "group_post_attached",
                group_id=str(group.id),
                freet_id=str(freet.id),
                actor_id=str(caller.user_id),
            )
            return await self._snapshot(uow, group)

    async def detach_freet(
        self, group_id: str, caller: CallerContext, freet_id: str | None
    ) -> GroupSnapshot:
        """Remove a freet from a group. The freet itself is deleted."""
        async with self._uow_factory() as uow:
            request = GroupRequest(
                uow=uow, caller=caller, group_id=group_id, freet_id=freet_id
            )
            await run_checks(request, checks.DETACH_FREET)

            freet = request.loaded_freet
            group = await self._posts.detach(uow, request.loaded_group, freet.id)
            await uow.commit()

            logger.info(
                "group_post_detached",
                group_id=str(group.id),
                freet_id=str(freet.id),
                actor_id=str(caller.user_id),
            )
            return await self._snapshot(uow, group)

    async def reconcile_freets(
        self, group_id: str, caller: CallerContext
    ) -> tuple[GroupSnapshot, list[UUID]]:
        """Drop links to freets that no longer exist. Requires group Admin."""
        async with self._uow_factory() as uow:
            request = GroupRequest(uow=uow, caller=caller, group_id=group_id)
            await run_checks(request, checks.RECONCILE_FREETS)

            group, removed = await self._posts.reconcile(uow, request.loaded_group)
            if removed:
                await uow.commit()
            return await self._snapshot(uow, group), removed

    # --- Internal helpers ---

    async def _append_member(
        self, uow: IUnitOfWork, group: Group, user_id: UUID
    ) -> Group:
        """Insert the membership row; a concurrent duplicate surfaces as a conflict."""
        try:
            await uow.groups.add_member(group.id, user_id)
            await uow.commit()
        except IntegrityError as exc:
            await uow.rollback()
            if _is_unique_violation(exc):
                raise AlreadyAGroupMemberError(str(user_id)) from exc
            raise

        logger.info("group_member_added", group_id=str(group.id), user_id=str(user_id))
        return group.with_member(user_id)

    async def _snapshot(self, uow: IUnitOfWork, group: Group) -> GroupSnapshot:
        """Resolve member ids to usernames and freet ids to summaries."""
        freets = await uow.freets.get_many(group.posts)
        user_ids = set(group.members) | {f.author_id for f in freets.values()}
        users = await uow.users.get_many(user_ids)

        def username(user_id: UUID) -> str:
            user = users.get(user_id)
            return user.username if user else str(user_id)

        posts = [
            FreetSummary(
                id=freet.id,
                author=username(freet.author_id),
                content=freet.content,
                in_group=freet.in_group,
                date_created=freet.date_created,
                date_modified=freet.date_modified,
            )
            for freet in (freets.get(freet_id) for freet_id in group.posts)
            if freet is not None
        ]

        return GroupSnapshot(
            group=group,
            administrators=[username(u) for u in group.administrators],
            members=[username(u) for u in group.members],
            posts=posts,
        )
