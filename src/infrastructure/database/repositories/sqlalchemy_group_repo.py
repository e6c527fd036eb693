"""SQLAlchemy implementation of Group repository."""

from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import Select

from domain.entities.group import Group, GroupRole, normalize_group_name
from infrastructure.database.models import GroupMemberModel, GroupModel, GroupPostModel


class SQLAlchemyGroupRepository:
    """SQLAlchemy implementation of IGroupRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def _select(self) -> Select[tuple[GroupModel]]:
        return (
            select(GroupModel)
            .options(
                selectinload(GroupModel.memberships),
                selectinload(GroupModel.post_links),
            )
            .execution_options(populate_existing=True)
        )

    async def get(self, id: UUID) -> Group | None:
        """Get a group by ID."""
        result = await self._session.execute(self._select().where(GroupModel.id == id))
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_name(self, name: str) -> Group | None:
        """Get a group by name (trimmed, case-insensitive)."""
        stmt = self._select().where(GroupModel.name_key == normalize_group_name(name))
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_for_member(self, user_id: UUID) -> list[Group]:
        """Get all groups a user belongs to, by name descending."""
        stmt = (
            self._select()
            .join(GroupMemberModel, GroupMemberModel.group_id == GroupModel.id)
            .where(GroupMemberModel.user_id == user_id)
            .order_by(GroupModel.name.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def get_for_admin(self, user_id: UUID) -> list[Group]:
        """Get all groups a user administers, by name descending."""
        stmt = (
            self._select()
            .join(GroupMemberModel, GroupMemberModel.group_id == GroupModel.id)
            .where(
                GroupMemberModel.user_id == user_id,
                GroupMemberModel.role == GroupRole.ADMIN.value,
            )
            .order_by(GroupModel.name.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def create(self, group: Group) -> Group:
        """Create a new group with its founding membership rows."""
        model = GroupModel(
            id=group.id,
            name=group.name,
            name_key=group.name_key,
            is_private=group.is_private,
            created_at=group.created_at,
        )
        model.memberships = [
            GroupMemberModel(
                user_id=user_id,
                role=(
                    GroupRole.ADMIN.value
                    if user_id in group.administrators
                    else GroupRole.MEMBER.value
                ),
                joined_at=group.created_at,
            )
            for user_id in group.members
        ]
        model.post_links = []
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def delete(self, id: UUID) -> bool:
        """Delete a group (cascade deletes members and post links)."""
        result = await self._session.execute(self._select().where(GroupModel.id == id))
        model = result.scalar_one_or_none()

        if not model:
            return False

        await self._session.delete(model)
        await self._session.flush()
        return True

    async def add_member(self, group_id: UUID, user_id: UUID) -> None:
        """Append a member; a duplicate violates the primary key."""
        self._session.add(
            GroupMemberModel(
                group_id=group_id,
                user_id=user_id,
                role=GroupRole.MEMBER.value,
            )
        )
        await self._session.flush()

    async def promote_administrator(self, group_id: UUID, user_id: UUID) -> bool:
        """Conditionally flip a plain member to admin."""
        stmt = (
            update(GroupMemberModel)
            .where(
                GroupMemberModel.group_id == group_id,
                GroupMemberModel.user_id == user_id,
                GroupMemberModel.role == GroupRole.MEMBER.value,
            )
            .values(role=GroupRole.ADMIN.value)
        )
        result = await self._session.execute(stmt)
        return bool(result.rowcount)

    async def set_privacy(self, group_id: UUID, is_private: bool) -> bool:
        """Set the privacy flag."""
        stmt = (
            update(GroupModel)
            .where(GroupModel.id == group_id)
            .values(is_private=is_private)
        )
        result = await self._session.execute(stmt)
        return bool(result.rowcount)

    async def add_post(self, group_id: UUID, post_id: UUID) -> None:
        """Link a post; a post already linked anywhere violates a unique key."""
        self._session.add(GroupPostModel(group_id=group_id, post_id=post_id))
        await self._session.flush()

    async def remove_post(self, group_id: UUID, post_id: UUID) -> bool:
        """Unlink a post from the group."""
        stmt = delete(GroupPostModel).where(
            GroupPostModel.group_id == group_id,
            GroupPostModel.post_id == post_id,
        )
        result = await self._session.execute(stmt)
        return bool(result.rowcount)

    async def get_group_id_for_post(self, post_id: UUID) -> UUID | None:
        """Get the group a post is linked to, if any."""
        stmt = select(GroupPostModel.group_id).where(GroupPostModel.post_id == post_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _to_entity(self, model: GroupModel) -> Group:
        """Convert ORM model to domain entity."""
        return Group(
            id=model.id,
            name=model.name,
            administrators=tuple(
                m.user_id for m in model.memberships if m.role == GroupRole.ADMIN.value
            ),
            members=tuple(m.user_id for m in model.memberships),
            posts=tuple(link.post_id for link in model.post_links),
            is_private=model.is_private,
            created_at=model.created_at,
        )
