"""SQLAlchemy implementation of the user directory."""

from typing import Iterable
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.user import User
from infrastructure.database.models import UserModel


class SQLAlchemyUserRepository:
    """SQLAlchemy implementation of IUserRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> User | None:
        """Get a user by ID."""
        model = await self._session.get(UserModel, id)
        return self._to_entity(model) if model else None

    async def get_by_username(self, username: str) -> User | None:
        """Get a user by username (case-insensitive)."""
        stmt = select(UserModel).where(func.lower(UserModel.username) == username.lower())
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_many(self, ids: Iterable[UUID]) -> dict[UUID, User]:
        """Get several users keyed by ID."""
        id_list = list(ids)
        if not id_list:
            return {}
        stmt = select(UserModel).where(UserModel.id.in_(id_list))
        result = await self._session.execute(stmt)
        return {model.id: self._to_entity(model) for model in result.scalars()}

    def _to_entity(self, model: UserModel) -> User:
        """Convert ORM model to domain entity."""
        return User(
            id=model.id,
            username=model.username,
            date_joined=model.date_joined,
        )
