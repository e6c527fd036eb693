"""SQLAlchemy implementation of the freet store."""

from typing import Iterable
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.freet import Freet
from infrastructure.database.models import FreetModel


class SQLAlchemyFreetRepository:
    """SQLAlchemy implementation of IFreetRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Freet | None:
        """Get a freet by ID."""
        model = await self._session.get(FreetModel, id)
        return self._to_entity(model) if model else None

    async def get_many(self, ids: Iterable[UUID]) -> dict[UUID, Freet]:
        """Get several freets keyed by ID."""
        id_list = list(ids)
        if not id_list:
            return {}
        stmt = (
            select(FreetModel)
            .where(FreetModel.id.in_(id_list))
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return {model.id: self._to_entity(model) for model in result.scalars()}

    async def set_in_group(self, id: UUID, in_group: bool) -> bool:
        """Flag a freet as shared into a group."""
        stmt = update(FreetModel).where(FreetModel.id == id).values(in_group=in_group)
        result = await self._session.execute(stmt)
        return bool(result.rowcount)

    async def delete(self, id: UUID) -> bool:
        """Delete a freet."""
        model = await self._session.get(FreetModel, id)
        if not model:
            return False

        await self._session.delete(model)
        await self._session.flush()
        return True

    def _to_entity(self, model: FreetModel) -> Freet:
        """Convert ORM model to domain entity."""
        return Freet(
            id=model.id,
            author_id=model.author_id,
            content=model.content,
            in_group=model.in_group,
            date_created=model.date_created,
            date_modified=model.date_modified,
        )
