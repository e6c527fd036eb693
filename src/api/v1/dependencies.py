"""Dependency injection factories for API v1."""

from functools import lru_cache
from typing import Callable

from domain.services.group_service import GroupService
from domain.services.post_association import PostAssociationManager
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@lru_cache
def get_post_association_manager() -> PostAssociationManager:
    """Get the group/freet link manager."""
    return PostAssociationManager()


@lru_cache
def get_group_service() -> GroupService:
    """Get Group service instance."""
    return GroupService(
        get_uow_factory(),
        post_association=get_post_association_manager(),
    )
