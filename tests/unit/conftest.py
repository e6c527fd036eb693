"""Shared fixtures for unit tests."""

from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from domain.entities.user import CallerContext


class FakeUnitOfWork:
    """Fake Unit of Work with repository mocks for unit testing.

    Lookups default to "nothing found" so tests only stub what they need.
    """

    def __init__(self) -> None:
        self.groups = AsyncMock()
        self.users = AsyncMock()
        self.freets = AsyncMock()
        self.groups.get.return_value = None
        self.groups.get_by_name.return_value = None
        self.groups.get_group_id_for_post.return_value = None
        self.users.get.return_value = None
        self.users.get_by_username.return_value = None
        self.users.get_many.return_value = {}
        self.freets.get.return_value = None
        self.freets.get_many.return_value = {}
        self.committed = False
        self.rolled_back = False

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork()


@pytest.fixture
def user_id() -> UUID:
    """A random user ID."""
    return uuid4()


@pytest.fixture
def actor_id() -> UUID:
    """A random actor ID (distinct from user_id)."""
    return uuid4()


@pytest.fixture
def caller(user_id: UUID) -> CallerContext:
    """A signed-in caller."""
    return CallerContext(user_id=user_id)
