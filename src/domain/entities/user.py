"""User and caller domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4


@dataclass
class User:
    """Domain entity for a registered user."""

    username: str
    id: UUID = field(default_factory=uuid4)
    date_joined: datetime = field(default_factory=datetime.utcnow)


@dataclass(frozen=True)
class CallerContext:
    """Identity of whoever issued the current request.

    Built once per request from the session token and passed explicitly to
    every check; ``user_id`` is None for anonymous callers.
    """

    user_id: UUID | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


ANONYMOUS = CallerContext()
