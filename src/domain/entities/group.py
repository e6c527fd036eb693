"""Group domain entities."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from domain.entities.freet import FreetSummary


class GroupRole(str, Enum):
    """Role within a group."""

    ADMIN = "admin"
    MEMBER = "member"


def normalize_group_name(name: str) -> str:
    """Key used for case-insensitive name uniqueness."""
    return name.strip().lower()


@dataclass(frozen=True)
class Group:
    """Domain entity for a group of shared freets.

    Membership collections are immutable tuples kept in join order. The
    ``with_*`` helpers return a new Group and never touch the receiver.
    Administrators are always also members.
    """

    name: str
    id: UUID = field(default_factory=uuid4)
    administrators: tuple[UUID, ...] = ()
    members: tuple[UUID, ...] = ()
    posts: tuple[UUID, ...] = ()
    is_private: bool = False
    created_at: datetime = field(default_factory=datetime.utcnow)

    @classmethod
    def found(cls, name: str, founder: UUID, is_private: bool) -> "Group":
        """Create a group whose founder is its sole member and admin."""
        return cls(
            name=name.strip(),
            administrators=(founder,),
            members=(founder,),
            is_private=is_private,
        )

    @property
    def name_key(self) -> str:
        return normalize_group_name(self.name)

    def with_member(self, user_id: UUID) -> "Group":
        if user_id in self.members:
            return self
        return replace(self, members=self.members + (user_id,))

    def with_administrator(self, user_id: UUID) -> "Group":
        group = self.with_member(user_id)
        if user_id in group.administrators:
            return group
        return replace(group, administrators=group.administrators + (user_id,))

    def with_post(self, post_id: UUID) -> "Group":
        if post_id in self.posts:
            return self
        return replace(self, posts=self.posts + (post_id,))

    def without_post(self, post_id: UUID) -> "Group":
        return replace(self, posts=tuple(p for p in self.posts if p != post_id))

    def with_privacy(self, is_private: bool) -> "Group":
        return replace(self, is_private=is_private)


@dataclass
class GroupSnapshot:
    """A group with member ids resolved to usernames and posts to summaries."""

    group: Group
    administrators: list[str] = field(default_factory=list)
    members: list[str] = field(default_factory=list)
    posts: list[FreetSummary] = field(default_factory=list)
