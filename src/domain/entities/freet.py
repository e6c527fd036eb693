"""Freet domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4


@dataclass
class Freet:
    """Domain entity for a Freet (a short shared post)."""

    author_id: UUID
    content: str
    id: UUID = field(default_factory=uuid4)
    in_group: bool = False
    date_created: datetime = field(default_factory=datetime.utcnow)
    date_modified: datetime = field(default_factory=datetime.utcnow)


@dataclass
class FreetSummary:
    """Freet as shown inside a group, with the author resolved to a username."""

    id: UUID
    author: str
    content: str
    in_group: bool
    date_created: datetime
    date_modified: datetime
