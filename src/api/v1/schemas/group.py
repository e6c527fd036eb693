"""Pydantic schemas for Group API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """Fields are exchanged in camelCase (``isPrivate``, ``freetId``)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GroupCreate(_CamelModel):
    """Schema for creating a group.

    Both fields are validated by the group checks rather than by the schema,
    so their errors are reported in check order. ``is_private`` is kept
    exactly as sent; numbers are never coerced to booleans.
    """

    name: str | None = None
    is_private: Any = None


class GroupMemberRequest(_CamelModel):
    """Target of a member or admin change.

    ``user_id`` wins over ``username``. An empty body on the member route
    means the caller is joining.
    """

    user_id: str | None = None
    username: str | None = None


class GroupFreetRequest(_CamelModel):
    """Freet to attach to or detach from a group."""

    freet_id: str | None = None


class FreetSummaryResponse(_CamelModel):
    """Schema for a freet inside a group."""

    id: UUID
    author: str
    content: str
    in_group: bool
    date_created: datetime
    date_modified: datetime


class GroupResponse(_CamelModel):
    """Schema for Group response."""

    id: UUID
    name: str
    administrators: list[str]
    members: list[str]
    posts: list[FreetSummaryResponse]
    is_private: bool


class GroupListResponse(BaseModel):
    """Schema for list of Groups response."""

    data: list[GroupResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class GroupDetailResponse(BaseModel):
    """Schema for single Group response."""

    data: GroupResponse
    message: str | None = None


class GroupReconcileResponse(BaseModel):
    """Schema for a post-link reconciliation result."""

    data: GroupResponse
    removed: list[UUID]
