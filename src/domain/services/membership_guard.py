"""Membership predicates over a loaded group.

Pure functions with no I/O; the authorization pipeline composes them.
"""

from uuid import UUID

from domain.entities.group import Group


def is_member(group: Group, user_id: UUID | None) -> bool:
    return user_id is not None and user_id in group.members


def is_admin(group: Group, user_id: UUID | None) -> bool:
    return user_id is not None and user_id in group.administrators


def is_visible(group: Group, user_id: UUID | None) -> bool:
    """Public groups are visible to anyone, private ones only to members."""
    return not group.is_private or is_member(group, user_id)


def is_joinable_by_self(group: Group) -> bool:
    return not group.is_private


def requires_admin_to_add(group: Group) -> bool:
    return group.is_private
