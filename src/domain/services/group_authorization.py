"""Ordered authorization chains for group operations.

Every operation is a tuple of checks evaluated left to right. A check looks
at the request, may load and cache entities on it, and returns the error to
report or None. The first error wins, so the order of a chain decides which
status code a caller sees when several things are wrong at once.
"""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from core.config import settings
from core.exceptions import (
    AlreadyAGroupAdminError,
    AlreadyAGroupMemberError,
    AppException,
    FreetAlreadyInGroupError,
    FreetInAnotherGroupError,
    FreetNotFoundError,
    FreetNotInGroupError,
    GroupNameTakenError,
    GroupNotFoundError,
    GroupNotJoinableError,
    GroupNotVisibleError,
    InvalidGroupNameError,
    InvalidIdentifierError,
    InvalidPrivacySettingError,
    MissingIdentifierError,
    MissingPrivacySettingError,
    NotAGroupAdminError,
    NotAGroupMemberError,
    NotAuthenticatedError,
    UserNotFoundError,
)
from domain.entities.freet import Freet
from domain.entities.group import Group
from domain.entities.user import CallerContext, User
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services import membership_guard as guard

# Raw client value. Only booleans, "true", "false" and blank are valid.
PrivacyFlag = Any


@dataclass
class GroupRequest:
    """Raw inputs of one group operation plus whatever the checks load.

    Identifiers arrive as strings exactly as the client sent them; the
    checks parse them so malformed ids are rejected before any lookup.
    """

    uow: IUnitOfWork
    caller: CallerContext
    group_id: str | None = None
    name: str | None = None
    privacy: PrivacyFlag = None
    user_id: str | None = None
    username: str | None = None
    freet_id: str | None = None

    # Populated by checks
    group: Group | None = None
    target_user: User | None = None
    freet: Freet | None = None

    @property
    def caller_id(self) -> UUID:
        """The signed-in caller. Anonymous callers are rejected."""
        if self.caller.user_id is None:
            raise NotAuthenticatedError()
        return self.caller.user_id

    @property
    def loaded_group(self) -> Group:
        if self.group is None:
            raise RuntimeError("group_exists must run before this check")
        return self.group

    @property
    def loaded_user(self) -> User:
        if self.target_user is None:
            raise RuntimeError("target_user_exists must run before this check")
        return self.target_user

    @property
    def loaded_freet(self) -> Freet:
        if self.freet is None:
            raise RuntimeError("freet_exists must run before this check")
        return self.freet


Check = Callable[[GroupRequest], Awaitable[AppException | None]]


async def run_checks(request: GroupRequest, checks: Sequence[Check]) -> None:
    """Run checks in order and raise the first failure."""
    for check in checks:
        error = await check(request)
        if error is not None:
            raise error


def parse_identifier(value: str) -> UUID | None:
    try:
        return UUID(value.strip())
    except (AttributeError, ValueError):
        return None


def is_valid_privacy_flag(value: PrivacyFlag) -> bool:
    """Accept booleans, the literals "true"/"false", or blank."""
    if value is None or isinstance(value, bool):
        return True
    if not isinstance(value, str):
        return False
    return value in ("true", "false") or not value.strip()


def privacy_flag_value(value: PrivacyFlag) -> bool | None:
    """Interpret a valid flag. Blank means no value was given."""
    if isinstance(value, bool):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    return value == "true"


# --- Caller checks ---


async def caller_authenticated(request: GroupRequest) -> AppException | None:
    if not request.caller.is_authenticated:
        return NotAuthenticatedError()
    return None


async def caller_is_member(request: GroupRequest) -> AppException | None:
    group = request.loaded_group
    if not guard.is_member(group, request.caller.user_id):
        return NotAGroupMemberError(
            str(group.id),
            str(request.caller.user_id) if request.caller.user_id else None,
        )
    return None


async def caller_is_admin(request: GroupRequest) -> AppException | None:
    group = request.loaded_group
    if not guard.is_admin(group, request.caller.user_id):
        return NotAGroupAdminError(str(group.id))
    return None


async def caller_not_member(request: GroupRequest) -> AppException | None:
    if guard.is_member(request.loaded_group, request.caller.user_id):
        return AlreadyAGroupMemberError(str(request.caller.user_id))
    return None


# --- Group checks ---


async def group_exists(request: GroupRequest) -> AppException | None:
    raw = request.group_id
    if raw is None or not raw.strip():
        return MissingIdentifierError("groupId")

    group_id = parse_identifier(raw)
    group = await request.uow.groups.get(group_id) if group_id else None
    if group is None:
        return GroupNotFoundError(raw)

    request.group = group
    return None


async def group_visible(request: GroupRequest) -> AppException | None:
    group = request.loaded_group
    if not guard.is_visible(group, request.caller.user_id):
        return GroupNotVisibleError(str(group.id))
    return None


async def group_is_public(request: GroupRequest) -> AppException | None:
    group = request.loaded_group
    if not guard.is_joinable_by_self(group):
        return GroupNotJoinableError(str(group.id))
    return None


async def group_joinable_by_caller(request: GroupRequest) -> AppException | None:
    """Private groups take members from admins only; public ones from anyone signed in."""
    group = request.loaded_group
    if guard.requires_admin_to_add(group):
        if not guard.is_admin(group, request.caller.user_id):
            return GroupNotJoinableError(str(group.id))
        return None
    if not request.caller.is_authenticated:
        return NotAuthenticatedError()
    return None


# --- Name and privacy checks ---


async def name_not_empty(request: GroupRequest) -> AppException | None:
    name = (request.name or "").strip()
    if not name:
        return InvalidGroupNameError()
    if len(name) > settings.group_name_max_length:
        return InvalidGroupNameError(
            f"Group name must be at most {settings.group_name_max_length} characters"
        )
    return None


async def name_not_in_use(request: GroupRequest) -> AppException | None:
    name = (request.name or "").strip()
    if await request.uow.groups.get_by_name(name) is not None:
        return GroupNameTakenError(name)
    return None


async def privacy_flag_present(request: GroupRequest) -> AppException | None:
    if request.privacy is None:
        return MissingPrivacySettingError()
    return None


async def privacy_flag_valid(request: GroupRequest) -> AppException | None:
    if not is_valid_privacy_flag(request.privacy):
        return InvalidPrivacySettingError(str(request.privacy))
    return None


# --- Target user checks ---


async def target_user_exists(request: GroupRequest) -> AppException | None:
    """Resolve the target from ``user_id`` or, failing that, ``username``."""
    if request.user_id is not None:
        if not request.user_id.strip():
            return MissingIdentifierError("userId")
        user_id = parse_identifier(request.user_id)
        if user_id is None:
            return InvalidIdentifierError("userId", request.user_id)
        user = await request.uow.users.get(user_id)
        ref = request.user_id
    elif request.username is not None and request.username.strip():
        user = await request.uow.users.get_by_username(request.username.strip())
        ref = request.username
    else:
        return MissingIdentifierError("userId")

    if user is None:
        return UserNotFoundError(ref)

    request.target_user = user
    return None


async def target_not_member(request: GroupRequest) -> AppException | None:
    user = request.loaded_user
    if guard.is_member(request.loaded_group, user.id):
        return AlreadyAGroupMemberError(str(user.id))
    return None


async def target_is_member(request: GroupRequest) -> AppException | None:
    group = request.loaded_group
    user = request.loaded_user
    if not guard.is_member(group, user.id):
        return NotAGroupMemberError(str(group.id), str(user.id))
    return None


async def target_not_admin(request: GroupRequest) -> AppException | None:
    user = request.loaded_user
    if guard.is_admin(request.loaded_group, user.id):
        return AlreadyAGroupAdminError(str(user.id))
    return None


# --- Freet checks ---


async def freet_exists(request: GroupRequest) -> AppException | None:
    raw = request.freet_id
    if raw is None or not raw.strip():
        return MissingIdentifierError("freetId")

    freet_id = parse_identifier(raw)
    if freet_id is None:
        return InvalidIdentifierError("freetId", raw)

    freet = await request.uow.freets.get(freet_id)
    if freet is None:
        return FreetNotFoundError(raw)

    request.freet = freet
    return None


async def freet_not_in_group(request: GroupRequest) -> AppException | None:
    freet = request.loaded_freet
    if freet.id in request.loaded_group.posts:
        return FreetAlreadyInGroupError(str(freet.id))
    return None


async def freet_not_linked_elsewhere(request: GroupRequest) -> AppException | None:
    freet = request.loaded_freet
    linked_to = await request.uow.groups.get_group_id_for_post(freet.id)
    if linked_to is not None and linked_to != request.loaded_group.id:
        return FreetInAnotherGroupError(str(freet.id))
    return None


async def freet_in_group(request: GroupRequest) -> AppException | None:
    freet = request.loaded_freet
    if freet.id not in request.loaded_group.posts:
        return FreetNotInGroupError(str(freet.id))
    return None


# --- Chains ---

LIST_GROUPS: tuple[Check, ...] = (caller_authenticated,)

VIEW_GROUP: tuple[Check, ...] = (
    group_exists,
    caller_authenticated,
    group_visible,
)

CREATE_GROUP: tuple[Check, ...] = (
    caller_authenticated,
    name_not_empty,
    name_not_in_use,
    privacy_flag_valid,
)

DELETE_GROUP: tuple[Check, ...] = (
    group_exists,
    caller_authenticated,
    caller_is_admin,
)

RECONCILE_FREETS: tuple[Check, ...] = DELETE_GROUP

SET_PRIVACY: tuple[Check, ...] = (
    group_exists,
    caller_authenticated,
    caller_is_admin,
    privacy_flag_present,
    privacy_flag_valid,
)

JOIN_GROUP: tuple[Check, ...] = (
    group_exists,
    caller_authenticated,
    group_is_public,
    caller_not_member,
)

ADD_MEMBER: tuple[Check, ...] = (
    group_exists,
    target_user_exists,
    group_joinable_by_caller,
    target_not_member,
)

PROMOTE_ADMIN: tuple[Check, ...] = (
    group_exists,
    target_user_exists,
    caller_is_admin,
    target_is_member,
    target_not_admin,
)

ATTACH_FREET: tuple[Check, ...] = (
    group_exists,
    caller_authenticated,
    caller_is_member,
    freet_exists,
    freet_not_in_group,
    freet_not_linked_elsewhere,
)

# Caller checks come last so the documented 404/409 outcomes keep priority.
DETACH_FREET: tuple[Check, ...] = (
    group_exists,
    freet_exists,
    freet_in_group,
    caller_authenticated,
    caller_is_member,
)
