"""Group API routes."""

from fastapi import APIRouter, Depends, Query, Request, status

from api.dependencies.auth import Caller
from api.v1.dependencies import get_group_service
from api.v1.schemas.common import ErrorResponse, MessageResponse
from api.v1.schemas.group import (
    FreetSummaryResponse,
    GroupCreate,
    GroupDetailResponse,
    GroupFreetRequest,
    GroupListResponse,
    GroupMemberRequest,
    GroupReconcileResponse,
    GroupResponse,
)
from core.rate_limit import limiter
from domain.entities.group import GroupSnapshot
from domain.services.group_service import GroupService

router = APIRouter(prefix="/groups", tags=["groups"])


def _error(description: str) -> dict:
    return {"description": description, "model": ErrorResponse}


@router.get(
    "/member",
    response_model=GroupListResponse,
    summary="List groups the caller belongs to",
    responses={403: _error("Not logged in")},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_member_groups(
    request: Request,
    caller: Caller,
    service: GroupService = Depends(get_group_service),
) -> GroupListResponse:
    """Get all groups the caller is a member of."""
    snapshots = await service.get_for_member(caller)
    data = [_build_group_response(s) for s in snapshots]
    return GroupListResponse(data=data, meta={"total": len(data)})


@router.get(
    "/admin",
    response_model=GroupListResponse,
    summary="List groups the caller administers",
    responses={403: _error("Not logged in")},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_admin_groups(
    request: Request,
    caller: Caller,
    service: GroupService = Depends(get_group_service),
) -> GroupListResponse:
    """Get all groups the caller is an admin of."""
    snapshots = await service.get_for_admin(caller)
    data = [_build_group_response(s) for s in snapshots]
    return GroupListResponse(data=data, meta={"total": len(data)})


@router.get(
    "/{group_id}",
    response_model=GroupDetailResponse,
    summary="Get a group",
    responses={
        400: _error("Blank group ID (whitespace only)"),
        403: _error("Not logged in, or private group and not a member"),
        404: _error("Group not found"),
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_group(
    request: Request,
    group_id: str,
    caller: Caller,
    service: GroupService = Depends(get_group_service),
) -> GroupDetailResponse:
    """Get a group. Private groups are visible to their members only."""
    snapshot = await service.get_by_id(group_id, caller)
    return GroupDetailResponse(data=_build_group_response(snapshot))


@router.post(
    "",
    response_model=GroupDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a group",
    responses={
        400: _error("Empty or overlong name"),
        403: _error("Not logged in"),
        409: _error("Name already taken"),
        412: _error("Privacy setting is not true/false"),
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_group(
    request: Request,
    caller: Caller,
    body: GroupCreate | None = None,
    service: GroupService = Depends(get_group_service),
) -> GroupDetailResponse:
    """Create a group with the caller as founding member and admin."""
    body = body or GroupCreate()
    snapshot = await service.create(caller, body.name, body.is_private)
    return GroupDetailResponse(
        data=_build_group_response(snapshot),
        message="Your group was created successfully.",
    )


@router.delete(
    "/{group_id}",
    response_model=MessageResponse,
    summary="Delete a group and all its freets",
    responses={
        403: _error("Not logged in or not a group admin"),
        404: _error("Group not found"),
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def delete_group(
    request: Request,
    group_id: str,
    caller: Caller,
    service: GroupService = Depends(get_group_service),
) -> MessageResponse:
    """Delete a group. Every freet in it is deleted too."""
    await service.delete(group_id, caller)
    return MessageResponse(message="Your group and all its freets were deleted successfully.")


@router.patch(
    "/{group_id}",
    response_model=GroupDetailResponse,
    summary="Change a group's privacy setting",
    responses={
        400: _error("Privacy setting missing"),
        403: _error("Not logged in or not a group admin"),
        404: _error("Group not found"),
        412: _error("Privacy setting is not true/false"),
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def set_group_privacy(
    request: Request,
    group_id: str,
    caller: Caller,
    is_private: str | None = Query(None, alias="isPrivate"),
    service: GroupService = Depends(get_group_service),
) -> GroupDetailResponse:
    """Set ``isPrivate``. A blank value leaves the group unchanged."""
    snapshot = await service.set_privacy(group_id, caller, is_private)
    return GroupDetailResponse(
        data=_build_group_response(snapshot),
        message="Your group privacy setting was updated successfully.",
    )


# --- Group Member Management ---


@router.patch(
    "/{group_id}/member",
    response_model=GroupDetailResponse,
    summary="Add a group member or join a group",
    responses={
        400: _error("Missing or malformed user reference"),
        403: _error("Private group and caller is not an admin, or not logged in"),
        404: _error("Group or user not found"),
        409: _error("Already a member"),
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def add_group_member(
    request: Request,
    group_id: str,
    caller: Caller,
    body: GroupMemberRequest | None = None,
    service: GroupService = Depends(get_group_service),
) -> GroupDetailResponse:
    """Add ``userId``/``username`` to the group, or join it when neither is given."""
    body = body or GroupMemberRequest()
    snapshot = await service.add_member(
        group_id,
        caller,
        user_id=body.user_id,
        username=body.username,
    )
    return GroupDetailResponse(
        data=_build_group_response(snapshot),
        message="Your group's members list was updated successfully.",
    )


@router.patch(
    "/{group_id}/admin",
    response_model=GroupDetailResponse,
    summary="Promote a member to admin",
    responses={
        400: _error("Missing or malformed user reference"),
        403: _error("Caller is not an admin, or target is not a member"),
        404: _error("Group or user not found"),
        409: _error("Already an admin"),
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def promote_group_admin(
    request: Request,
    group_id: str,
    caller: Caller,
    body: GroupMemberRequest | None = None,
    service: GroupService = Depends(get_group_service),
) -> GroupDetailResponse:
    """Make an existing member an administrator."""
    body = body or GroupMemberRequest()
    snapshot = await service.promote_administrator(
        group_id,
        caller,
        user_id=body.user_id,
        username=body.username,
    )
    return GroupDetailResponse(
        data=_build_group_response(snapshot),
        message="Your group's administrators list was updated successfully.",
    )


# --- Group Freets ---


@router.patch(
    "/{group_id}/post",
    response_model=GroupDetailResponse,
    summary="Share a freet into a group",
    responses={
        400: _error("Missing or malformed freet ID"),
        403: _error("Not logged in or not a member"),
        404: _error("Group or freet not found"),
        409: _error("Freet already in this or another group"),
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def attach_group_freet(
    request: Request,
    group_id: str,
    caller: Caller,
    body: GroupFreetRequest | None = None,
    service: GroupService = Depends(get_group_service),
) -> GroupDetailResponse:
    """Attach a freet to the group."""
    body = body or GroupFreetRequest()
    snapshot = await service.attach_freet(group_id, caller, body.freet_id)
    return GroupDetailResponse(
        data=_build_group_response(snapshot),
        message="Your group's posts were updated successfully.",
    )


@router.patch(
    "/{group_id}/post/remove",
    response_model=GroupDetailResponse,
    summary="Remove (and delete) a freet from a group",
    responses={
        400: _error("Missing or malformed freet ID"),
        403: _error("Not logged in or not a member"),
        404: _error("Group or freet not found"),
        409: _error("Freet is not in the group"),
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def detach_group_freet(
    request: Request,
    group_id: str,
    caller: Caller,
    body: GroupFreetRequest | None = None,
    service: GroupService = Depends(get_group_service),
) -> GroupDetailResponse:
    """Detach a freet from the group. The freet is deleted."""
    body = body or GroupFreetRequest()
    snapshot = await service.detach_freet(group_id, caller, body.freet_id)
    return GroupDetailResponse(
        data=_build_group_response(snapshot),
        message="Your group's posts were updated successfully.",
    )


@router.patch(
    "/{group_id}/post/reconcile",
    response_model=GroupReconcileResponse,
    summary="Drop links to freets that no longer exist",
    responses={
        403: _error("Not logged in or not a group admin"),
        404: _error("Group not found"),
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def reconcile_group_freets(
    request: Request,
    group_id: str,
    caller: Caller,
    service: GroupService = Depends(get_group_service),
) -> GroupReconcileResponse:
    """Repair a group left with dangling freet links."""
    snapshot, removed = await service.reconcile_freets(group_id, caller)
    return GroupReconcileResponse(data=_build_group_response(snapshot), removed=removed)


def _build_group_response(snapshot: GroupSnapshot) -> GroupResponse:
    """Convert a group snapshot to the response schema."""
    group = snapshot.group
    return GroupResponse(
        id=group.id,
        name=group.name,
        administrators=snapshot.administrators,
        members=snapshot.members,
        posts=[
            FreetSummaryResponse(
                id=post.id,
                author=post.author,
                content=post.content,
                in_group=post.in_group,
                date_created=post.date_created,
                date_modified=post.date_modified,
            )
            for post in snapshot.posts
        ],
        is_private=group.is_private,
    )
