"""Group API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import AdminAuth, CurrentAuth, OwnerAuth, ensure_same_group
from api.dependencies.services import get_group_service
from api.v1.routes._session import build_group_summary_response
from api.v1.schemas.group import (
    GroupCreate,
    GroupDetailResponse,
    GroupListResponse,
    GroupMemberDetailResponse,
    GroupMemberListResponse,
    GroupMemberResponse,
    GroupMemberUpdate,
    GroupResponse,
)
from core.rate_limit import limiter
from domain.entities.group import GroupMemberView, MembershipRole
from domain.services.group_service import GroupService

router = APIRouter(prefix="/groups", tags=["groups"])


def _build_member_response(member: GroupMemberView, owner_id: UUID) -> GroupMemberResponse:
    return GroupMemberResponse(
        user_id=member.user_id,
        name=member.name,
        email=member.email,
        role=member.role.value,
        is_owner=member.user_id == owner_id,
        joined_at=member.joined_at,
    )


@router.get(
    "",
    response_model=GroupListResponse,
    summary="List my groups",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_groups(
    request: Request,
    ctx: CurrentAuth,
    service: GroupService = Depends(get_group_service),
) -> GroupListResponse:
    """Get every group the current user belongs to, with role and owner."""
    groups = await service.list_for_user(ctx.user_id)
    data = [build_group_summary_response(g) for g in groups]
    return GroupListResponse(data=data, meta={"total": len(data)})


@router.post(
    "",
    response_model=GroupDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a group",
    responses={
        201: {"description": "Group created"},
        401: {"description": "Not authenticated"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_group(
    request: Request,
    body: GroupCreate,
    ctx: CurrentAuth,
    service: GroupService = Depends(get_group_service),
) -> GroupDetailResponse:
    """Create a group. The caller becomes its owner and an admin member."""
    group = await service.create_group(ctx.user_id, body.name)
    return GroupDetailResponse(
        data=GroupResponse(
            id=group.id,
            name=group.name,
            owner_id=group.owner_id,
            created_at=group.created_at,
        )
    )


@router.delete(
    "/{group_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a group",
    responses={
        204: {"description": "Group deleted"},
        403: {"description": "Owner only, or a different group"},
        404: {"description": "Group not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def delete_group(
    request: Request,
    group_id: UUID,
    ctx: OwnerAuth,
    service: GroupService = Depends(get_group_service),
) -> None:
    """Delete the active group with all memberships. Owner only."""
    ensure_same_group(ctx, group_id, "Cannot delete a different group")
    await service.delete_group(group_id)
    return None


# --- Group Member Management ---


@router.get(
    "/{group_id}/members",
    response_model=GroupMemberListResponse,
    summary="List group members",
    responses={
        200: {"description": "Members of the group"},
        403: {"description": "Admin only, or a different group"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_group_members(
    request: Request,
    group_id: UUID,
    ctx: AdminAuth,
    service: GroupService = Depends(get_group_service),
) -> GroupMemberListResponse:
    """Get all members of the active group. Admin only."""
    ensure_same_group(ctx, group_id, "Cannot view members of a different group")
    group, members = await service.get_members(group_id)
    data = [_build_member_response(m, group.owner_id) for m in members]
    return GroupMemberListResponse(
        data=data,
        owner_id=group.owner_id,
        meta={"total": len(data)},
    )


@router.patch(
    "/{group_id}/members/{member_user_id}",
    response_model=GroupMemberDetailResponse,
    summary="Update a group member",
    responses={
        200: {"description": "Member updated"},
        403: {"description": "Admin only, owner protected, or a different group"},
        404: {"description": "Member not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_group_member(
    request: Request,
    group_id: UUID,
    member_user_id: UUID,
    body: GroupMemberUpdate,
    ctx: AdminAuth,
    service: GroupService = Depends(get_group_service),
) -> GroupMemberDetailResponse:
    """Change a member's role and/or name. The owner's role cannot change."""
    ensure_same_group(ctx, group_id, "Cannot modify members of a different group")
    group, member = await service.update_member(
        group_id,
        member_user_id,
        role=MembershipRole(body.role) if body.role else None,
        name=body.name,
    )
    return GroupMemberDetailResponse(data=_build_member_response(member, group.owner_id))


@router.delete(
    "/{group_id}/members/{member_user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove group member",
    responses={
        204: {"description": "Member removed from group"},
        403: {"description": "Admin only, owner protected, or a different group"},
        404: {"description": "Member not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def remove_group_member(
    request: Request,
    group_id: UUID,
    member_user_id: UUID,
    ctx: AdminAuth,
    service: GroupService = Depends(get_group_service),
) -> None:
    """Remove a member from the active group. The owner cannot be removed."""
    ensure_same_group(ctx, group_id, "Cannot remove members of a different group")
    await service.remove_member(group_id, member_user_id)
    return None
