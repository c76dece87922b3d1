"""Pydantic schemas for Group API."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import Field, model_validator

from api.v1.schemas.auth import GroupSummaryResponse
from api.v1.schemas.common import CamelModel


class GroupCreate(CamelModel):
    """Schema for creating a group."""

    name: str = Field(..., min_length=1, max_length=255)


class GroupResponse(CamelModel):
    """Schema for Group response."""

    id: UUID
    name: str
    owner_id: UUID
    created_at: datetime


class GroupDetailResponse(CamelModel):
    """Schema for single Group response."""

    data: GroupResponse


class GroupListResponse(CamelModel):
    """Schema for the current user's groups."""

    data: list[GroupSummaryResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class GroupMemberResponse(CamelModel):
    """Schema for Group Member response."""

    user_id: UUID
    name: str
    email: str
    role: str
    is_owner: bool = False
    joined_at: datetime


class GroupMemberDetailResponse(CamelModel):
    """Schema for single Group Member response."""

    data: GroupMemberResponse


class GroupMemberListResponse(CamelModel):
    """Schema for list of Group Members response."""

    data: list[GroupMemberResponse]
    owner_id: UUID
    meta: dict[str, Any] = Field(default_factory=dict)


class GroupMemberUpdate(CamelModel):
    """Schema for changing a member's role and/or display name."""

    role: Literal["admin", "member"] | None = None
    name: str | None = None

    @model_validator(mode="after")
    def require_change(self) -> "GroupMemberUpdate":
        if self.role is None and self.name is None:
            raise ValueError("Provide a role or a name")
        return self
