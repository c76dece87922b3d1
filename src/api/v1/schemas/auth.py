"""Pydantic schemas for the authentication API."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import ConfigDict, Field

from api.v1.schemas.common import CamelModel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class SendInviteRequest(CamelModel):
    """Schema for inviting an email address into the current group."""

    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    name: str | None = Field(None, max_length=100)
    role: Literal["admin", "member"] = "member"


class SendLoginLinkRequest(CamelModel):
    """Schema for requesting a login link."""

    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)


class VerifyMagicLinkRequest(CamelModel):
    """Schema for redeeming a magic link.

    ``name`` is only needed when an invite creates a new account.
    """

    token: str = Field(..., min_length=1, max_length=128)
    name: str | None = None


class GroupSelectionRequest(CamelModel):
    """Schema for switching or selecting the active group."""

    group_id: UUID


class UserResponse(CamelModel):
    """Schema for User response."""

    id: UUID
    name: str
    email: str
    created_at: datetime


class GroupSummaryResponse(CamelModel):
    """A group from the perspective of the current user."""

    id: UUID
    name: str
    owner_id: UUID
    role: str
    joined_at: datetime


class SessionResponse(CamelModel):
    """Session body returned after redemption, refresh or group changes.

    Without an access token the client must pick one of ``groups``.
    """

    access_token: str | None = None
    user: UserResponse
    current_group: GroupSummaryResponse | None = None
    groups: list[GroupSummaryResponse] = Field(default_factory=list)
    needs_group_selection: bool = False


class NeedsNameResponse(CamelModel):
    """Returned when an invite for a new account still needs a display name."""

    model_config = ConfigDict(extra="forbid")

    needs_name: bool = True


class InviteResponse(CamelModel):
    """Acknowledgement of a sent invite."""

    message: str = "Invite sent successfully"
    email: str
    name: str | None = None
    role: str
