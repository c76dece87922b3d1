"""Helpers shared by routes that return sessions."""

from fastapi import Response

from api.v1.schemas.auth import GroupSummaryResponse, SessionResponse, UserResponse
from core.config import settings
from domain.entities.group import GroupSummary
from domain.entities.session import SessionResult
from domain.entities.user import User


def build_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        created_at=user.created_at,
    )


def build_group_summary_response(group: GroupSummary) -> GroupSummaryResponse:
    return GroupSummaryResponse(
        id=group.id,
        name=group.name,
        owner_id=group.owner_id,
        role=group.role.value,
        joined_at=group.joined_at,
    )


def build_session_response(result: SessionResult) -> SessionResponse:
    """Convert a session result into the response body."""
    return SessionResponse(
        access_token=result.access_token,
        user=build_user_response(result.user),
        current_group=(
            build_group_summary_response(result.current_group)
            if result.current_group
            else None
        ),
        groups=[build_group_summary_response(g) for g in result.groups],
        needs_group_selection=result.needs_group_selection,
    )


def set_refresh_cookie(response: Response, refresh_token: str) -> None:
    """Store the refresh token in an HTTP-only cookie."""
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=refresh_token,
        max_age=settings.refresh_token_ttl_seconds,
        path="/",
        secure=True,
        httponly=True,
        samesite="strict",
    )


def clear_refresh_cookie(response: Response) -> None:
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value="",
        max_age=0,
        path="/",
        secure=True,
        httponly=True,
        samesite="strict",
    )
