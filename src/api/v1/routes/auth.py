"""Authentication API routes."""

from fastapi import APIRouter, Depends, Request, Response

from api.dependencies.auth import AdminAuth, CurrentAuth
from api.dependencies.services import get_auth_service, get_session_service
from api.v1.routes._session import (
    build_session_response,
    clear_refresh_cookie,
    set_refresh_cookie,
)
from api.v1.schemas.auth import (
    GroupSelectionRequest,
    InviteResponse,
    NeedsNameResponse,
    SendInviteRequest,
    SendLoginLinkRequest,
    SessionResponse,
    VerifyMagicLinkRequest,
)
from api.v1.schemas.common import MessageResponse
from core.config import settings
from core.exceptions import AuthenticationError, ErrorCode
from core.rate_limit import limiter
from domain.entities.group import MembershipRole
from domain.entities.magic_link import RedemptionState
from domain.entities.session import SessionResult
from domain.services.auth_service import AuthService
from domain.services.session_service import SessionService

router = APIRouter(prefix="/auth", tags=["auth"])

LOGIN_LINK_MESSAGE = "If that email exists, a login link has been sent"


def _read_refresh_cookie(request: Request) -> str:
    token = request.cookies.get(settings.refresh_cookie_name)
    if not token:
        raise AuthenticationError(
            message="No refresh token provided",
            error_code=ErrorCode.UNAUTHORIZED,
        )
    return token


def _session_with_cookie(response: Response, result: SessionResult) -> SessionResponse:
    if result.refresh_token:
        set_refresh_cookie(response, result.refresh_token)
    return build_session_response(result)


@router.post(
    "/send-invite",
    response_model=InviteResponse,
    summary="Invite someone into the current group",
    responses={
        200: {"description": "Invite email sent"},
        400: {"description": "Email already belongs to a member"},
        401: {"description": "Not authenticated"},
        403: {"description": "Admin access required"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def send_invite(
    request: Request,
    body: SendInviteRequest,
    ctx: AdminAuth,
    service: AuthService = Depends(get_auth_service),
) -> InviteResponse:
    """Email a single-use invite link for the admin's active group."""
    record = await service.send_invite(
        ctx,
        email=body.email,
        role=MembershipRole(body.role),
        name=body.name,
    )
    return InviteResponse(email=record.email, name=body.name, role=body.role)


@router.post(
    "/send-login-link",
    response_model=MessageResponse,
    summary="Request a login link",
)
@limiter.limit("5/minute")  # type: ignore[untyped-decorator]
async def send_login_link(
    request: Request,
    body: SendLoginLinkRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Email a login link. The response never reveals whether the email exists."""
    await service.send_login_link(body.email)
    return MessageResponse(message=LOGIN_LINK_MESSAGE)


@router.post(
    "/verify-magic-link",
    response_model=SessionResponse | NeedsNameResponse,
    summary="Redeem a magic link",
    responses={
        200: {"description": "Session issued, or a display name is required"},
        400: {"description": "Token invalid, expired or already used"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def verify_magic_link(
    request: Request,
    response: Response,
    body: VerifyMagicLinkRequest,
    service: AuthService = Depends(get_auth_service),
) -> SessionResponse | NeedsNameResponse:
    """Redeem a magic link and start a session.

    Invites for new accounts first answer ``{"needsName": true}``; the
    client then presents the same token again together with a name.
    """
    result = await service.verify_magic_link(body.token, body.name)
    if result.state is RedemptionState.AWAITING_NAME or result.session is None:
        return NeedsNameResponse()
    return _session_with_cookie(response, result.session)


@router.post(
    "/refresh",
    response_model=SessionResponse,
    summary="Refresh the session",
    responses={
        200: {"description": "New token pair, or group selection required"},
        401: {"description": "Missing or invalid refresh token"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def refresh(
    request: Request,
    response: Response,
    service: SessionService = Depends(get_session_service),
) -> SessionResponse:
    """Rotate the refresh cookie and issue an access token with the live role."""
    result = await service.refresh(_read_refresh_cookie(request))
    return _session_with_cookie(response, result)


@router.post(
    "/switch-group",
    response_model=SessionResponse,
    summary="Switch the active group",
    responses={
        200: {"description": "Session scoped to the new group"},
        403: {"description": "Not a member of the group"},
        404: {"description": "Group not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def switch_group(
    request: Request,
    response: Response,
    body: GroupSelectionRequest,
    ctx: CurrentAuth,
    service: SessionService = Depends(get_session_service),
) -> SessionResponse:
    """Re-scope the session to another group the user belongs to."""
    result = await service.switch_group(ctx.user_id, body.group_id)
    return _session_with_cookie(response, result)


@router.post(
    "/select-group",
    response_model=SessionResponse,
    summary="Select an active group",
    responses={
        200: {"description": "Session scoped to the selected group"},
        401: {"description": "Missing or invalid refresh token"},
        403: {"description": "Not a member of the group"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def select_group(
    request: Request,
    response: Response,
    body: GroupSelectionRequest,
    service: SessionService = Depends(get_session_service),
) -> SessionResponse:
    """Pick a group after a login or refresh asked for group selection."""
    result = await service.select_group(_read_refresh_cookie(request), body.group_id)
    return _session_with_cookie(response, result)


@router.post("/logout", response_model=MessageResponse, summary="Log out")
async def logout(response: Response) -> MessageResponse:
    """Clear the refresh cookie. Issued tokens remain valid until they expire."""
    clear_refresh_cookie(response)
    return MessageResponse(message="Logged out successfully")
