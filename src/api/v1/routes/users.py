"""User API routes."""

from fastapi import APIRouter, Depends, Request

from api.dependencies.auth import CurrentAuth
from api.dependencies.services import get_session_service
from api.v1.routes._session import build_session_response
from api.v1.schemas.auth import SessionResponse
from core.rate_limit import limiter
from domain.services.session_service import SessionService

router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "/me",
    response_model=SessionResponse,
    response_model_exclude={"access_token"},
    summary="Current user",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_me(
    request: Request,
    ctx: CurrentAuth,
    service: SessionService = Depends(get_session_service),
) -> SessionResponse:
    """Get the current user, the active group and every group they belong to."""
    result = await service.current_session(ctx)
    return build_session_response(result)
