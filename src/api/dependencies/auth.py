"""Authentication and authorization dependencies for FastAPI."""

from typing import Annotated, Callable
from uuid import UUID

import structlog
from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from api.dependencies.services import get_session_service, get_uow_factory
from core.exceptions import (
    AdminRequiredError,
    AuthenticationError,
    CrossGroupAccessError,
    ErrorCode,
    OwnerRequiredError,
)
from domain.entities.session import AuthContext
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.session_service import SessionService

logger = structlog.get_logger()

# Security scheme for OpenAPI docs
security = HTTPBearer(auto_error=False)


def extract_token(
    credentials: HTTPAuthorizationCredentials | None, query_token: str | None
) -> str | None:
    """Pick the presented token; the Authorization header wins over ``?token=``."""
    if credentials and credentials.credentials:
        return credentials.credentials
    return query_token or None


async def get_auth_context(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None,
        Depends(security),
    ],
    token: Annotated[str | None, Query(include_in_schema=False)] = None,
    sessions: SessionService = Depends(get_session_service),
) -> AuthContext:
    """
    Dependency requiring a valid access token.

    Raises:
        AuthenticationError: If no token is presented, or it is invalid,
            expired or not an access token
    """
    presented = extract_token(credentials, token)
    if not presented:
        raise AuthenticationError(
            message="Unauthorized",
            error_code=ErrorCode.UNAUTHORIZED,
        )

    claims = sessions.decode_access(presented)
    if not claims:
        raise AuthenticationError(
            message="Invalid or expired token",
            error_code=ErrorCode.INVALID_TOKEN,
        )

    structlog.contextvars.bind_contextvars(user_id=str(claims.user_id))
    return AuthContext(
        user_id=claims.user_id,
        group_id=claims.group_id,
        role=claims.role,
    )


CurrentAuth = Annotated[AuthContext, Depends(get_auth_context)]


async def require_admin(
    ctx: CurrentAuth,
    uow_factory: Callable[[], IUnitOfWork] = Depends(get_uow_factory),
) -> AuthContext:
    """
    Dependency requiring a live admin membership in the token's group.

    The role in the token is ignored: a demoted admin is rejected even
    while their access token is still valid.

    Raises:
        AdminRequiredError: If the membership is gone or is not admin
    """
    async with uow_factory() as uow:
        membership = await uow.groups.get_membership(ctx.user_id, ctx.group_id)

    if not membership or not membership.is_admin:
        logger.info(
            "admin_check_failed",
            user_id=str(ctx.user_id),
            group_id=str(ctx.group_id),
        )
        raise AdminRequiredError()

    return AuthContext(user_id=ctx.user_id, group_id=ctx.group_id, role=membership.role)


async def require_owner(
    ctx: CurrentAuth,
    uow_factory: Callable[[], IUnitOfWork] = Depends(get_uow_factory),
) -> AuthContext:
    """
    Dependency requiring the caller to own the token's group.

    Ownership is read from the group row, independent of membership role.

    Raises:
        OwnerRequiredError: If the group is gone or owned by someone else
    """
    async with uow_factory() as uow:
        group = await uow.groups.get(ctx.group_id)

    if not group or not group.is_owned_by(ctx.user_id):
        logger.info(
            "owner_check_failed",
            user_id=str(ctx.user_id),
            group_id=str(ctx.group_id),
        )
        raise OwnerRequiredError()

    return ctx


# Type aliases for convenience in route handlers
AdminAuth = Annotated[AuthContext, Depends(require_admin)]
OwnerAuth = Annotated[AuthContext, Depends(require_owner)]


def ensure_same_group(
    ctx: AuthContext,
    group_id: UUID,
    message: str = "Cannot access a different group",
) -> None:
    """Reject a path ``group_id`` that differs from the session's group."""
    if group_id != ctx.group_id:
        logger.info(
            "cross_group_access_denied",
            user_id=str(ctx.user_id),
            group_id=str(ctx.group_id),
            target_group_id=str(group_id),
        )
        raise CrossGroupAccessError(message)
