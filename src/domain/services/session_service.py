"""Session issuer: token pairs, refresh rotation and group switching."""

from collections.abc import Callable
from uuid import UUID

import structlog

from core.exceptions import (
    AuthenticationError,
    ErrorCode,
    GroupNotFoundError,
    NotAGroupMemberError,
    UserNotFoundError,
)
from domain.entities.group import MembershipRole
from domain.entities.session import (
    AuthContext,
    SessionClaims,
    SessionResult,
    TokenKind,
    TokenPair,
)
from domain.entities.user import User
from domain.repositories.unit_of_work import IUnitOfWork
from infrastructure.auth.provider import ISessionTokenCodec

logger = structlog.get_logger()

ACCESS_TOKEN_TTL_SECONDS = 15 * 60
REFRESH_TOKEN_TTL_SECONDS = 30 * 24 * 60 * 60


class SessionService:
    """Turns verified identities into signed token pairs.

    Roles are always read from the live membership, never from a
    presented token. Refresh tokens are stateless: rotating issues a new
    one, but the previous token stays valid until its own expiry.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        codec: ISessionTokenCodec,
        access_ttl_seconds: int = ACCESS_TOKEN_TTL_SECONDS,
        refresh_ttl_seconds: int = REFRESH_TOKEN_TTL_SECONDS,
    ) -> None:
        self._uow_factory = uow_factory
        self._codec = codec
        self._access_ttl = access_ttl_seconds
        self._refresh_ttl = refresh_ttl_seconds

    def issue_pair(self, user_id: UUID, group_id: UUID, role: MembershipRole) -> TokenPair:
        """Mint an access/refresh pair scoped to one group."""
        access = SessionClaims(
            user_id=user_id, group_id=group_id, role=role, kind=TokenKind.ACCESS
        )
        refresh = SessionClaims(
            user_id=user_id, group_id=group_id, role=role, kind=TokenKind.REFRESH
        )
        return TokenPair(
            access_token=self._codec.encode(access, self._access_ttl),
            refresh_token=self._codec.encode(refresh, self._refresh_ttl),
        )

    def decode_access(self, token: str) -> SessionClaims | None:
        """Decode a token and accept it only as an access token."""
        claims = self._codec.decode(token)
        if claims is None or claims.kind is not TokenKind.ACCESS:
            return None
        if claims.group_id is None or claims.role is None:
            return None
        return claims

    async def open_session(
        self, uow: IUnitOfWork, user: User, group_id: UUID | None
    ) -> SessionResult:
        """Build a session for ``user`` in ``group_id`` within an existing UoW.

        Without a membership in ``group_id`` the result asks for group
        selection and carries only a group-less refresh token.
        """
        groups = await uow.groups.get_user_groups(user.id)
        current = next((g for g in groups if g.id == group_id), None) if group_id else None

        if current is None:
            refresh = SessionClaims(user_id=user.id, kind=TokenKind.REFRESH)
            return SessionResult(
                user=user,
                groups=groups,
                refresh_token=self._codec.encode(refresh, self._refresh_ttl),
                needs_group_selection=True,
            )

        pair = self.issue_pair(user.id, current.id, current.role)
        return SessionResult(
            user=user,
            groups=groups,
            current_group=current,
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
        )

    async def refresh(self, refresh_token: str) -> SessionResult:
        """Rotate a refresh token into a fresh pair.

        If the token's group membership is gone, returns the remaining
        groups with ``needs_group_selection`` and no tokens.

        Raises:
            AuthenticationError: If the token is invalid, not a refresh
                token, or its user no longer exists.
        """
        claims = self._decode_refresh(refresh_token)

        async with self._uow_factory() as uow:
            user = await uow.users.get(claims.user_id)
            if not user:
                raise AuthenticationError(
                    message="Invalid refresh token",
                    error_code=ErrorCode.INVALID_REFRESH_TOKEN,
                )

            membership = (
                await uow.groups.get_membership(user.id, claims.group_id)
                if claims.group_id
                else None
            )
            if membership is None:
                logger.info(
                    "session_refresh_needs_group_selection",
                    user_id=str(user.id),
                    group_id=str(claims.group_id) if claims.group_id else None,
                )
                groups = await uow.groups.get_user_groups(user.id)
                return SessionResult(user=user, groups=groups, needs_group_selection=True)

            result = await self.open_session(uow, user, membership.group_id)

        if claims.role is not None and claims.role != membership.role:
            logger.info(
                "session_role_changed",
                user_id=str(user.id),
                group_id=str(membership.group_id),
                role=membership.role.value,
            )
        logger.info("session_refreshed", user_id=str(user.id))
        return result

    async def switch_group(self, user_id: UUID, group_id: UUID) -> SessionResult:
        """Re-scope a session to another group the user belongs to.

        Raises:
            UserNotFoundError: If the user no longer exists.
            GroupNotFoundError: If the target group does not exist.
            NotAGroupMemberError: If the user has no membership there.
        """
        async with self._uow_factory() as uow:
            user = await uow.users.get(user_id)
            if not user:
                raise UserNotFoundError(str(user_id))

            group = await uow.groups.get(group_id)
            if not group:
                raise GroupNotFoundError(str(group_id))

            membership = await uow.groups.get_membership(user_id, group_id)
            if not membership:
                raise NotAGroupMemberError(str(group_id))

            result = await self.open_session(uow, user, group_id)

        logger.info("session_group_switched", user_id=str(user_id), group_id=str(group_id))
        return result

    async def select_group(self, refresh_token: str, group_id: UUID) -> SessionResult:
        """Pick an active group using only the refresh token.

        Used after a refresh or login asked for group selection, when the
        client holds no access token.
        """
        claims = self._decode_refresh(refresh_token)
        return await self.switch_group(claims.user_id, group_id)

    async def current_session(self, ctx: AuthContext) -> SessionResult:
        """Describe the authenticated user, their active group and all groups."""
        async with self._uow_factory() as uow:
            user = await uow.users.get(ctx.user_id)
            if not user:
                raise UserNotFoundError(str(ctx.user_id))
            groups = await uow.groups.get_user_groups(ctx.user_id)

        current = next((g for g in groups if g.id == ctx.group_id), None)
        return SessionResult(
            user=user,
            groups=groups,
            current_group=current,
            needs_group_selection=current is None,
        )

    def _decode_refresh(self, token: str) -> SessionClaims:
        claims = self._codec.decode(token)
        if claims is None or claims.kind is not TokenKind.REFRESH:
            raise AuthenticationError(
                message="Invalid refresh token",
                error_code=ErrorCode.INVALID_REFRESH_TOKEN,
            )
        return claims
