"""Unit tests for authentication and authorization dependencies."""

from uuid import UUID, uuid4

import pytest
from fastapi.security import HTTPAuthorizationCredentials

from api.dependencies.auth import (
    ensure_same_group,
    get_auth_context,
    require_admin,
    require_owner,
)
from core.exceptions import (
    AdminRequiredError,
    AuthenticationError,
    CrossGroupAccessError,
    ErrorCode,
    OwnerRequiredError,
)
from domain.entities.group import Group, Membership, MembershipRole
from domain.entities.session import AuthContext, SessionClaims, TokenKind
from domain.services.session_service import SessionService
from infrastructure.auth.jwt_codec import JWTSessionCodec
from tests.unit.conftest import FakeUnitOfWork


@pytest.fixture
def sessions(uow: FakeUnitOfWork) -> SessionService:
    return SessionService(lambda: uow, JWTSessionCodec("test-secret"))


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


# --- get_auth_context ---


class TestGetAuthContext:
    @pytest.mark.asyncio
    async def test_accepts_bearer_access_token(
        self, sessions: SessionService, user_id: UUID, group_id: UUID
    ):
        pair = sessions.issue_pair(user_id, group_id, MembershipRole.MEMBER)

        ctx = await get_auth_context(_bearer(pair.access_token), None, sessions)

        assert ctx == AuthContext(user_id=user_id, group_id=group_id, role=MembershipRole.MEMBER)

    @pytest.mark.asyncio
    async def test_accepts_query_token(
        self, sessions: SessionService, user_id: UUID, group_id: UUID
    ):
        pair = sessions.issue_pair(user_id, group_id, MembershipRole.MEMBER)

        ctx = await get_auth_context(None, pair.access_token, sessions)

        assert ctx.user_id == user_id

    @pytest.mark.asyncio
    async def test_header_wins_over_query(
        self, sessions: SessionService, user_id: UUID, actor_id: UUID, group_id: UUID
    ):
        header = sessions.issue_pair(user_id, group_id, MembershipRole.MEMBER)
        query = sessions.issue_pair(actor_id, group_id, MembershipRole.ADMIN)

        ctx = await get_auth_context(_bearer(header.access_token), query.access_token, sessions)

        assert ctx.user_id == user_id
        assert ctx.role is MembershipRole.MEMBER

    @pytest.mark.asyncio
    async def test_invalid_header_is_not_rescued_by_query(
        self, sessions: SessionService, user_id: UUID, group_id: UUID
    ):
        query = sessions.issue_pair(user_id, group_id, MembershipRole.ADMIN)

        with pytest.raises(AuthenticationError) as exc_info:
            await get_auth_context(_bearer("invalid.jwt.token"), query.access_token, sessions)

        assert exc_info.value.error_code == ErrorCode.INVALID_TOKEN

    @pytest.mark.asyncio
    async def test_raises_when_no_token(self, sessions: SessionService):
        with pytest.raises(AuthenticationError) as exc_info:
            await get_auth_context(None, None, sessions)

        assert exc_info.value.error_code == ErrorCode.UNAUTHORIZED
        assert exc_info.value.message == "Unauthorized"
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_raises_for_refresh_token(
        self, sessions: SessionService, user_id: UUID, group_id: UUID
    ):
        pair = sessions.issue_pair(user_id, group_id, MembershipRole.ADMIN)

        with pytest.raises(AuthenticationError) as exc_info:
            await get_auth_context(_bearer(pair.refresh_token), None, sessions)

        assert exc_info.value.error_code == ErrorCode.INVALID_TOKEN
        assert exc_info.value.message == "Invalid or expired token"

    @pytest.mark.asyncio
    async def test_raises_for_expired_token(self, user_id: UUID, group_id: UUID):
        codec = JWTSessionCodec("test-secret", clock=lambda: 1_000)
        claims = SessionClaims(
            user_id=user_id,
            kind=TokenKind.ACCESS,
            group_id=group_id,
            role=MembershipRole.ADMIN,
        )
        token = codec.encode(claims, 900)
        later = SessionService(lambda: None, JWTSessionCodec("test-secret", clock=lambda: 1_900))

        with pytest.raises(AuthenticationError) as exc_info:
            await get_auth_context(_bearer(token), None, later)

        assert exc_info.value.error_code == ErrorCode.INVALID_TOKEN


# --- require_admin ---


class TestRequireAdmin:
    @pytest.mark.asyncio
    async def test_accepts_live_admin(
        self, uow: FakeUnitOfWork, user_id: UUID, group_id: UUID
    ):
        uow.groups.get_membership.return_value = Membership(
            user_id=user_id, group_id=group_id, role=MembershipRole.ADMIN
        )
        ctx = AuthContext(user_id=user_id, group_id=group_id, role=MembershipRole.MEMBER)

        result = await require_admin(ctx, lambda: uow)

        assert result.role is MembershipRole.ADMIN

    @pytest.mark.asyncio
    async def test_rejects_demoted_admin_with_stale_token(
        self, uow: FakeUnitOfWork, user_id: UUID, group_id: UUID
    ):
        uow.groups.get_membership.return_value = Membership(
            user_id=user_id, group_id=group_id, role=MembershipRole.MEMBER
        )
        ctx = AuthContext(user_id=user_id, group_id=group_id, role=MembershipRole.ADMIN)

        with pytest.raises(AdminRequiredError) as exc_info:
            await require_admin(ctx, lambda: uow)

        assert exc_info.value.message == "Admin access required"
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_rejects_removed_member(
        self, uow: FakeUnitOfWork, user_id: UUID, group_id: UUID
    ):
        uow.groups.get_membership.return_value = None
        ctx = AuthContext(user_id=user_id, group_id=group_id, role=MembershipRole.ADMIN)

        with pytest.raises(AdminRequiredError):
            await require_admin(ctx, lambda: uow)


# --- require_owner ---


class TestRequireOwner:
    @pytest.mark.asyncio
    async def test_owner_with_member_role_is_accepted(
        self, uow: FakeUnitOfWork, user_id: UUID, group_id: UUID
    ):
        uow.groups.get.return_value = Group(id=group_id, name="Family", owner_id=user_id)
        ctx = AuthContext(user_id=user_id, group_id=group_id, role=MembershipRole.MEMBER)

        assert await require_owner(ctx, lambda: uow) == ctx
        uow.groups.get_membership.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_owner_without_membership_is_accepted(
        self, uow: FakeUnitOfWork, user_id: UUID, group_id: UUID
    ):
        uow.groups.get.return_value = Group(id=group_id, name="Family", owner_id=user_id)
        uow.groups.get_membership.return_value = None
        ctx = AuthContext(user_id=user_id, group_id=group_id, role=MembershipRole.ADMIN)

        assert await require_owner(ctx, lambda: uow) == ctx

    @pytest.mark.asyncio
    async def test_non_owner_admin_is_rejected(
        self, uow: FakeUnitOfWork, user_id: UUID, actor_id: UUID, group_id: UUID
    ):
        uow.groups.get.return_value = Group(id=group_id, name="Family", owner_id=actor_id)
        ctx = AuthContext(user_id=user_id, group_id=group_id, role=MembershipRole.ADMIN)

        with pytest.raises(OwnerRequiredError) as exc_info:
            await require_owner(ctx, lambda: uow)

        assert exc_info.value.message == "Only the group owner can perform this action"
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_group_is_rejected(
        self, uow: FakeUnitOfWork, user_id: UUID, group_id: UUID
    ):
        uow.groups.get.return_value = None
        ctx = AuthContext(user_id=user_id, group_id=group_id, role=MembershipRole.ADMIN)

        with pytest.raises(OwnerRequiredError):
            await require_owner(ctx, lambda: uow)


# --- ensure_same_group ---


class TestEnsureSameGroup:
    def test_same_group_passes(self, user_id: UUID, group_id: UUID):
        ctx = AuthContext(user_id=user_id, group_id=group_id, role=MembershipRole.ADMIN)

        ensure_same_group(ctx, group_id)

    def test_other_group_is_rejected(self, user_id: UUID, group_id: UUID):
        ctx = AuthContext(user_id=user_id, group_id=group_id, role=MembershipRole.ADMIN)

        with pytest.raises(CrossGroupAccessError) as exc_info:
            ensure_same_group(ctx, uuid4(), "Cannot view members of a different group")

        assert exc_info.value.message == "Cannot view members of a different group"
        assert exc_info.value.status_code == 403
