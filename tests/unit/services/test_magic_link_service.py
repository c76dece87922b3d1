"""Unit tests for MagicLinkStore."""

from datetime import datetime, timedelta
from uuid import UUID

import pytest

from core.exceptions import ValidationError
from domain.entities.group import MembershipRole
from domain.entities.magic_link import MagicLinkFailure, MagicLinkKind, MagicLinkToken
from domain.services.magic_link_service import MagicLinkStore
from tests.unit.conftest import FakeUnitOfWork

NOW = datetime(2026, 3, 1, 12, 0, 0)


class FakeClock:
    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> MagicLinkStore:
    return MagicLinkStore(clock=clock)


@pytest.fixture
def uow() -> FakeUnitOfWork:
    fake = FakeUnitOfWork()
    fake.magic_links.create.side_effect = lambda record: record
    return fake


def _record(group_id: UUID | None, **overrides) -> MagicLinkToken:
    values = dict(
        token="a" * 64,
        email="pat@example.com",
        kind=MagicLinkKind.INVITE,
        group_id=group_id,
        invite_role=MembershipRole.MEMBER,
        created_at=NOW,
        expires_at=NOW + timedelta(minutes=15),
    )
    values.update(overrides)
    return MagicLinkToken(**values)


# --- issue ---


class TestIssue:
    @pytest.mark.asyncio
    async def test_issues_hex_token_valid_for_fifteen_minutes(
        self, store: MagicLinkStore, uow: FakeUnitOfWork, group_id: UUID
    ):
        record = await store.issue(
            uow, group_id, "Pat@Example.com ", MagicLinkKind.INVITE, MembershipRole.ADMIN
        )

        assert len(record.token) == 64
        int(record.token, 16)
        assert record.email == "pat@example.com"
        assert record.expires_at - record.created_at == timedelta(seconds=900)
        assert record.used_at is None
        assert record.invite_role == MembershipRole.ADMIN
        uow.magic_links.create.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_tokens_are_unique(
        self, store: MagicLinkStore, uow: FakeUnitOfWork, group_id: UUID
    ):
        tokens = {
            (await store.issue(uow, group_id, "a@b.co", MagicLinkKind.LOGIN)).token
            for _ in range(20)
        }

        assert len(tokens) == 20

    @pytest.mark.asyncio
    async def test_login_link_may_have_no_group(
        self, store: MagicLinkStore, uow: FakeUnitOfWork
    ):
        record = await store.issue(uow, None, "a@b.co", MagicLinkKind.LOGIN)

        assert record.group_id is None

    @pytest.mark.asyncio
    async def test_invite_requires_role(
        self, store: MagicLinkStore, uow: FakeUnitOfWork, group_id: UUID
    ):
        with pytest.raises(ValidationError):
            await store.issue(uow, group_id, "a@b.co", MagicLinkKind.INVITE)

        uow.magic_links.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_login_rejects_role(
        self, store: MagicLinkStore, uow: FakeUnitOfWork, group_id: UUID
    ):
        with pytest.raises(ValidationError):
            await store.issue(
                uow, group_id, "a@b.co", MagicLinkKind.LOGIN, MembershipRole.ADMIN
            )


# --- verify ---


class TestVerify:
    @pytest.mark.asyncio
    async def test_unknown_token_is_not_found(
        self, store: MagicLinkStore, uow: FakeUnitOfWork
    ):
        uow.magic_links.get.return_value = None

        result = await store.verify(uow, "missing")

        assert not result.valid
        assert result.reason is MagicLinkFailure.NOT_FOUND
        assert result.record is None

    @pytest.mark.asyncio
    async def test_fresh_token_is_valid(
        self, store: MagicLinkStore, uow: FakeUnitOfWork, group_id: UUID
    ):
        uow.magic_links.get.return_value = _record(group_id)

        result = await store.verify(uow, "a" * 64)

        assert result.valid
        assert result.reason is None
        assert result.record is not None

    @pytest.mark.asyncio
    async def test_expired_token_reports_expired(
        self, store: MagicLinkStore, uow: FakeUnitOfWork, clock: FakeClock, group_id: UUID
    ):
        uow.magic_links.get.return_value = _record(group_id)
        clock.now = NOW + timedelta(minutes=20)

        result = await store.verify(uow, "a" * 64)

        assert result.reason is MagicLinkFailure.EXPIRED

    @pytest.mark.asyncio
    async def test_expiry_instant_counts_as_expired(
        self, store: MagicLinkStore, uow: FakeUnitOfWork, clock: FakeClock, group_id: UUID
    ):
        uow.magic_links.get.return_value = _record(group_id)
        clock.now = NOW + timedelta(minutes=15)

        result = await store.verify(uow, "a" * 64)

        assert result.reason is MagicLinkFailure.EXPIRED

    @pytest.mark.asyncio
    async def test_used_takes_precedence_over_expired(
        self, store: MagicLinkStore, uow: FakeUnitOfWork, clock: FakeClock, group_id: UUID
    ):
        uow.magic_links.get.return_value = _record(
            group_id, used_at=NOW + timedelta(minutes=1)
        )
        clock.now = NOW + timedelta(hours=1)

        result = await store.verify(uow, "a" * 64)

        assert result.reason is MagicLinkFailure.ALREADY_USED

    @pytest.mark.asyncio
    async def test_lookup_has_no_side_effects(
        self, store: MagicLinkStore, uow: FakeUnitOfWork, group_id: UUID
    ):
        uow.magic_links.get.return_value = _record(group_id)

        await store.lookup(uow, "a" * 64)
        await store.verify(uow, "a" * 64)

        uow.magic_links.mark_used.assert_not_awaited()


# --- consume ---


class TestConsume:
    @pytest.mark.asyncio
    async def test_plain_consume_is_unconditional(
        self, store: MagicLinkStore, uow: FakeUnitOfWork
    ):
        uow.magic_links.mark_used.return_value = 1

        assert await store.consume(uow, "tok") is True

        uow.magic_links.mark_used.assert_awaited_once_with("tok", NOW, only_if_unused=False)

    @pytest.mark.asyncio
    async def test_plain_consume_succeeds_even_when_already_used(
        self, store: MagicLinkStore, uow: FakeUnitOfWork
    ):
        uow.magic_links.mark_used.return_value = 0

        assert await store.consume(uow, "tok") is True

    @pytest.mark.asyncio
    async def test_atomic_consume_is_conditional(self, clock: FakeClock, uow: FakeUnitOfWork):
        store = MagicLinkStore(atomic_consume=True, clock=clock)
        uow.magic_links.mark_used.return_value = 1

        assert await store.consume(uow, "tok") is True

        uow.magic_links.mark_used.assert_awaited_once_with("tok", NOW, only_if_unused=True)

    @pytest.mark.asyncio
    async def test_atomic_consume_reports_lost_race(
        self, clock: FakeClock, uow: FakeUnitOfWork
    ):
        store = MagicLinkStore(atomic_consume=True, clock=clock)
        uow.magic_links.mark_used.return_value = 0

        assert await store.consume(uow, "tok") is False
