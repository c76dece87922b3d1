"""Pytest configuration and fixtures."""

import os
import sys
from collections.abc import AsyncGenerator
from pathlib import Path
from uuid import UUID

# Disable rate limiting in tests
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from domain.entities.group import MembershipRole
from domain.entities.session import SessionClaims, TokenKind
from infrastructure.auth.jwt_codec import JWTSessionCodec
from infrastructure.database.models import Base

# Test database URL (SQLite in memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_SECRET = "test-secret-key"


class RecordingEmailSender:
    """Email sender that keeps every magic link it was asked to deliver."""

    def __init__(self) -> None:
        self.invites: list[dict[str, str | None]] = []
        self.logins: list[dict[str, str]] = []

    async def send_invite(
        self, to_email: str, to_name: str | None, group_name: str, magic_link: str
    ) -> None:
        self.invites.append(
            {"to": to_email, "name": to_name, "group": group_name, "link": magic_link}
        )

    async def send_login_link(self, to_email: str, to_name: str, magic_link: str) -> None:
        self.logins.append({"to": to_email, "name": to_name, "link": magic_link})

    @staticmethod
    def token_of(link: str | None) -> str:
        assert link is not None
        return link.rsplit("/", 1)[-1]


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh in-memory database for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def codec() -> JWTSessionCodec:
    """Create token codec for testing."""
    return JWTSessionCodec(TEST_SECRET)


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


def make_access_token(
    codec: JWTSessionCodec,
    user_id: UUID,
    group_id: UUID,
    role: MembershipRole = MembershipRole.ADMIN,
    ttl_seconds: int = 900,
) -> str:
    """Mint an access token directly, bypassing the session service."""
    claims = SessionClaims(
        user_id=user_id, kind=TokenKind.ACCESS, group_id=group_id, role=role
    )
    return codec.encode(claims, ttl_seconds)


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client (no database overrides)."""
    from main import create_app

    transport = ASGITransport(app=create_app())
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def app_client(
    session_factory: async_sessionmaker[AsyncSession],
    codec: JWTSessionCodec,
    email_sender: RecordingEmailSender,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client wired to the in-memory database.

    This client:
    - Uses an in-memory SQLite database
    - Signs tokens with the test secret
    - Records outgoing emails instead of sending them
    """
    from api.dependencies.services import (
        get_auth_service,
        get_group_service,
        get_session_service,
        get_uow_factory,
    )
    from domain.services.auth_service import AuthService
    from domain.services.group_service import GroupService
    from domain.services.magic_link_service import MagicLinkStore
    from domain.services.session_service import SessionService
    from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
    from main import create_app

    app = create_app()

    def test_uow_factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory)

    sessions = SessionService(test_uow_factory, codec)
    auth = AuthService(
        test_uow_factory,
        magic_links=MagicLinkStore(),
        sessions=sessions,
        email_sender=email_sender,
        frontend_url="https://photos.example.com",
    )
    groups = GroupService(test_uow_factory)

    app.dependency_overrides[get_uow_factory] = lambda: test_uow_factory
    app.dependency_overrides[get_session_service] = lambda: sessions
    app.dependency_overrides[get_auth_service] = lambda: auth
    app.dependency_overrides[get_group_service] = lambda: groups

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
