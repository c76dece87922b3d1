"""Service factories injected into routes and auth dependencies."""

from functools import lru_cache
from typing import Callable

from core.config import settings
from domain.services.auth_service import AuthService
from domain.services.group_service import GroupService
from domain.services.magic_link_service import MagicLinkStore
from domain.services.session_service import SessionService
from infrastructure.auth.jwt_codec import JWTSessionCodec
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
from infrastructure.email.sender import IEmailSender, LoggingEmailSender, ResendEmailSender


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@lru_cache
def get_token_codec() -> JWTSessionCodec:
    """Get the session token codec."""
    return JWTSessionCodec(settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


@lru_cache
def get_magic_link_store() -> MagicLinkStore:
    """Get the magic link store."""
    return MagicLinkStore(
        ttl_seconds=settings.magic_link_ttl_seconds,
        atomic_consume=settings.magic_link_atomic_consume,
    )


@lru_cache
def get_email_sender() -> IEmailSender:
    """Resend when an API key is configured, log-only otherwise.

    Raises:
        RuntimeError: In production without a Resend API key
    """
    if settings.resend_api_key:
        return ResendEmailSender(settings.resend_api_key, settings.email_from)
    if settings.is_production:
        raise RuntimeError("RESEND_API_KEY is required in production")
    return LoggingEmailSender()


@lru_cache
def get_session_service() -> SessionService:
    """Get Session service instance."""
    return SessionService(
        get_uow_factory(),
        get_token_codec(),
        access_ttl_seconds=settings.access_token_ttl_seconds,
        refresh_ttl_seconds=settings.refresh_token_ttl_seconds,
    )


@lru_cache
def get_auth_service() -> AuthService:
    """Get Auth service instance."""
    return AuthService(
        get_uow_factory(),
        magic_links=get_magic_link_store(),
        sessions=get_session_service(),
        email_sender=get_email_sender(),
        frontend_url=settings.frontend_url,
    )


@lru_cache
def get_group_service() -> GroupService:
    """Get Group service instance."""
    return GroupService(get_uow_factory())
