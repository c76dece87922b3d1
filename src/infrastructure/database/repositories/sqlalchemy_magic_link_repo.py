"""SQLAlchemy implementation of MagicLink repository."""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.group import MembershipRole
from domain.entities.magic_link import MagicLinkKind, MagicLinkToken
from infrastructure.database.models import MagicLinkTokenModel


class SQLAlchemyMagicLinkRepository:
    """SQLAlchemy implementation of IMagicLinkRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, token: MagicLinkToken) -> MagicLinkToken:
        """Persist a new magic link."""
        model = self._to_model(token)
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def get(self, token: str) -> MagicLinkToken | None:
        """Point lookup by token value."""
        stmt = select(MagicLinkTokenModel).where(MagicLinkTokenModel.token == token)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def mark_used(self, token: str, used_at: datetime, only_if_unused: bool = False) -> int:
        """Set ``used_at``; conditional on it being null when requested."""
        stmt = update(MagicLinkTokenModel).where(MagicLinkTokenModel.token == token)
        if only_if_unused:
            stmt = stmt.where(MagicLinkTokenModel.used_at.is_(None))
        stmt = stmt.values(used_at=used_at)

        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    def _to_entity(self, model: MagicLinkTokenModel) -> MagicLinkToken:
        """Convert ORM model to domain entity."""
        return MagicLinkToken(
            token=model.token,
            group_id=model.group_id,
            email=model.email,
            kind=MagicLinkKind(model.kind),
            invite_role=MembershipRole(model.invite_role) if model.invite_role else None,
            created_at=model.created_at,
            expires_at=model.expires_at,
            used_at=model.used_at,
        )

    def _to_model(self, entity: MagicLinkToken) -> MagicLinkTokenModel:
        """Convert domain entity to ORM model."""
        return MagicLinkTokenModel(
            token=entity.token,
            group_id=entity.group_id,
            email=entity.email,
            kind=entity.kind.value,
            invite_role=entity.invite_role.value if entity.invite_role else None,
            created_at=entity.created_at,
            expires_at=entity.expires_at,
            used_at=entity.used_at,
        )
