"""SQLAlchemy implementation of User repository."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.user import User, normalize_email
from infrastructure.database.dialect import insert_ignore_conflict
from infrastructure.database.models import UserModel


class SQLAlchemyUserRepository:
    """SQLAlchemy implementation of IUserRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> User | None:
        """Get a user by ID."""
        stmt = select(UserModel).where(UserModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_email(self, email: str) -> User | None:
        """Get a user by email."""
        stmt = select(UserModel).where(UserModel.email == normalize_email(email))
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_or_create(self, user: User) -> User:
        """Insert the user unless the email is taken, then return the stored row."""
        email = normalize_email(user.email)
        stmt = insert_ignore_conflict(
            self._session,
            UserModel,
            index_elements=["email"],
            values={
                "id": user.id,
                "name": user.name,
                "email": email,
                "created_at": user.created_at,
            },
        )
        await self._session.execute(stmt)
        stored = await self.get_by_email(email)
        if stored is None:
            raise ValueError(f"User {email} missing after insert")
        return stored

    async def update_name(self, id: UUID, name: str) -> User | None:
        """Change a user's display name."""
        stmt = select(UserModel).where(UserModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            return None

        model.name = name
        await self._session.flush()
        return self._to_entity(model)

    def _to_entity(self, model: UserModel) -> User:
        """Convert ORM model to domain entity."""
        return User(
            id=model.id,
            name=model.name,
            email=model.email,
            created_at=model.created_at,
        )
