"""User repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.user import User


class IUserRepository(Protocol):
    """Repository interface for User entities."""

    async def get(self, id: UUID) -> User | None:
        """Get a user by ID."""
        ...

    async def get_by_email(self, email: str) -> User | None:
        """Get a user by (normalized) email."""
        ...

    async def get_or_create(self, user: User) -> User:
        """Create the user unless one already exists with the same email.

        Returns the stored user either way.
        """
        ...

    async def update_name(self, id: UUID, name: str) -> User | None:
        """Change a user's display name."""
        ...
