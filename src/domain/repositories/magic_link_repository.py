"""Magic link repository protocol."""

from datetime import datetime
from typing import Protocol

from domain.entities.magic_link import MagicLinkToken


class IMagicLinkRepository(Protocol):
    """Repository interface for magic link tokens."""

    async def create(self, token: MagicLinkToken) -> MagicLinkToken:
        """Persist a new magic link."""
        ...

    async def get(self, token: str) -> MagicLinkToken | None:
        """Point lookup by token value."""
        ...

    async def mark_used(self, token: str, used_at: datetime, only_if_unused: bool = False) -> int:
        """Set ``used_at``. Returns the number of rows updated.

        With ``only_if_unused`` the update is conditional on ``used_at`` being
        null, so at most one caller sees a non-zero count.
        """
        ...
