"""User domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

MAX_NAME_LENGTH = 100


@dataclass
class User:
    """Domain entity for a global identity.

    A user exists independently of groups and may hold memberships in
    zero or more of them.
    """

    name: str
    email: str
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=datetime.utcnow)


def normalize_email(email: str) -> str:
    """Canonical form used for storage and lookups."""
    return email.strip().lower()


def normalize_name(name: str | None) -> str | None:
    """Trim a display name; ``None`` when nothing usable remains."""
    if name is None:
        return None
    trimmed = name.strip()
    return trimmed or None
