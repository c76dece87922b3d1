"""Magic link domain entities."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from uuid import UUID

from domain.entities.group import MembershipRole

# Magic links are valid for 15 minutes
MAGIC_LINK_TTL_SECONDS = 15 * 60


class MagicLinkKind(StrEnum):
    """Purpose of a magic link."""

    INVITE = "invite"
    LOGIN = "login"


class MagicLinkFailure(StrEnum):
    """Why a magic link failed verification."""

    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    ALREADY_USED = "already_used"


class RedemptionState(StrEnum):
    """Progress of a magic link redemption.

    PRESENTED -> AWAITING_NAME -> CONSUMED, or PRESENTED -> CONSUMED when
    no display name is needed. Only CONSUMED sets ``used_at``.
    """

    PRESENTED = "presented"
    AWAITING_NAME = "awaiting_name"
    CONSUMED = "consumed"


@dataclass
class MagicLinkToken:
    """A single-use, time-bounded email verification token."""

    token: str
    email: str
    kind: MagicLinkKind
    group_id: UUID | None = None
    invite_role: MembershipRole | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    expires_at: datetime = field(
        default_factory=lambda: datetime.utcnow() + timedelta(seconds=MAGIC_LINK_TTL_SECONDS)
    )
    used_at: datetime | None = None

    @property
    def is_used(self) -> bool:
        return self.used_at is not None

    def is_expired_at(self, now: datetime) -> bool:
        """Expired once ``now`` reaches ``expires_at``."""
        return now >= self.expires_at

    def failure_at(self, now: datetime) -> MagicLinkFailure | None:
        """Return the failure reason at ``now``, or ``None`` when valid.

        Consumption is reported before expiry.
        """
        if self.is_used:
            return MagicLinkFailure.ALREADY_USED
        if self.is_expired_at(now):
            return MagicLinkFailure.EXPIRED
        return None


@dataclass
class MagicLinkVerification:
    """Result of verifying a magic link."""

    valid: bool
    record: MagicLinkToken | None = None
    reason: MagicLinkFailure | None = None
