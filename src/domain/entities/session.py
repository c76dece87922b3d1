"""Session token domain entities."""

from dataclasses import dataclass, field
from enum import StrEnum
from uuid import UUID

from domain.entities.group import GroupSummary, MembershipRole
from domain.entities.magic_link import RedemptionState
from domain.entities.user import User


class TokenKind(StrEnum):
    """Discriminator carried in every session token."""

    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class SessionClaims:
    """Claims carried by a signed session token.

    ``group_id`` and ``role`` are absent only on refresh tokens issued to a
    user with no active group.
    """

    user_id: UUID
    kind: TokenKind
    group_id: UUID | None = None
    role: MembershipRole | None = None
    issued_at: int = 0
    expires_at: int = 0


@dataclass
class TokenPair:
    """Access and refresh tokens minted together."""

    access_token: str
    refresh_token: str


@dataclass
class SessionResult:
    """Outcome of a redemption, refresh or group switch.

    When ``needs_group_selection`` is set there is no access token; the
    client must pick one of ``groups``.
    """

    user: User
    groups: list[GroupSummary] = field(default_factory=list)
    current_group: GroupSummary | None = None
    access_token: str | None = None
    refresh_token: str | None = None
    needs_group_selection: bool = False


@dataclass
class AuthContext:
    """Identity attached to an authenticated request."""

    user_id: UUID
    group_id: UUID
    role: MembershipRole


@dataclass
class RedemptionResult:
    """Outcome of presenting a magic link.

    ``session`` is set only in the CONSUMED state.
    """

    state: RedemptionState
    session: SessionResult | None = None
