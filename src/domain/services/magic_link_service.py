"""Magic link token store: issuance, lookup, verification and consumption."""

import secrets
from collections.abc import Callable
from datetime import datetime, timedelta
from uuid import UUID

import structlog

from core.exceptions import ValidationError
from domain.entities.group import MembershipRole
from domain.entities.magic_link import (
    MAGIC_LINK_TTL_SECONDS,
    MagicLinkFailure,
    MagicLinkKind,
    MagicLinkToken,
    MagicLinkVerification,
)
from domain.entities.user import normalize_email
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()

# 32 random bytes -> 64 hex characters
TOKEN_BYTES = 32


class MagicLinkStore:
    """Single-use, time-bounded magic link lifecycle.

    Every method works inside a Unit of Work owned by the caller, so a
    redemption can verify, apply its side effects and consume in one
    transaction.

    By default ``consume`` is a plain update: two concurrent redemptions of
    the same unconsumed token can both succeed, and callers must keep their
    side effects idempotent. With ``atomic_consume`` the update is
    conditional on ``used_at IS NULL`` and the losing redemption sees
    ``already_used``.
    """

    def __init__(
        self,
        ttl_seconds: int = MAGIC_LINK_TTL_SECONDS,
        atomic_consume: bool = False,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self._ttl = timedelta(seconds=ttl_seconds)
        self._atomic_consume = atomic_consume
        self._clock = clock

    async def issue(
        self,
        uow: IUnitOfWork,
        group_id: UUID | None,
        email: str,
        kind: MagicLinkKind,
        invite_role: MembershipRole | None = None,
    ) -> MagicLinkToken:
        """Create and persist a new magic link.

        Args:
            uow: The active Unit of Work (caller manages commit).
            group_id: Group the link grants access to.
            email: Recipient address.
            kind: Invite or login.
            invite_role: Role granted on redemption (invites only).

        Returns:
            The stored record; ``record.token`` is the value to email.

        Raises:
            ValidationError: If the role does not fit the kind.
        """
        match kind:
            case MagicLinkKind.INVITE:
                if invite_role is None or group_id is None:
                    raise ValidationError("Invite links require a group and a role")
            case MagicLinkKind.LOGIN:
                if invite_role is not None:
                    raise ValidationError("Login links cannot carry a role")

        now = self._clock()
        record = MagicLinkToken(
            token=secrets.token_hex(TOKEN_BYTES),
            group_id=group_id,
            email=normalize_email(email),
            kind=kind,
            invite_role=invite_role,
            created_at=now,
            expires_at=now + self._ttl,
        )
        created = await uow.magic_links.create(record)

        logger.info(
            "magic_link_issued",
            kind=kind.value,
            group_id=str(group_id) if group_id else None,
        )
        return created

    async def lookup(self, uow: IUnitOfWork, token: str) -> MagicLinkToken | None:
        """Point lookup without side effects."""
        return await uow.magic_links.get(token)

    async def verify(self, uow: IUnitOfWork, token: str) -> MagicLinkVerification:
        """Check whether a token can be redeemed right now.

        Reasons are checked in order: not_found, already_used, expired.
        """
        record = await self.lookup(uow, token)
        if record is None:
            return MagicLinkVerification(valid=False, reason=MagicLinkFailure.NOT_FOUND)

        failure = record.failure_at(self._clock())
        if failure is not None:
            return MagicLinkVerification(valid=False, record=record, reason=failure)

        return MagicLinkVerification(valid=True, record=record)

    async def consume(self, uow: IUnitOfWork, token: str) -> bool:
        """Mark a token used.

        Returns False only in atomic mode, when another redemption already
        consumed the token.
        """
        updated = await uow.magic_links.mark_used(
            token, self._clock(), only_if_unused=self._atomic_consume
        )
        if self._atomic_consume and updated == 0:
            logger.warning("magic_link_consume_lost_race")
            return False
        return True
