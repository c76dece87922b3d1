"""HMAC-signed session tokens (HS256 JWT).

Payload structure:
    {
        "sub": "user-uuid",
        "group_id": "group-uuid",
        "role": "admin" | "member",
        "type": "access" | "refresh",
        "iat": 1700000000,
        "exp": 1700000900
    }

``group_id`` and ``role`` are omitted on refresh tokens for a user with no
active group.
"""

import time
from collections.abc import Callable
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from domain.entities.group import MembershipRole
from domain.entities.session import SessionClaims, TokenKind


def _unix_now() -> int:
    return int(time.time())


class JWTSessionCodec:
    """Signs and verifies session tokens with a shared secret.

    The secret is fixed at construction and never mutated, so one instance
    can be shared by concurrent requests.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        clock: Callable[[], int] = _unix_now,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._clock = clock

    def __repr__(self) -> str:
        return f"JWTSessionCodec(algorithm={self._algorithm!r})"

    def encode(self, claims: SessionClaims, ttl_seconds: int) -> str:
        """Sign ``claims`` valid for ``ttl_seconds`` from now."""
        now = self._clock()
        payload: dict[str, Any] = {
            "sub": str(claims.user_id),
            "type": claims.kind.value,
            "iat": now,
            "exp": now + ttl_seconds,
        }
        if claims.group_id is not None:
            payload["group_id"] = str(claims.group_id)
        if claims.role is not None:
            payload["role"] = claims.role.value

        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def decode(self, token: str) -> SessionClaims | None:
        """Return the claims of a valid token, otherwise None.

        Tampered, malformed, foreign-secret and expired tokens are
        indistinguishable to the caller.
        """
        if not token or token.count(".") != 2:
            return None

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False, "verify_aud": False},
            )
            claims = self._to_claims(payload)
        except (JWTError, KeyError, TypeError, ValueError):
            return None

        # A token is dead from the second it expires
        if claims.expires_at <= self._clock():
            return None
        return claims

    @staticmethod
    def _to_claims(payload: dict[str, Any]) -> SessionClaims:
        group_id = payload.get("group_id")
        role = payload.get("role")
        return SessionClaims(
            user_id=UUID(payload["sub"]),
            kind=TokenKind(payload["type"]),
            group_id=UUID(group_id) if group_id else None,
            role=MembershipRole(role) if role else None,
            issued_at=int(payload["iat"]),
            expires_at=int(payload["exp"]),
        )
