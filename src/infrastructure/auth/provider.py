"""Session token codec protocol."""

from typing import Protocol

from domain.entities.session import SessionClaims


class ISessionTokenCodec(Protocol):
    """Protocol for signing and verifying session tokens."""

    def encode(self, claims: SessionClaims, ttl_seconds: int) -> str:
        """
        Sign the claims, stamping ``issued_at`` and ``expires_at``.

        Args:
            claims: Identity and authorization claims to embed
            ttl_seconds: Lifetime of the token from now

        Returns:
            The compact ``header.payload.signature`` token
        """
        ...

    def decode(self, token: str) -> SessionClaims | None:
        """
        Verify a token and extract its claims.

        Args:
            token: The compact token to verify

        Returns:
            SessionClaims if valid, None for any failure
        """
        ...
