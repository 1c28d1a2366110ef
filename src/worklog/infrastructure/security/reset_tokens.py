"""Password reset token issuance and verification.

Reset tokens are 256-bit random values handed to the caller exactly once. Only
their SHA-256 digest is meant to be stored, which keeps lookups indexable while
never persisting the usable secret. Expiry is decided by the caller against its
own clock.
"""

from __future__ import annotations

import hashlib
import hmac
import re
import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from worklog.application.ports.reset_token_port import IssuedResetToken

DEFAULT_RESET_TOKEN_VALIDITY = timedelta(hours=1)
RESET_TOKEN_BYTES = 32
TOKEN_HASH_LENGTH = 64
_TOKEN_HASH_RE = re.compile(r"^[0-9a-f]{64}$")


def generate_reset_token() -> str:
    """Return a URL-safe hex token carrying 256 bits of entropy."""

    return secrets.token_hex(RESET_TOKEN_BYTES)


def hash_reset_token(token: str) -> str:
    """Return deterministic SHA-256 hex digest for storage and lookup."""

    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def verify_reset_token(token: str, token_hash: str) -> bool:
    """Compare a presented token with a stored digest in constant time."""

    if not token or not token_hash:
        return False
    if _TOKEN_HASH_RE.fullmatch(token_hash) is None:
        return False
    try:
        presented_hash = hash_reset_token(token)
    except UnicodeEncodeError:
        return False
    return hmac.compare_digest(presented_hash, token_hash)


class ResetTokenIssuer:
    """Mint reset tokens with a fixed validity window."""

    def __init__(
        self,
        *,
        validity: timedelta = DEFAULT_RESET_TOKEN_VALIDITY,
        token_factory: Callable[[], str] | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        if validity <= timedelta(0):
            raise ValueError("reset token validity must be positive")
        self._validity = validity
        self._token_factory = token_factory or generate_reset_token
        self._now = now or (lambda: datetime.now(tz=UTC))

    @property
    def validity(self) -> timedelta:
        return self._validity

    def issue(self) -> IssuedResetToken:
        """Return plaintext token, its digest and absolute expiry; persists nothing."""

        plaintext_token = self._token_factory()
        return IssuedResetToken(
            plaintext_token=plaintext_token,
            token_hash=hash_reset_token(plaintext_token),
            expires_at=self._now() + self._validity,
        )


class ResetTokenVerifier:
    """Object form of the module helpers for injection into services."""

    def hash_token(self, token: str) -> str:
        return hash_reset_token(token)

    def verify(self, token: str, token_hash: str) -> bool:
        return verify_reset_token(token, token_hash)