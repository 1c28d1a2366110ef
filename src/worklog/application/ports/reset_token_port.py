"""Port for password reset token issuance and verification."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol


@dataclass(frozen=True)
class IssuedResetToken:
    """Freshly minted reset token and the values the caller must persist."""

    plaintext_token: str
    token_hash: str
    expires_at: datetime


class ResetTokenIssuerPort(Protocol):
    """Reset token minting contract."""

    @property
    def validity(self) -> timedelta:
        """Return the fixed validity window applied to new tokens."""

    def issue(self) -> IssuedResetToken:
        """Return plaintext token, its digest and absolute expiry."""


class ResetTokenVerifierPort(Protocol):
    """Reset token verification contract."""

    def hash_token(self, token: str) -> str:
        """Return the deterministic digest used for storage and lookup."""

    def verify(self, token: str, token_hash: str) -> bool:
        """Return whether token matches the stored digest; never raises."""
