"""Opaque bearer session token issuance."""

from __future__ import annotations

import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from worklog.infrastructure.security.reset_tokens import hash_reset_token

DEFAULT_SESSION_TOKEN_TTL = timedelta(hours=8)


@dataclass(frozen=True)
class IssuedSessionToken:
    """Session token returned to the client plus the hash persisted server-side."""

    token: str
    token_hash: str
    expires_at: datetime


class OpaqueTokenService:
    """Issue random bearer tokens and hash them for storage."""

    def __init__(
        self,
        *,
        token_ttl: timedelta = DEFAULT_SESSION_TOKEN_TTL,
        token_factory: Callable[[], str] | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._token_ttl = token_ttl
        self._token_factory = token_factory or (lambda: secrets.token_urlsafe(32))
        self._now = now or (lambda: datetime.now(tz=UTC))

    def issue_token(self) -> IssuedSessionToken:
        token = self._token_factory()
        return IssuedSessionToken(
            token=token,
            token_hash=self.hash_token(token),
            expires_at=self._now() + self._token_ttl,
        )

    def hash_token(self, token: str) -> str:
        return hash_reset_token(token)
