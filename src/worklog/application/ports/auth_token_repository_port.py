"""Port for bearer session token storage.

Only SHA-256 digests of session tokens are stored; the plaintext exists in the
login response alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID


@dataclass(frozen=True)
class AuthTokenCreateInput:
    user_id: UUID
    token_hash: str
    expires_at: datetime


@dataclass(frozen=True)
class AuthTokenRecord:
    id: int
    user_id: UUID
    token_hash: str
    issued_at: datetime
    expires_at: datetime
    revoked_at: datetime | None = None



class AuthTokenRepositoryPort(Protocol):
    async def create_token(self, payload: AuthTokenCreateInput) -> AuthTokenRecord:
        """Store a newly issued session token digest."""

    async def get_active_by_hash(self, *, token_hash: str) -> AuthTokenRecord | None:
        """Return the session for `token_hash` unless it is revoked or past expiry."""

    async def revoke_active_tokens_for_user(self, *, user_id: UUID) -> int:
        """Revoke every live session of one account; used after a password reset."""
