"""Port for account and credential persistence used by auth flows."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from worklog.domain.auth.roles import Role


@dataclass(frozen=True)
class UserRecord:
    """User persistence model including outstanding reset-token state."""

    user_id: UUID
    name: str | None
    email: str
    password_hash: str
    role: Role
    is_active: bool
    password_reset_required: bool
    password_reset_token_hash: str | None
    password_reset_token_expires_at: datetime | None
    last_password_change_at: datetime | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class UserCreateInput:
    """Input payload for inserting one user account."""

    user_id: UUID
    name: str | None
    email: str
    password_hash: str
    role: Role
    password_reset_required: bool = False
    is_active: bool = True


class DuplicateUserEmailError(ValueError):
    """Raised when a user with the same normalized email already exists."""

    def __init__(self, *, email: str) -> None:
        super().__init__(f"user already exists: {email}")
        self.email = email


class UserRepositoryPort(Protocol):
    """User repository contract."""

    async def get_by_id(self, *, user_id: UUID) -> UserRecord | None:
        """Return user by id, including inactive users."""

    async def get_by_email(self, *, email: str) -> UserRecord | None:
        """Return user by normalized email, including inactive users."""

    async def get_active_by_email(self, *, email: str) -> UserRecord | None:
        """Return active user by normalized email or None."""

    async def get_by_reset_token_hash(self, *, token_hash: str) -> UserRecord | None:
        """Return user holding the given outstanding reset token hash."""

    async def list_users(self) -> list[UserRecord]:
        """Return all users ordered by email."""

    async def create_user(self, payload: UserCreateInput) -> UserRecord:
        """Insert one user, raising DuplicateUserEmailError on email conflicts."""

    async def set_reset_token(
        self,
        *,
        user_id: UUID,
        token_hash: str,
        expires_at: datetime,
    ) -> None:
        """Store reset token hash and expiry, replacing any outstanding token."""

    async def clear_reset_token(self, *, user_id: UUID) -> None:
        """Drop outstanding reset token hash and expiry."""

    async def consume_reset_token(
        self,
        *,
        user_id: UUID,
        token_hash: str,
        password_hash: str,
        now: datetime,
    ) -> bool:
        """Atomically swap password and clear a matching unexpired token."""

    async def update_password(self, *, user_id: UUID, password_hash: str) -> None:
        """Replace password hash and clear the forced-reset flag."""
