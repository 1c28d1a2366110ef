"""Port for append-only authentication audit events."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol
from uuid import UUID


class AuthEventType(StrEnum):
    """Audit vocabulary for credential activity."""

    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILED = "login_failed"
    LOGIN_BLOCKED_INACTIVE = "login_blocked_inactive"
    PASSWORD_RESET_REQUESTED = "password_reset_requested"
    PASSWORD_RESET_COMPLETED = "password_reset_completed"
    PASSWORD_CHANGED = "password_changed"
    PASSWORD_CHANGE_FAILED = "password_change_failed"


@dataclass(frozen=True)
class AuthEventCreateInput:
    """One audit row; `user_id` is None when the account could not be resolved."""

    user_id: UUID | None
    event_type: AuthEventType | str
    ip_address: str | None = None
    user_agent: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)


class AuthEventRepositoryPort(Protocol):
    async def append_event(self, payload: AuthEventCreateInput) -> int:
        """Append one auth event and return its id."""
