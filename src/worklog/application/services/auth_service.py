"""Credential login: resolve the account, check the password, record the attempt."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from worklog.application.ports.auth_event_repository_port import (
    AuthEventCreateInput,
    AuthEventRepositoryPort,
    AuthEventType,
)
from worklog.application.ports.password_hasher_port import PasswordHasherPort
from worklog.application.ports.user_repository_port import UserRecord, UserRepositoryPort
from worklog.domain.auth.credentials import normalize_user_email


class AuthOutcome(StrEnum):
    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"
    INACTIVE_USER = "inactive_user"


@dataclass(frozen=True)
class AuthResult:
    outcome: AuthOutcome
    user: UserRecord | None = None


class AuthService:
    """Verify email/password pairs; every attempt appends exactly one audit event."""

    def __init__(
        self,
        *,
        users: UserRepositoryPort,
        auth_events: AuthEventRepositoryPort,
        password_hasher: PasswordHasherPort,
    ) -> None:
        self._users = users
        self._auth_events = auth_events
        self._password_hasher = password_hasher

    async def authenticate(
        self,
        *,
        email: str,
        password: str,
        ip_address: str | None,
        user_agent: str | None,
    ) -> AuthResult:
        lookup_email, user = await self._find_user(email)
        result = self._evaluate(user, password)

        audit: dict[str, Any] = {"email": lookup_email}
        if result.outcome is AuthOutcome.SUCCESS and user is not None:
            event_type = AuthEventType.LOGIN_SUCCESS
            audit["role"] = user.role.value
            audit["password_reset_required"] = user.password_reset_required
        elif result.outcome is AuthOutcome.INACTIVE_USER:
            event_type = AuthEventType.LOGIN_BLOCKED_INACTIVE
        else:
            event_type = AuthEventType.LOGIN_FAILED
            audit["reason"] = AuthOutcome.INVALID_CREDENTIALS.value

        await self._auth_events.append_event(
            AuthEventCreateInput(
                user_id=user.user_id if user is not None else None,
                event_type=event_type,
                ip_address=ip_address,
                user_agent=user_agent,
                payload=audit,
            )
        )
        return result

    async def _find_user(self, email: str) -> tuple[str, UserRecord | None]:
        try:
            lookup_email = normalize_user_email(email=email)
        except ValueError:
            # Malformed addresses cannot match an account but are still audited.
            return email.strip().lower(), None
        return lookup_email, await self._users.get_by_email(email=lookup_email)

    def _evaluate(self, user: UserRecord | None, password: str) -> AuthResult:
        if user is None:
            return AuthResult(outcome=AuthOutcome.INVALID_CREDENTIALS)
        if not user.is_active:
            return AuthResult(outcome=AuthOutcome.INACTIVE_USER)
        if not self._password_hasher.verify_password(
            password=password,
            password_hash=user.password_hash,
        ):
            return AuthResult(outcome=AuthOutcome.INVALID_CREDENTIALS)
        return AuthResult(outcome=AuthOutcome.SUCCESS, user=user)
