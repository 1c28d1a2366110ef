"""Self-service password change for authenticated users."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID

from worklog.application.ports.auth_event_repository_port import (
    AuthEventCreateInput,
    AuthEventRepositoryPort,
    AuthEventType,
)
from worklog.application.ports.password_hasher_port import PasswordHasherPort
from worklog.application.ports.user_repository_port import UserRepositoryPort
from worklog.domain.auth.password_policy import PasswordStrengthValidator

logger = logging.getLogger(__name__)


class PasswordChangeOutcome(StrEnum):
    """Outcomes of one change-password attempt."""

    SUCCESS = "success"
    WEAK_PASSWORD = "weak_password"
    USER_NOT_FOUND = "user_not_found"
    INVALID_CURRENT_PASSWORD = "invalid_current_password"
    SAME_PASSWORD = "same_password"


@dataclass(frozen=True)
class PasswordChangeResult:
    outcome: PasswordChangeOutcome
    errors: tuple[str, ...] = ()


class PasswordChangeService:
    """Replace a user's password after re-checking the current one."""

    def __init__(
        self,
        *,
        users: UserRepositoryPort,
        auth_events: AuthEventRepositoryPort,
        password_hasher: PasswordHasherPort,
        password_validator: PasswordStrengthValidator,
    ) -> None:
        self._users = users
        self._auth_events = auth_events
        self._password_hasher = password_hasher
        self._password_validator = password_validator

    async def change_password(
        self,
        *,
        user_id: UUID,
        current_password: str,
        new_password: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> PasswordChangeResult:
        strength = self._password_validator.validate(new_password)
        if not strength.is_valid:
            return PasswordChangeResult(
                outcome=PasswordChangeOutcome.WEAK_PASSWORD,
                errors=strength.errors,
            )

        user = await self._users.get_by_id(user_id=user_id)
        if user is None or not user.password_hash:
            return PasswordChangeResult(outcome=PasswordChangeOutcome.USER_NOT_FOUND)

        if not self._password_hasher.verify_password(
            password=current_password,
            password_hash=user.password_hash,
        ):
            await self._auth_events.append_event(
                AuthEventCreateInput(
                    user_id=user.user_id,
                    event_type=AuthEventType.PASSWORD_CHANGE_FAILED,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    payload={"reason": "invalid_current_password"},
                )
            )
            return PasswordChangeResult(outcome=PasswordChangeOutcome.INVALID_CURRENT_PASSWORD)

        if self._password_hasher.verify_password(
            password=new_password,
            password_hash=user.password_hash,
        ):
            return PasswordChangeResult(outcome=PasswordChangeOutcome.SAME_PASSWORD)

        await self._users.update_password(
            user_id=user.user_id,
            password_hash=self._password_hasher.hash_password(new_password),
        )
        await self._auth_events.append_event(
            AuthEventCreateInput(
                user_id=user.user_id,
                event_type=AuthEventType.PASSWORD_CHANGED,
                ip_address=ip_address,
                user_agent=user_agent,
                payload={"was_reset_required": user.password_reset_required},
            )
        )
        logger.info("password_changed user_id=%s", user.user_id)
        return PasswordChangeResult(outcome=PasswordChangeOutcome.SUCCESS)
