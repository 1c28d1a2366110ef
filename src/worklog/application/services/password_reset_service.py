"""Forgot-password and reset-password use-cases."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

from worklog.application.ports.auth_event_repository_port import (
    AuthEventCreateInput,
    AuthEventRepositoryPort,
    AuthEventType,
)
from worklog.application.ports.auth_token_repository_port import AuthTokenRepositoryPort
from worklog.application.ports.email_sender_port import EmailDeliveryError, EmailSenderPort
from worklog.application.ports.email_template_port import EmailTemplatePort
from worklog.application.ports.password_hasher_port import PasswordHasherPort
from worklog.application.ports.reset_token_port import (
    ResetTokenIssuerPort,
    ResetTokenVerifierPort,
)
from worklog.application.ports.user_repository_port import UserRepositoryPort
from worklog.domain.auth.credentials import normalize_user_email
from worklog.domain.auth.password_policy import PasswordStrengthValidator
from worklog.domain.auth.reset_token_state import ResetTokenState, reset_token_state

logger = logging.getLogger(__name__)

RESET_REQUEST_ACCEPTED_MESSAGE = (
    "If an account with that email exists, a password reset link has been sent"
)


class PasswordResetOutcome(StrEnum):
    """Outcomes of one reset-password attempt."""

    SUCCESS = "success"
    WEAK_PASSWORD = "weak_password"
    INVALID_TOKEN = "invalid_token"


@dataclass(frozen=True)
class PasswordResetResult:
    """Reset-password result with validator errors for weak passwords."""

    outcome: PasswordResetOutcome
    errors: tuple[str, ...] = ()


class PasswordResetService:
    """Issue emailed reset tokens and redeem them for a new password."""

    def __init__(
        self,
        *,
        users: UserRepositoryPort,
        auth_events: AuthEventRepositoryPort,
        auth_tokens: AuthTokenRepositoryPort,
        password_hasher: PasswordHasherPort,
        password_validator: PasswordStrengthValidator,
        token_issuer: ResetTokenIssuerPort,
        token_verifier: ResetTokenVerifierPort,
        email_sender: EmailSenderPort,
        email_templates: EmailTemplatePort,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._users = users
        self._auth_events = auth_events
        self._auth_tokens = auth_tokens
        self._password_hasher = password_hasher
        self._password_validator = password_validator
        self._token_issuer = token_issuer
        self._token_verifier = token_verifier
        self._email_sender = email_sender
        self._email_templates = email_templates
        self._now = now or (lambda: datetime.now(tz=UTC))

    async def request_reset(
        self,
        *,
        email: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        """Issue a reset token for an active account; unknown emails are silently ignored."""

        try:
            normalized_email = normalize_user_email(email=email)
        except ValueError:
            logger.info("password_reset_requested_invalid_email")
            return

        user = await self._users.get_active_by_email(email=normalized_email)
        if user is None:
            logger.info("password_reset_requested_unknown_account")
            return

        issued = self._token_issuer.issue()
        await self._users.set_reset_token(
            user_id=user.user_id,
            token_hash=issued.token_hash,
            expires_at=issued.expires_at,
        )
        await self._auth_events.append_event(
            AuthEventCreateInput(
                user_id=user.user_id,
                event_type=AuthEventType.PASSWORD_RESET_REQUESTED,
                ip_address=ip_address,
                user_agent=user_agent,
                payload={"expires_at": issued.expires_at.isoformat()},
            )
        )
        logger.info(
            "password_reset_token_issued user_id=%s expires_at=%s",
            user.user_id,
            issued.expires_at.isoformat(),
        )

        message = self._email_templates.render_password_reset(
            to=user.email,
            name=user.name or "User",
            reset_token=issued.plaintext_token,
            validity=self._token_issuer.validity,
        )
        try:
            await self._email_sender.send(message)
        except EmailDeliveryError:
            # The stored token remains redeemable; the user can request another email.
            logger.exception("password_reset_email_failed user_id=%s", user.user_id)

    async def reset_password(
        self,
        *,
        token: str,
        new_password: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> PasswordResetResult:
        """Validate the new password, redeem the token and commit the new hash."""

        strength = self._password_validator.validate(new_password)
        if not strength.is_valid:
            return PasswordResetResult(
                outcome=PasswordResetOutcome.WEAK_PASSWORD,
                errors=strength.errors,
            )

        if not token:
            return PasswordResetResult(outcome=PasswordResetOutcome.INVALID_TOKEN)

        token_hash = self._token_verifier.hash_token(token)
        user = await self._users.get_by_reset_token_hash(token_hash=token_hash)
        if user is None:
            logger.info("password_reset_rejected reason=unknown_token")
            return PasswordResetResult(outcome=PasswordResetOutcome.INVALID_TOKEN)

        now = self._now()
        stored_hash = user.password_reset_token_hash
        state = reset_token_state(
            token_hash=stored_hash,
            expires_at=user.password_reset_token_expires_at,
            now=now,
        )
        if stored_hash is None or state is ResetTokenState.NO_TOKEN:
            logger.info("password_reset_rejected user_id=%s reason=no_token", user.user_id)
            return PasswordResetResult(outcome=PasswordResetOutcome.INVALID_TOKEN)

        if not self._token_verifier.verify(token, stored_hash):
            logger.info("password_reset_rejected user_id=%s reason=mismatch", user.user_id)
            return PasswordResetResult(outcome=PasswordResetOutcome.INVALID_TOKEN)

        if state is ResetTokenState.EXPIRED:
            await self._users.clear_reset_token(user_id=user.user_id)
            logger.info("password_reset_rejected user_id=%s reason=expired", user.user_id)
            return PasswordResetResult(outcome=PasswordResetOutcome.INVALID_TOKEN)

        if not user.is_active:
            logger.info("password_reset_rejected user_id=%s reason=inactive", user.user_id)
            return PasswordResetResult(outcome=PasswordResetOutcome.INVALID_TOKEN)

        password_hash = self._password_hasher.hash_password(new_password)
        consumed = await self._users.consume_reset_token(
            user_id=user.user_id,
            token_hash=token_hash,
            password_hash=password_hash,
            now=now,
        )
        if not consumed:
            logger.info("password_reset_rejected user_id=%s reason=already_consumed", user.user_id)
            return PasswordResetResult(outcome=PasswordResetOutcome.INVALID_TOKEN)

        revoked = await self._auth_tokens.revoke_active_tokens_for_user(user_id=user.user_id)
        await self._auth_events.append_event(
            AuthEventCreateInput(
                user_id=user.user_id,
                event_type=AuthEventType.PASSWORD_RESET_COMPLETED,
                ip_address=ip_address,
                user_agent=user_agent,
                payload={"revoked_sessions": revoked},
            )
        )
        logger.info("password_reset_completed user_id=%s", user.user_id)
        return PasswordResetResult(outcome=PasswordResetOutcome.SUCCESS)
