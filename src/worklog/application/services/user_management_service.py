"""Application service for admin user-management operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import uuid4

from worklog.application.ports.email_sender_port import EmailDeliveryError, EmailSenderPort
from worklog.application.ports.email_template_port import EmailTemplatePort
from worklog.application.ports.password_hasher_port import PasswordHasherPort
from worklog.application.ports.user_repository_port import (
    DuplicateUserEmailError,
    UserCreateInput,
    UserRecord,
    UserRepositoryPort,
)
from worklog.domain.auth.credentials import normalize_display_name, normalize_user_email
from worklog.domain.auth.password_policy import (
    DEFAULT_GENERATED_PASSWORD_LENGTH,
    SecurePasswordGenerator,
)
from worklog.domain.auth.roles import Role

logger = logging.getLogger(__name__)


class InvalidUserEmailError(ValueError):
    """Raised when a create-user request carries an unusable email."""


@dataclass(frozen=True)
class UserCreateRequest:
    """Admin-supplied fields for one new account."""

    email: str
    role: Role = Role.USER
    name: str | None = None


@dataclass(frozen=True)
class CreatedUser:
    """Newly created account and its one-time temporary password."""

    user: UserRecord
    temporary_password: str
    welcome_email_sent: bool


class UserManagementService:
    """Expose user listing and account creation use-cases."""

    def __init__(
        self,
        *,
        users: UserRepositoryPort,
        password_hasher: PasswordHasherPort,
        password_generator: SecurePasswordGenerator,
        email_sender: EmailSenderPort,
        email_templates: EmailTemplatePort,
        temporary_password_length: int = DEFAULT_GENERATED_PASSWORD_LENGTH,
    ) -> None:
        self._users = users
        self._password_hasher = password_hasher
        self._password_generator = password_generator
        self._email_sender = email_sender
        self._email_templates = email_templates
        self._temporary_password_length = temporary_password_length

    async def list_users(self) -> list[UserRecord]:
        """Return deterministic user listing for admin surfaces."""

        return await self._users.list_users()

    async def create_user(
        self,
        *,
        request: UserCreateRequest,
        send_email: bool = False,
    ) -> CreatedUser:
        """Create an account with a generated password that must be changed on first login."""

        try:
            email = normalize_user_email(email=request.email)
        except ValueError as exc:
            raise InvalidUserEmailError(str(exc)) from exc

        if await self._users.get_by_email(email=email) is not None:
            raise DuplicateUserEmailError(email=email)

        temporary_password = self._password_generator.generate(self._temporary_password_length)
        user = await self._users.create_user(
            UserCreateInput(
                user_id=uuid4(),
                name=normalize_display_name(name=request.name),
                email=email,
                password_hash=self._password_hasher.hash_password(temporary_password),
                role=request.role,
                password_reset_required=True,
            )
        )
        logger.info("user_created user_id=%s role=%s", user.user_id, user.role.value)

        welcome_email_sent = False
        if send_email:
            message = self._email_templates.render_welcome(
                to=user.email,
                name=user.name or user.email,
                temporary_password=temporary_password,
            )
            try:
                await self._email_sender.send(message)
            except EmailDeliveryError:
                logger.exception("welcome_email_failed user_id=%s", user.user_id)
            else:
                welcome_email_sent = True

        return CreatedUser(
            user=user,
            temporary_password=temporary_password,
            welcome_email_sent=welcome_email_sent,
        )
