from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

import pytest

from worklog.application.ports.email_sender_port import EmailDeliveryError, EmailMessage
from worklog.application.ports.user_repository_port import (
    DuplicateUserEmailError,
    UserCreateInput,
    UserRecord,
)
from worklog.application.services.user_management_service import (
    InvalidUserEmailError,
    UserCreateRequest,
    UserManagementService,
)
from worklog.domain.auth.password_policy import PasswordStrengthValidator, SecurePasswordGenerator
from worklog.domain.auth.roles import Role
from worklog.infrastructure.email.templates import JinjaEmailTemplates


class FakeUserRepository:
    def __init__(self) -> None:
        self.users: list[UserRecord] = []
        self.create_calls: list[UserCreateInput] = []

    async def get_by_email(self, *, email: str) -> UserRecord | None:
        for user in self.users:
            if user.email == email:
                return user
        return None

    async def list_users(self) -> list[UserRecord]:
        return sorted(self.users, key=lambda user: user.email)

    async def create_user(self, payload: UserCreateInput) -> UserRecord:
        self.create_calls.append(payload)
        now = datetime.now(tz=UTC)
        record = UserRecord(
            user_id=payload.user_id,
            name=payload.name,
            email=payload.email,
            password_hash=payload.password_hash,
            role=payload.role,
            is_active=payload.is_active,
            password_reset_required=payload.password_reset_required,
            password_reset_token_hash=None,
            password_reset_token_expires_at=None,
            last_password_change_at=None,
            created_at=now,
            updated_at=now,
        )
        self.users.append(record)
        return record


class FakePasswordHasher:
    def hash_password(self, password: str) -> str:
        return f"hashed::{password}"

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        return password_hash == f"hashed::{password}"


class RecordingEmailSender:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> None:
        if self.fail:
            raise EmailDeliveryError("relay unavailable")
        self.sent.append(message)


def _service(
    users: FakeUserRepository,
    *,
    sender: RecordingEmailSender | None = None,
) -> UserManagementService:
    validator = PasswordStrengthValidator()
    return UserManagementService(
        users=users,
        password_hasher=FakePasswordHasher(),
        password_generator=SecurePasswordGenerator(validator),
        email_sender=sender or RecordingEmailSender(),
        email_templates=JinjaEmailTemplates(public_base_url="https://app.example.org/"),
        temporary_password_length=16,
    )


@pytest.mark.asyncio
async def test_create_user_generates_policy_compliant_password_and_forces_reset() -> None:
    users = FakeUserRepository()

    created = await _service(users).create_user(
        request=UserCreateRequest(email=" New.Hire@Example.org ", role=Role.MANAGER, name=" Ana "),
    )

    assert created.user.email == "new.hire@example.org"
    assert created.user.name == "Ana"
    assert created.user.role is Role.MANAGER
    assert created.user.password_reset_required is True
    assert len(created.temporary_password) == 16
    assert PasswordStrengthValidator().validate(created.temporary_password).is_valid is True
    assert users.create_calls[0].password_hash == f"hashed::{created.temporary_password}"
    assert created.welcome_email_sent is False


@pytest.mark.asyncio
async def test_create_user_can_send_welcome_email_with_temporary_password() -> None:
    users = FakeUserRepository()
    sender = RecordingEmailSender()

    created = await _service(users, sender=sender).create_user(
        request=UserCreateRequest(email="new@example.org"),
        send_email=True,
    )

    assert created.welcome_email_sent is True
    assert len(sender.sent) == 1
    message = sender.sent[0]
    assert message.to == "new@example.org"
    assert message.subject == "Welcome to Work Management"
    assert created.temporary_password in message.text
    assert "https://app.example.org/auth/signin" in message.text
    assert "Hello new@example.org" in message.text


@pytest.mark.asyncio
async def test_welcome_email_failure_still_creates_account() -> None:
    users = FakeUserRepository()

    created = await _service(users, sender=RecordingEmailSender(fail=True)).create_user(
        request=UserCreateRequest(email="new@example.org"),
        send_email=True,
    )

    assert created.welcome_email_sent is False
    assert len(users.users) == 1


@pytest.mark.asyncio
async def test_duplicate_email_is_rejected_before_insert() -> None:
    users = FakeUserRepository()
    service = _service(users)
    await service.create_user(request=UserCreateRequest(email="dup@example.org"))

    with pytest.raises(DuplicateUserEmailError):
        await service.create_user(request=UserCreateRequest(email="DUP@example.org"))

    assert len(users.create_calls) == 1


@pytest.mark.asyncio
async def test_invalid_email_is_rejected() -> None:
    with pytest.raises(InvalidUserEmailError):
        await _service(FakeUserRepository()).create_user(
            request=UserCreateRequest(email="not-an-email"),
        )


@pytest.mark.asyncio
async def test_list_users_returns_repository_order() -> None:
    users = FakeUserRepository()
    service = _service(users)
    for email in ("zoe@example.org", "adam@example.org"):
        await service.create_user(request=UserCreateRequest(email=email, name=str(uuid4())))

    listed = await service.list_users()

    assert [user.email for user in listed] == ["adam@example.org", "zoe@example.org"]
