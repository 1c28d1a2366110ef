from __future__ import annotations

import logging
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from worklog.application.ports.auth_event_repository_port import AuthEventCreateInput
from worklog.application.ports.email_sender_port import EmailDeliveryError, EmailMessage
from worklog.application.ports.user_repository_port import UserRecord
from worklog.application.services.password_reset_service import (
    PasswordResetOutcome,
    PasswordResetService,
)
from worklog.domain.auth.password_policy import PasswordStrengthValidator
from worklog.domain.auth.roles import Role
from worklog.infrastructure.email.templates import JinjaEmailTemplates
from worklog.infrastructure.security.reset_tokens import (
    ResetTokenIssuer,
    ResetTokenVerifier,
    hash_reset_token,
)

START = datetime(2026, 4, 1, 9, 0, tzinfo=UTC)


class Clock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeUserRepository:
    def __init__(self, *users: UserRecord) -> None:
        self.users: dict[UUID, UserRecord] = {user.user_id: user for user in users}
        self.cleared: list[UUID] = []

    async def get_active_by_email(self, *, email: str) -> UserRecord | None:
        for user in self.users.values():
            if user.email == email and user.is_active:
                return user
        return None

    async def get_by_reset_token_hash(self, *, token_hash: str) -> UserRecord | None:
        for user in self.users.values():
            if user.password_reset_token_hash == token_hash:
                return user
        return None

    async def set_reset_token(
        self,
        *,
        user_id: UUID,
        token_hash: str,
        expires_at: datetime,
    ) -> None:
        self.users[user_id] = replace(
            self.users[user_id],
            password_reset_token_hash=token_hash,
            password_reset_token_expires_at=expires_at,
        )

    async def clear_reset_token(self, *, user_id: UUID) -> None:
        self.cleared.append(user_id)
        self.users[user_id] = replace(
            self.users[user_id],
            password_reset_token_hash=None,
            password_reset_token_expires_at=None,
        )

    async def consume_reset_token(
        self,
        *,
        user_id: UUID,
        token_hash: str,
        password_hash: str,
        now: datetime,
    ) -> bool:
        user = self.users[user_id]
        expires_at = user.password_reset_token_expires_at
        if user.password_reset_token_hash != token_hash or expires_at is None:
            return False
        if expires_at <= now:
            return False
        self.users[user_id] = replace(
            user,
            password_hash=password_hash,
            password_reset_token_hash=None,
            password_reset_token_expires_at=None,
            password_reset_required=False,
            last_password_change_at=now,
        )
        return True


class FakeAuthEventRepository:
    def __init__(self) -> None:
        self.events: list[AuthEventCreateInput] = []

    async def append_event(self, payload: AuthEventCreateInput) -> int:
        self.events.append(payload)
        return len(self.events)


class FakeAuthTokenRepository:
    def __init__(self, *, active_sessions: int = 0) -> None:
        self.active_sessions = active_sessions
        self.revoked_for: list[UUID] = []

    async def revoke_active_tokens_for_user(self, *, user_id: UUID) -> int:
        self.revoked_for.append(user_id)
        revoked, self.active_sessions = self.active_sessions, 0
        return revoked


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


class SequentialTokens:
    def __init__(self) -> None:
        self.count = 0

    def __call__(self) -> str:
        self.count += 1
        return f"{self.count:064x}"


def _user(*, email: str = "jane@example.org", is_active: bool = True) -> UserRecord:
    return UserRecord(
        user_id=uuid4(),
        name="Jane",
        email=email,
        password_hash="hashed::OldPass123",
        role=Role.USER,
        is_active=is_active,
        password_reset_required=False,
        password_reset_token_hash=None,
        password_reset_token_expires_at=None,
        last_password_change_at=None,
        created_at=START,
        updated_at=START,
    )


def _service(
    users: FakeUserRepository,
    *,
    clock: Clock,
    email_sender: RecordingEmailSender | None = None,
    auth_tokens: FakeAuthTokenRepository | None = None,
    auth_events: FakeAuthEventRepository | None = None,
) -> PasswordResetService:
    return PasswordResetService(
        users=users,
        auth_events=auth_events or FakeAuthEventRepository(),
        auth_tokens=auth_tokens or FakeAuthTokenRepository(),
        password_hasher=FakePasswordHasher(),
        password_validator=PasswordStrengthValidator(),
        token_issuer=ResetTokenIssuer(
            validity=timedelta(hours=1),
            token_factory=SequentialTokens(),
            now=clock,
        ),
        token_verifier=ResetTokenVerifier(),
        email_sender=email_sender or RecordingEmailSender(),
        email_templates=JinjaEmailTemplates(public_base_url="https://app.example.org"),
        now=clock,
    )


@pytest.mark.asyncio
async def test_request_reset_stores_only_hash_and_emails_plaintext_link() -> None:
    user = _user()
    users = FakeUserRepository(user)
    sender = RecordingEmailSender()
    events = FakeAuthEventRepository()
    service = _service(users, clock=Clock(START), email_sender=sender, auth_events=events)

    await service.request_reset(email="  JANE@example.org ", ip_address="10.0.0.1")

    token = f"{1:064x}"
    stored = users.users[user.user_id]
    assert stored.password_reset_token_hash == hash_reset_token(token)
    assert stored.password_reset_token_expires_at == START + timedelta(hours=1)
    assert len(sender.sent) == 1
    assert sender.sent[0].to == "jane@example.org"
    assert f"https://app.example.org/auth/reset-password?token={token}" in sender.sent[0].text
    assert "1 hour" in sender.sent[0].text
    assert [event.event_type for event in events.events] == ["password_reset_requested"]
    assert events.events[0].ip_address == "10.0.0.1"


@pytest.mark.asyncio
@pytest.mark.parametrize("email", ["missing@example.org", "not-an-email"])
async def test_request_reset_for_unknown_email_does_nothing_observable(email: str) -> None:
    users = FakeUserRepository(_user())
    sender = RecordingEmailSender()
    events = FakeAuthEventRepository()
    service = _service(users, clock=Clock(START), email_sender=sender, auth_events=events)

    await service.request_reset(email=email)

    assert sender.sent == []
    assert events.events == []
    assert all(user.password_reset_token_hash is None for user in users.users.values())


@pytest.mark.asyncio
async def test_request_reset_ignores_inactive_accounts() -> None:
    user = _user(is_active=False)
    users = FakeUserRepository(user)
    sender = RecordingEmailSender()
    service = _service(users, clock=Clock(START), email_sender=sender)

    await service.request_reset(email=user.email)

    assert sender.sent == []
    assert users.users[user.user_id].password_reset_token_hash is None


@pytest.mark.asyncio
async def test_email_failure_is_logged_and_token_stays_redeemable(
    caplog: pytest.LogCaptureFixture,
) -> None:
    user = _user()
    users = FakeUserRepository(user)
    service = _service(users, clock=Clock(START), email_sender=RecordingEmailSender(fail=True))

    with caplog.at_level(logging.ERROR):
        await service.request_reset(email=user.email)

    assert "password_reset_email_failed" in caplog.text
    result = await service.reset_password(token=f"{1:064x}", new_password="NewPass456")
    assert result.outcome is PasswordResetOutcome.SUCCESS


@pytest.mark.asyncio
async def test_reset_password_swaps_hash_clears_token_and_revokes_sessions() -> None:
    user = _user()
    users = FakeUserRepository(user)
    clock = Clock(START)
    tokens = FakeAuthTokenRepository(active_sessions=2)
    events = FakeAuthEventRepository()
    service = _service(users, clock=clock, auth_tokens=tokens, auth_events=events)
    await service.request_reset(email=user.email)
    clock.now = START + timedelta(minutes=30)

    result = await service.reset_password(token=f"{1:064x}", new_password="NewPass456")

    assert result.outcome is PasswordResetOutcome.SUCCESS
    stored = users.users[user.user_id]
    assert stored.password_hash == "hashed::NewPass456"
    assert stored.password_reset_token_hash is None
    assert stored.password_reset_token_expires_at is None
    assert stored.last_password_change_at == START + timedelta(minutes=30)
    assert tokens.revoked_for == [user.user_id]
    completed = events.events[-1]
    assert completed.event_type == "password_reset_completed"
    assert completed.payload == {"revoked_sessions": 2}


@pytest.mark.asyncio
async def test_token_cannot_be_redeemed_twice() -> None:
    user = _user()
    users = FakeUserRepository(user)
    service = _service(users, clock=Clock(START))
    await service.request_reset(email=user.email)

    first = await service.reset_password(token=f"{1:064x}", new_password="NewPass456")
    second = await service.reset_password(token=f"{1:064x}", new_password="Other789xY")

    assert first.outcome is PasswordResetOutcome.SUCCESS
    assert second.outcome is PasswordResetOutcome.INVALID_TOKEN
    assert users.users[user.user_id].password_hash == "hashed::NewPass456"


@pytest.mark.asyncio
async def test_expired_token_is_rejected_and_cleared() -> None:
    user = _user()
    users = FakeUserRepository(user)
    clock = Clock(START)
    service = _service(users, clock=clock)
    await service.request_reset(email=user.email)
    clock.now = START + timedelta(hours=1, seconds=1)

    result = await service.reset_password(token=f"{1:064x}", new_password="NewPass456")

    assert result.outcome is PasswordResetOutcome.INVALID_TOKEN
    stored = users.users[user.user_id]
    assert stored.password_hash == "hashed::OldPass123"
    assert stored.password_reset_token_hash is None
    assert users.cleared == [user.user_id]


@pytest.mark.asyncio
async def test_token_at_exact_expiry_instant_is_rejected() -> None:
    user = _user()
    users = FakeUserRepository(user)
    clock = Clock(START)
    service = _service(users, clock=clock)
    await service.request_reset(email=user.email)
    clock.now = START + timedelta(hours=1)

    result = await service.reset_password(token=f"{1:064x}", new_password="NewPass456")

    assert result.outcome is PasswordResetOutcome.INVALID_TOKEN


@pytest.mark.asyncio
async def test_newer_request_supersedes_older_token() -> None:
    user = _user()
    users = FakeUserRepository(user)
    service = _service(users, clock=Clock(START))
    await service.request_reset(email=user.email)
    await service.request_reset(email=user.email)

    stale = await service.reset_password(token=f"{1:064x}", new_password="NewPass456")
    fresh = await service.reset_password(token=f"{2:064x}", new_password="NewPass456")

    assert stale.outcome is PasswordResetOutcome.INVALID_TOKEN
    assert fresh.outcome is PasswordResetOutcome.SUCCESS


@pytest.mark.asyncio
async def test_weak_password_is_reported_before_token_is_checked() -> None:
    user = _user()
    users = FakeUserRepository(user)
    service = _service(users, clock=Clock(START))
    await service.request_reset(email=user.email)

    result = await service.reset_password(token=f"{1:064x}", new_password="password1")

    assert result.outcome is PasswordResetOutcome.WEAK_PASSWORD
    assert "Password must contain at least one uppercase letter" in result.errors
    assert "Password is too common and easy to guess" in result.errors
    assert users.users[user.user_id].password_reset_token_hash == hash_reset_token(f"{1:064x}")


@pytest.mark.asyncio
@pytest.mark.parametrize("token", ["", "unknown-token", "f" * 64])
async def test_unknown_or_empty_token_is_invalid(token: str) -> None:
    users = FakeUserRepository(_user())
    service = _service(users, clock=Clock(START))

    result = await service.reset_password(token=token, new_password="NewPass456")

    assert result.outcome is PasswordResetOutcome.INVALID_TOKEN


@pytest.mark.asyncio
async def test_token_of_deactivated_account_is_invalid() -> None:
    user = _user()
    users = FakeUserRepository(user)
    service = _service(users, clock=Clock(START))
    await service.request_reset(email=user.email)
    users.users[user.user_id] = replace(users.users[user.user_id], is_active=False)

    result = await service.reset_password(token=f"{1:064x}", new_password="NewPass456")

    assert result.outcome is PasswordResetOutcome.INVALID_TOKEN
    assert users.users[user.user_id].password_hash == "hashed::OldPass123"
