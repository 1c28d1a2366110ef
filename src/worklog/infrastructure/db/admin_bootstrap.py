"""First-admin provisioning from environment configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from uuid import uuid4

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from worklog.application.ports.password_hasher_port import PasswordHasherPort
from worklog.application.ports.user_repository_port import (
    DuplicateUserEmailError,
    UserCreateInput,
)
from worklog.domain.auth.credentials import normalize_user_email, require_non_blank_password
from worklog.domain.auth.password_policy import PasswordStrengthValidator
from worklog.domain.auth.roles import Role
from worklog.infrastructure.db.metadata import users
from worklog.infrastructure.db.user_repository import SqlAlchemyUserRepository

logger = logging.getLogger(__name__)


class AdminBootstrapConfigError(ValueError):
    """BOOTSTRAP_ADMIN_* variables are set but unusable."""


@dataclass(frozen=True)
class AdminBootstrapConfig:
    email: str
    password: str


class AdminBootstrapOutcome(StrEnum):
    CREATED = "created"
    SKIPPED_USERS_PRESENT = "skipped_users_present"
    SKIPPED_CONCURRENT_INSERT = "skipped_concurrent_insert"


@dataclass(frozen=True)
class AdminBootstrapResult:
    outcome: AdminBootstrapOutcome
    email: str
    password_reset_required: bool = False


def resolve_admin_bootstrap_config(
    *,
    email: str | None,
    password: str | None,
    password_file: str | None,
) -> AdminBootstrapConfig | None:
    """Build the bootstrap config, or return None when no variable is set.

    The password comes from exactly one of BOOTSTRAP_ADMIN_PASSWORD or
    BOOTSTRAP_ADMIN_PASSWORD_FILE; the file content is stripped.
    """

    if email is None:
        if password is None and password_file is None:
            return None
        raise AdminBootstrapConfigError(
            "BOOTSTRAP_ADMIN_EMAIL is required when bootstrap-admin variables are set"
        )

    raw_password = _read_password_source(password=password, password_file=password_file)

    try:
        normalized_email = normalize_user_email(email=email)
    except ValueError as exc:
        raise AdminBootstrapConfigError("BOOTSTRAP_ADMIN_EMAIL is not a valid address") from exc
    try:
        checked_password = require_non_blank_password(password=raw_password)
    except ValueError as exc:
        raise AdminBootstrapConfigError("bootstrap admin password cannot be blank") from exc

    return AdminBootstrapConfig(email=normalized_email, password=checked_password)


def _read_password_source(*, password: str | None, password_file: str | None) -> str:
    if password is not None and password_file is not None:
        raise AdminBootstrapConfigError(
            "set only one of BOOTSTRAP_ADMIN_PASSWORD or BOOTSTRAP_ADMIN_PASSWORD_FILE"
        )
    if password is not None:
        return password
    if password_file is None:
        raise AdminBootstrapConfigError(
            "set BOOTSTRAP_ADMIN_PASSWORD or BOOTSTRAP_ADMIN_PASSWORD_FILE "
            "when BOOTSTRAP_ADMIN_EMAIL is set"
        )
    try:
        return Path(password_file).read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise AdminBootstrapConfigError("failed to read BOOTSTRAP_ADMIN_PASSWORD_FILE") from exc


async def ensure_initial_admin_user(
    *,
    session_factory: async_sessionmaker[AsyncSession],
    password_hasher: PasswordHasherPort,
    config: AdminBootstrapConfig,
    password_validator: PasswordStrengthValidator | None = None,
) -> AdminBootstrapResult:
    """Insert an `admin` account when no account exists yet.

    A bootstrap password that fails the strength policy is still accepted, but
    the account is flagged so the first login has to replace it.
    """

    async with session_factory() as session:
        existing = (
            await session.execute(sa.select(sa.func.count()).select_from(users))
        ).scalar_one()
    if existing:
        return AdminBootstrapResult(
            outcome=AdminBootstrapOutcome.SKIPPED_USERS_PRESENT,
            email=config.email,
        )

    reset_required = False
    if password_validator is not None:
        strength = password_validator.validate(config.password)
        if not strength.is_valid:
            logger.warning(
                "bootstrap_admin_weak_password email=%s errors=%d",
                config.email,
                len(strength.errors),
            )
            reset_required = True

    try:
        await SqlAlchemyUserRepository(session_factory).create_user(
            UserCreateInput(
                user_id=uuid4(),
                name=None,
                email=config.email,
                password_hash=password_hasher.hash_password(config.password),
                role=Role.ADMIN,
                password_reset_required=reset_required,
            )
        )
    except DuplicateUserEmailError:
        return AdminBootstrapResult(
            outcome=AdminBootstrapOutcome.SKIPPED_CONCURRENT_INSERT,
            email=config.email,
        )

    logger.info("bootstrap_admin_created email=%s reset_required=%s", config.email, reset_required)
    return AdminBootstrapResult(
        outcome=AdminBootstrapOutcome.CREATED,
        email=config.email,
        password_reset_required=reset_required,
    )
