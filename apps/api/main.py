"""api entrypoint and HTTP route wiring."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta

import uvicorn
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from worklog.application.ports.auth_token_repository_port import AuthTokenRepositoryPort
from worklog.application.ports.email_sender_port import EmailSenderPort
from worklog.application.services.auth_service import AuthService
from worklog.application.services.password_change_service import PasswordChangeService
from worklog.application.services.password_reset_service import PasswordResetService
from worklog.application.services.user_management_service import UserManagementService
from worklog.config.settings import Settings, load_settings
from worklog.domain.auth.password_policy import (
    CredentialPolicy,
    SecurePasswordGenerator,
    build_password_validator,
    load_common_passwords,
)
from worklog.infrastructure.db.admin_bootstrap import (
    ensure_initial_admin_user,
    resolve_admin_bootstrap_config,
)
from worklog.infrastructure.db.auth_event_repository import SqlAlchemyAuthEventRepository
from worklog.infrastructure.db.auth_token_repository import SqlAlchemyAuthTokenRepository
from worklog.infrastructure.db.session import create_session_factory
from worklog.infrastructure.db.user_repository import SqlAlchemyUserRepository
from worklog.infrastructure.email.senders import PreviewEmailSender, SmtpEmailSender
from worklog.infrastructure.email.templates import JinjaEmailTemplates
from worklog.infrastructure.http.auth_guard import AuthGuard
from worklog.infrastructure.http.auth_router import build_auth_router
from worklog.infrastructure.http.errors import install_error_handlers
from worklog.infrastructure.http.user_router import build_user_router
from worklog.infrastructure.logging import configure_logging
from worklog.infrastructure.security.password_hasher import BcryptPasswordHasher
from worklog.infrastructure.security.reset_tokens import ResetTokenIssuer, ResetTokenVerifier
from worklog.infrastructure.security.token_service import OpaqueTokenService

API_HOST = "0.0.0.0"
API_PORT = 8000
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiServices:
    """Wired application services shared by the HTTP routers."""

    auth_service: AuthService
    password_reset_service: PasswordResetService
    password_change_service: PasswordChangeService
    user_management_service: UserManagementService
    auth_guard: AuthGuard
    auth_token_repository: AuthTokenRepositoryPort
    token_service: OpaqueTokenService


def build_email_sender(settings: Settings) -> EmailSenderPort:
    """Build the configured email delivery adapter."""

    if settings.email_provider == "smtp":
        return SmtpEmailSender(
            host=settings.smtp_host,
            port=settings.smtp_port,
            sender=settings.smtp_from,
            username=settings.smtp_user,
            password=settings.smtp_password,
            starttls=settings.smtp_starttls,
        )
    return PreviewEmailSender()


def build_services(
    *,
    session_factory: async_sessionmaker[AsyncSession],
    policy: CredentialPolicy,
    public_base_url: str,
    email_sender: EmailSenderPort,
    extra_common_passwords: tuple[str, ...] = (),
    session_ttl: timedelta = timedelta(hours=8),
    now: Callable[[], datetime] | None = None,
) -> ApiServices:
    """Wire SQLAlchemy-backed repositories and credential primitives into services."""

    users = SqlAlchemyUserRepository(session_factory)
    auth_events = SqlAlchemyAuthEventRepository(session_factory)
    auth_tokens = SqlAlchemyAuthTokenRepository(session_factory, now=now)
    password_hasher = BcryptPasswordHasher(cost_factor=policy.hash_cost_factor)
    password_validator = build_password_validator(
        policy,
        extra_common_passwords=extra_common_passwords,
    )
    email_templates = JinjaEmailTemplates(public_base_url=public_base_url, now=now)
    token_service = OpaqueTokenService(token_ttl=session_ttl, now=now)

    return ApiServices(
        auth_service=AuthService(
            users=users,
            auth_events=auth_events,
            password_hasher=password_hasher,
        ),
        password_reset_service=PasswordResetService(
            users=users,
            auth_events=auth_events,
            auth_tokens=auth_tokens,
            password_hasher=password_hasher,
            password_validator=password_validator,
            token_issuer=ResetTokenIssuer(
                validity=timedelta(minutes=policy.token_validity_minutes),
                now=now,
            ),
            token_verifier=ResetTokenVerifier(),
            email_sender=email_sender,
            email_templates=email_templates,
            now=now,
        ),
        password_change_service=PasswordChangeService(
            users=users,
            auth_events=auth_events,
            password_hasher=password_hasher,
            password_validator=password_validator,
        ),
        user_management_service=UserManagementService(
            users=users,
            password_hasher=password_hasher,
            password_generator=SecurePasswordGenerator(password_validator),
            email_sender=email_sender,
            email_templates=email_templates,
            temporary_password_length=policy.generated_password_length,
        ),
        auth_guard=AuthGuard(
            token_service=token_service,
            auth_token_repository=auth_tokens,
            user_repository=users,
        ),
        auth_token_repository=auth_tokens,
        token_service=token_service,
    )


def create_app(
    *,
    settings: Settings | None = None,
    services: ApiServices | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    email_sender: EmailSenderPort | None = None,
    bootstrap_admin: bool = True,
) -> FastAPI:
    """Create FastAPI app exposing login, password lifecycle and user endpoints."""

    if services is None or (bootstrap_admin and session_factory is None):
        if settings is None:
            settings = load_settings()
        if session_factory is None:
            session_factory = create_session_factory(settings.database_url)
    if settings is not None:
        configure_logging(level=settings.log_level)

    if services is None:
        assert settings is not None
        assert session_factory is not None
        services = build_services(
            session_factory=session_factory,
            policy=settings.credential_policy(),
            public_base_url=str(settings.public_base_url),
            email_sender=email_sender or build_email_sender(settings),
            extra_common_passwords=_extra_common_passwords(settings),
            session_ttl=timedelta(minutes=settings.auth_token_ttl_minutes),
        )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if bootstrap_admin and settings is not None and session_factory is not None:
            await _bootstrap_admin(settings=settings, session_factory=session_factory)
        yield

    app = FastAPI(title="Work Management Credentials API", lifespan=lifespan)
    install_error_handlers(app)
    app.include_router(
        build_auth_router(
            auth_service=services.auth_service,
            auth_token_repository=services.auth_token_repository,
            token_service=services.token_service,
            password_reset_service=services.password_reset_service,
            password_change_service=services.password_change_service,
            auth_guard=services.auth_guard,
        )
    )
    app.include_router(
        build_user_router(
            user_management_service=services.user_management_service,
            auth_guard=services.auth_guard,
        )
    )
    return app


async def _bootstrap_admin(
    *,
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Create the first admin account from environment settings when configured."""

    config = resolve_admin_bootstrap_config(
        email=settings.bootstrap_admin_email,
        password=settings.bootstrap_admin_password,
        password_file=settings.bootstrap_admin_password_file,
    )
    if config is None:
        return

    policy = settings.credential_policy()
    result = await ensure_initial_admin_user(
        session_factory=session_factory,
        password_hasher=BcryptPasswordHasher(cost_factor=policy.hash_cost_factor),
        config=config,
        password_validator=build_password_validator(
            policy,
            extra_common_passwords=_extra_common_passwords(settings),
        ),
    )
    logger.info("bootstrap_admin_result outcome=%s email=%s", result.outcome.value, result.email)


def _extra_common_passwords(settings: Settings) -> tuple[str, ...]:
    if settings.password_denylist_file is None:
        return ()
    return load_common_passwords(settings.password_denylist_file)


def run_asgi_server(*, host: str = API_HOST, port: int = API_PORT) -> None:
    """Run the API as a long-lived ASGI process using application factory mode."""

    uvicorn.run(
        "apps.api.main:create_app",
        host=host,
        port=port,
        factory=True,
    )


def main() -> None:
    run_asgi_server()


if __name__ == "__main__":
    main()
