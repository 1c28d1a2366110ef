"""FastAPI router for login and password lifecycle endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Header, Request

from worklog.application.dto.auth_models import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ResetPasswordRequest,
)
from worklog.application.ports.auth_token_repository_port import (
    AuthTokenCreateInput,
    AuthTokenRepositoryPort,
)
from worklog.application.services.auth_service import AuthOutcome, AuthService
from worklog.application.services.password_change_service import (
    PasswordChangeOutcome,
    PasswordChangeService,
)
from worklog.application.services.password_reset_service import (
    RESET_REQUEST_ACCEPTED_MESSAGE,
    PasswordResetOutcome,
    PasswordResetService,
)
from worklog.infrastructure.http.auth_guard import AuthGuard, resolve_user_or_raise
from worklog.infrastructure.http.errors import ApiError
from worklog.infrastructure.security.token_service import OpaqueTokenService


def build_auth_router(
    *,
    auth_service: AuthService,
    auth_token_repository: AuthTokenRepositoryPort,
    token_service: OpaqueTokenService,
    password_reset_service: PasswordResetService,
    password_change_service: PasswordChangeService,
    auth_guard: AuthGuard,
) -> APIRouter:
    """Build router exposing credential login and password management endpoints."""

    router = APIRouter(prefix="/auth", tags=["auth"])

    @router.post("/login", response_model=LoginResponse)
    async def login(payload: LoginRequest, request: Request) -> LoginResponse:
        result = await auth_service.authenticate(
            email=payload.email,
            password=payload.password,
            ip_address=_client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
        if result.outcome is AuthOutcome.INACTIVE_USER:
            raise ApiError(status_code=403, code="INACTIVE_USER", message="Account is inactive")
        if result.outcome is not AuthOutcome.SUCCESS or result.user is None:
            raise ApiError(
                status_code=401,
                code="INVALID_CREDENTIALS",
                message="Invalid email or password",
            )

        issued = token_service.issue_token()
        await auth_token_repository.create_token(
            AuthTokenCreateInput(
                user_id=result.user.user_id,
                token_hash=issued.token_hash,
                expires_at=issued.expires_at,
            )
        )
        return LoginResponse(
            token=issued.token,
            role=result.user.role,
            expires_at=issued.expires_at,
            password_reset_required=result.user.password_reset_required,
        )

    @router.post("/forgot-password", response_model=MessageResponse)
    async def forgot_password(payload: ForgotPasswordRequest, request: Request) -> MessageResponse:
        await password_reset_service.request_reset(
            email=payload.email,
            ip_address=_client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
        return MessageResponse(message=RESET_REQUEST_ACCEPTED_MESSAGE)

    @router.post("/reset-password", response_model=MessageResponse)
    async def reset_password(payload: ResetPasswordRequest, request: Request) -> MessageResponse:
        result = await password_reset_service.reset_password(
            token=payload.token,
            new_password=payload.new_password,
            ip_address=_client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
        if result.outcome is PasswordResetOutcome.WEAK_PASSWORD:
            raise ApiError(
                status_code=400,
                code="WEAK_PASSWORD",
                message="Password does not meet security requirements",
                details=list(result.errors),
            )
        if result.outcome is PasswordResetOutcome.INVALID_TOKEN:
            raise ApiError(
                status_code=400,
                code="INVALID_TOKEN",
                message="Invalid or expired reset token",
            )
        return MessageResponse(
            message="Password has been successfully reset. You can now login."
        )

    @router.post("/change-password", response_model=MessageResponse)
    async def change_password(
        payload: ChangePasswordRequest,
        request: Request,
        authorization: Annotated[str | None, Header()] = None,
    ) -> MessageResponse:
        user = await resolve_user_or_raise(
            auth_guard=auth_guard,
            authorization_header=authorization,
        )
        result = await password_change_service.change_password(
            user_id=user.user_id,
            current_password=payload.current_password,
            new_password=payload.new_password,
            ip_address=_client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
        _raise_for_change_outcome(result.outcome, errors=result.errors)
        return MessageResponse(message="Password has been successfully changed")

    return router


def _raise_for_change_outcome(
    outcome: PasswordChangeOutcome,
    *,
    errors: tuple[str, ...],
) -> None:
    """Map change-password outcomes into API errors."""

    if outcome is PasswordChangeOutcome.WEAK_PASSWORD:
        raise ApiError(
            status_code=400,
            code="WEAK_PASSWORD",
            message="New password does not meet security requirements",
            details=list(errors),
        )
    if outcome is PasswordChangeOutcome.USER_NOT_FOUND:
        raise ApiError(status_code=404, code="USER_NOT_FOUND", message="User account not found")
    if outcome is PasswordChangeOutcome.INVALID_CURRENT_PASSWORD:
        raise ApiError(
            status_code=400,
            code="INVALID_PASSWORD",
            message="Current password is incorrect",
        )
    if outcome is PasswordChangeOutcome.SAME_PASSWORD:
        raise ApiError(
            status_code=400,
            code="SAME_PASSWORD",
            message="New password must be different from current password",
        )


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client is not None else None
