"""FastAPI router for admin account management endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Header

from worklog.application.dto.auth_models import (
    CreatedUserData,
    CreateUserRequest,
    CreateUserResponse,
    UserListResponse,
    UserSummary,
)
from worklog.application.ports.user_repository_port import DuplicateUserEmailError
from worklog.application.services.user_management_service import (
    InvalidUserEmailError,
    UserCreateRequest,
    UserManagementService,
)
from worklog.infrastructure.http.auth_guard import AuthGuard, resolve_user_or_raise
from worklog.infrastructure.http.errors import ApiError


def build_user_router(
    *,
    user_management_service: UserManagementService,
    auth_guard: AuthGuard,
) -> APIRouter:
    """Build router exposing user listing and creation for admins and managers."""

    router = APIRouter(prefix="/users", tags=["users"])

    @router.get("", response_model=UserListResponse)
    async def list_users(
        authorization: Annotated[str | None, Header()] = None,
    ) -> UserListResponse:
        await resolve_user_or_raise(
            auth_guard=auth_guard,
            authorization_header=authorization,
            require_user_manager=True,
        )
        users = await user_management_service.list_users()
        return UserListResponse(data=[UserSummary.from_record(user) for user in users])

    @router.post("", response_model=CreateUserResponse, status_code=201)
    async def create_user(
        payload: CreateUserRequest,
        authorization: Annotated[str | None, Header()] = None,
    ) -> CreateUserResponse:
        await resolve_user_or_raise(
            auth_guard=auth_guard,
            authorization_header=authorization,
            require_user_manager=True,
        )
        try:
            created = await user_management_service.create_user(
                request=UserCreateRequest(
                    email=payload.email,
                    name=payload.name,
                    role=payload.role,
                ),
                send_email=payload.send_email,
            )
        except InvalidUserEmailError as exc:
            raise ApiError(status_code=400, code="VALIDATION_ERROR", message=str(exc)) from exc
        except DuplicateUserEmailError as exc:
            raise ApiError(
                status_code=409,
                code="CONFLICT",
                message="A user with this email address already exists",
            ) from exc

        summary = UserSummary.from_record(created.user)
        return CreateUserResponse(
            data=CreatedUserData(
                **summary.model_dump(),
                temporary_password=created.temporary_password,
                welcome_email_sent=created.welcome_email_sent,
            )
        )

    return router
