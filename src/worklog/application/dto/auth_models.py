"""Pydantic request/response models for auth and account endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from worklog.application.ports.user_repository_port import UserRecord
from worklog.domain.auth.roles import Role


class StrictModel(BaseModel):
    """Base model with strict unknown-field rejection."""

    model_config = ConfigDict(extra="forbid")


class LoginRequest(StrictModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginResponse(StrictModel):
    token: str
    token_type: str = "bearer"
    role: Role
    expires_at: datetime
    password_reset_required: bool


class ForgotPasswordRequest(StrictModel):
    email: str = Field(min_length=1)


class ResetPasswordRequest(StrictModel):
    token: str = Field(min_length=1)
    new_password: str = Field(min_length=1)


class ChangePasswordRequest(StrictModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=1)


class MessageResponse(StrictModel):
    success: bool = True
    message: str


class ErrorBody(StrictModel):
    code: str
    message: str
    details: Any = None


class ErrorResponse(StrictModel):
    """Envelope returned for every handled API error."""

    success: bool = False
    error: ErrorBody


class CreateUserRequest(StrictModel):
    email: str = Field(min_length=1)
    name: str | None = Field(default=None, max_length=255)
    role: Role = Role.USER
    send_email: bool = True


class UserSummary(StrictModel):
    id: UUID
    name: str | None
    email: str
    role: Role
    is_active: bool
    password_reset_required: bool
    created_at: datetime

    @classmethod
    def from_record(cls, record: UserRecord) -> UserSummary:
        return cls(
            id=record.user_id,
            name=record.name,
            email=record.email,
            role=record.role,
            is_active=record.is_active,
            password_reset_required=record.password_reset_required,
            created_at=record.created_at,
        )


class CreatedUserData(UserSummary):
    """Created account plus the temporary password, returned only once."""

    temporary_password: str
    welcome_email_sent: bool


class CreateUserResponse(StrictModel):
    success: bool = True
    data: CreatedUserData


class UserListResponse(StrictModel):
    success: bool = True
    data: list[UserSummary]
