"""SQLAlchemy adapter for account and credential persistence."""

from __future__ import annotations

from datetime import datetime
from typing import Any, cast
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from worklog.application.ports.user_repository_port import (
    DuplicateUserEmailError,
    UserCreateInput,
    UserRecord,
    UserRepositoryPort,
)
from worklog.domain.auth.reset_token_state import as_utc
from worklog.domain.auth.roles import Role
from worklog.infrastructure.db.metadata import users

_USER_COLUMNS = (
    users.c.id,
    users.c.name,
    users.c.email,
    users.c.password_hash,
    users.c.role,
    users.c.is_active,
    users.c.password_reset_required,
    users.c.password_reset_token_hash,
    users.c.password_reset_token_expires_at,
    users.c.last_password_change_at,
    users.c.created_at,
    users.c.updated_at,
)


class SqlAlchemyUserRepository(UserRepositoryPort):
    """User repository backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_by_id(self, *, user_id: UUID) -> UserRecord | None:
        """Return user by id, including inactive users."""

        return await self._fetch_one(users.c.id == user_id)

    async def get_by_email(self, *, email: str) -> UserRecord | None:
        """Return user by normalized email, including inactive users."""

        return await self._fetch_one(users.c.email == email)

    async def get_active_by_email(self, *, email: str) -> UserRecord | None:
        """Return active user by normalized email or None."""

        user = await self.get_by_email(email=email)
        if user is None or not user.is_active:
            return None
        return user

    async def get_by_reset_token_hash(self, *, token_hash: str) -> UserRecord | None:
        """Return user holding the given outstanding reset token hash."""

        return await self._fetch_one(users.c.password_reset_token_hash == token_hash)

    async def list_users(self) -> list[UserRecord]:
        """Return all users ordered by email."""

        statement = sa.select(*_USER_COLUMNS).order_by(users.c.email.asc())

        async with self._session_factory() as session:
            result = await session.execute(statement)

        return [_to_user_record(row) for row in result.mappings().all()]

    async def create_user(self, payload: UserCreateInput) -> UserRecord:
        """Insert one user row and return it, mapping email conflicts to a domain error."""

        statement = sa.insert(users).values(
            id=payload.user_id,
            name=payload.name,
            email=payload.email,
            password_hash=payload.password_hash,
            role=payload.role.value,
            is_active=payload.is_active,
            password_reset_required=payload.password_reset_required,
        ).returning(*_USER_COLUMNS)

        async with self._session_factory() as session:
            try:
                result = await session.execute(statement)
                row = result.mappings().one()
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateUserEmailError(email=payload.email) from exc

        return _to_user_record(row)

    async def set_reset_token(
        self,
        *,
        user_id: UUID,
        token_hash: str,
        expires_at: datetime,
    ) -> None:
        """Overwrite the outstanding reset token, superseding any previous one."""

        statement = (
            sa.update(users)
            .where(users.c.id == user_id)
            .values(
                password_reset_token_hash=token_hash,
                password_reset_token_expires_at=expires_at,
                updated_at=sa.text("CURRENT_TIMESTAMP"),
            )
        )

        async with self._session_factory() as session:
            await session.execute(statement)
            await session.commit()

    async def clear_reset_token(self, *, user_id: UUID) -> None:
        """Drop outstanding reset token hash and expiry."""

        statement = (
            sa.update(users)
            .where(users.c.id == user_id)
            .values(
                password_reset_token_hash=None,
                password_reset_token_expires_at=None,
                updated_at=sa.text("CURRENT_TIMESTAMP"),
            )
        )

        async with self._session_factory() as session:
            await session.execute(statement)
            await session.commit()

    async def consume_reset_token(
        self,
        *,
        user_id: UUID,
        token_hash: str,
        password_hash: str,
        now: datetime,
    ) -> bool:
        """Compare-and-clear the reset token while swapping in the new password hash.

        The token hash and expiry are part of the WHERE clause, so among concurrent
        redemptions of one token only the first UPDATE matches a row.
        """

        statement = (
            sa.update(users)
            .where(
                users.c.id == user_id,
                users.c.password_reset_token_hash == token_hash,
                users.c.password_reset_token_expires_at > now,
            )
            .values(
                password_hash=password_hash,
                password_reset_token_hash=None,
                password_reset_token_expires_at=None,
                password_reset_required=False,
                last_password_change_at=now,
                updated_at=sa.text("CURRENT_TIMESTAMP"),
            )
        )

        async with self._session_factory() as session:
            result = cast(CursorResult[Any], await session.execute(statement))
            await session.commit()

        return int(result.rowcount or 0) == 1

    async def update_password(self, *, user_id: UUID, password_hash: str) -> None:
        """Replace password hash, clear forced reset and any outstanding reset token."""

        statement = (
            sa.update(users)
            .where(users.c.id == user_id)
            .values(
                password_hash=password_hash,
                password_reset_required=False,
                password_reset_token_hash=None,
                password_reset_token_expires_at=None,
                last_password_change_at=sa.text("CURRENT_TIMESTAMP"),
                updated_at=sa.text("CURRENT_TIMESTAMP"),
            )
        )

        async with self._session_factory() as session:
            await session.execute(statement)
            await session.commit()

    async def _fetch_one(self, condition: sa.ColumnElement[bool]) -> UserRecord | None:
        statement = sa.select(*_USER_COLUMNS).where(condition).limit(1)

        async with self._session_factory() as session:
            result = await session.execute(statement)

        row = result.mappings().first()
        if row is None:
            return None
        return _to_user_record(row)


def _to_user_record(row: sa.RowMapping) -> UserRecord:
    raw_user_id = row["id"]
    user_id = raw_user_id if isinstance(raw_user_id, UUID) else UUID(str(raw_user_id))
    return UserRecord(
        user_id=user_id,
        name=cast(str | None, row["name"]),
        email=cast(str, row["email"]),
        password_hash=cast(str, row["password_hash"]),
        role=Role(cast(str, row["role"])),
        is_active=bool(row["is_active"]),
        password_reset_required=bool(row["password_reset_required"]),
        password_reset_token_hash=cast(str | None, row["password_reset_token_hash"]),
        password_reset_token_expires_at=_optional_utc(row["password_reset_token_expires_at"]),
        last_password_change_at=_optional_utc(row["last_password_change_at"]),
        created_at=as_utc(cast(datetime, row["created_at"])),
        updated_at=as_utc(cast(datetime, row["updated_at"])),
    )


def _optional_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return as_utc(value)
