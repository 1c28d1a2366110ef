"""SQLAlchemy adapter for bearer session tokens."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, cast
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from worklog.application.ports.auth_token_repository_port import (
    AuthTokenCreateInput,
    AuthTokenRecord,
    AuthTokenRepositoryPort,
)
from worklog.domain.auth.reset_token_state import as_utc
from worklog.infrastructure.db.metadata import auth_tokens


class SqlAlchemyAuthTokenRepository(AuthTokenRepositoryPort):
    """Session tokens keyed by hash; expiry and revocation use the injected clock."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._now = now or (lambda: datetime.now(tz=UTC))

    async def create_token(self, payload: AuthTokenCreateInput) -> AuthTokenRecord:
        statement = (
            sa.insert(auth_tokens)
            .values(
                user_id=payload.user_id,
                token_hash=payload.token_hash,
                issued_at=self._now(),
                expires_at=payload.expires_at,
            )
            .returning(auth_tokens)
        )

        async with self._session_factory() as session:
            row = (await session.execute(statement)).mappings().one()
            await session.commit()
        return _record_from_row(row)

    async def get_active_by_hash(self, *, token_hash: str) -> AuthTokenRecord | None:
        """Return the token only while it is neither revoked nor past its expiry."""

        statement = (
            sa.select(auth_tokens)
            .where(auth_tokens.c.token_hash == token_hash)
            .where(_is_active(self._now()))
        )

        async with self._session_factory() as session:
            row = (await session.execute(statement)).mappings().first()
        return None if row is None else _record_from_row(row)

    async def revoke_active_tokens_for_user(self, *, user_id: UUID) -> int:
        """Stamp every unrevoked token of the user; returns how many were stamped."""

        statement = (
            sa.update(auth_tokens)
            .where(auth_tokens.c.user_id == user_id, auth_tokens.c.revoked_at.is_(None))
            .values(revoked_at=self._now())
        )

        async with self._session_factory() as session:
            result = cast(CursorResult[Any], await session.execute(statement))
            await session.commit()
        return result.rowcount or 0


def _is_active(now: datetime) -> sa.ColumnElement[bool]:
    return sa.and_(auth_tokens.c.revoked_at.is_(None), auth_tokens.c.expires_at > now)


def _record_from_row(row: sa.RowMapping) -> AuthTokenRecord:
    revoked_at = row["revoked_at"]
    user_id = row["user_id"]
    return AuthTokenRecord(
        id=row["id"],
        user_id=user_id if isinstance(user_id, UUID) else UUID(str(user_id)),
        token_hash=row["token_hash"],
        issued_at=as_utc(row["issued_at"]),
        expires_at=as_utc(row["expires_at"]),
        revoked_at=None if revoked_at is None else as_utc(revoked_at),
    )
