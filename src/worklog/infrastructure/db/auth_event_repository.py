"""SQLAlchemy adapter writing the credential audit trail."""

from __future__ import annotations

from typing import Any

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from worklog.application.ports.auth_event_repository_port import (
    AuthEventCreateInput,
    AuthEventRepositoryPort,
)
from worklog.infrastructure.db.metadata import auth_events


class SqlAlchemyAuthEventRepository(AuthEventRepositoryPort):
    """Append-only audit rows; nothing here updates or deletes events."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def append_event(self, payload: AuthEventCreateInput) -> int:
        async with self._session_factory() as session:
            event_id = await session.scalar(
                sa.insert(auth_events)
                .values(**_row_values(payload))
                .returning(auth_events.c.id)
            )
            await session.commit()

        if event_id is None:
            raise RuntimeError("auth event insert returned no id")
        return int(event_id)


def _row_values(payload: AuthEventCreateInput) -> dict[str, Any]:
    return {
        "user_id": payload.user_id,
        "event_type": str(payload.event_type),
        "ip_address": payload.ip_address,
        "user_agent": payload.user_agent,
        "payload": dict(payload.payload),
    }
