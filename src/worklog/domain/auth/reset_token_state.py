"""Lifecycle state of a stored password reset token."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum


class ResetTokenState(StrEnum):
    """Observable states of the reset token pair stored on an account."""

    NO_TOKEN = "no_token"
    ISSUED = "issued"
    EXPIRED = "expired"


def is_reset_token_expired(*, expires_at: datetime | None, now: datetime) -> bool:
    """Return whether a stored expiry is missing or already reached."""

    if expires_at is None:
        return True
    return as_utc(now) >= as_utc(expires_at)


def reset_token_state(
    *,
    token_hash: str | None,
    expires_at: datetime | None,
    now: datetime,
) -> ResetTokenState:
    """Classify the stored hash/expiry pair at `now`.

    Consumed and superseded tokens are not tracked separately: consumption
    clears the pair and a new issue overwrites it, so both read as whatever the
    pair holds afterwards.
    """

    if token_hash is None:
        return ResetTokenState.NO_TOKEN
    if is_reset_token_expired(expires_at=expires_at, now=now):
        return ResetTokenState.EXPIRED
    return ResetTokenState.ISSUED


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime, reading naive values as UTC."""

    # SQLite round-trips timezone-aware columns as naive UTC values.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
