"""Normalization helpers for account identity inputs."""

from __future__ import annotations


def normalize_user_email(*, email: str) -> str:
    """Lower-case and trim one email, rejecting blank or address-less values."""

    normalized = email.strip().lower()
    if not normalized:
        raise ValueError("email cannot be blank")
    local_part, separator, domain = normalized.partition("@")
    if not separator or not local_part or not domain or " " in normalized:
        raise ValueError(f"invalid email address: {email!r}")
    return normalized


def normalize_display_name(*, name: str | None) -> str | None:
    """Collapse inner whitespace of a display name; empty names become None."""

    if name is None:
        return None
    collapsed = " ".join(name.split())
    return collapsed or None


def require_non_blank_password(*, password: str) -> str:
    """Return the password untouched, rejecting values made only of whitespace."""

    if not password.strip():
        raise ValueError("password cannot be blank")
    return password
