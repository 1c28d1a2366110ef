"""Role definitions for work-log accounts."""

from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    """Supported account roles."""

    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"
