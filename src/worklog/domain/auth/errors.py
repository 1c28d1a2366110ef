"""Shared error types for credential primitives."""

from __future__ import annotations


class InvalidInputError(ValueError):
    """Raised when hashing or generation receives empty or undersized input."""
