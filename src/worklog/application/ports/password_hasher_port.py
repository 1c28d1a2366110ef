"""Port for slow salted password hashing and verification."""

from __future__ import annotations

from typing import Protocol


class PasswordHasherPort(Protocol):
    """Password hashing/verification contract."""

    def hash_password(self, password: str) -> str:
        """Hash plaintext password with a fresh salt; reject empty input."""

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        """Verify plaintext against a stored hash; malformed hashes return False."""
