"""Bcrypt password hasher adapter."""

from __future__ import annotations

import bcrypt

from worklog.application.ports.password_hasher_port import PasswordHasherPort
from worklog.domain.auth.errors import InvalidInputError

DEFAULT_COST_FACTOR = 10
_BCRYPT_MAX_PASSWORD_BYTES = 72


class BcryptPasswordHasher(PasswordHasherPort):
    """Password hashing adapter using salted bcrypt with a configurable cost factor."""

    def __init__(self, *, cost_factor: int = DEFAULT_COST_FACTOR) -> None:
        if not 4 <= cost_factor <= 31:
            raise ValueError("bcrypt cost factor must be between 4 and 31")
        self._cost_factor = cost_factor

    def hash_password(self, password: str) -> str:
        if not password:
            raise InvalidInputError("password cannot be empty")
        encoded = password.encode("utf-8")
        if len(encoded) > _BCRYPT_MAX_PASSWORD_BYTES:
            raise InvalidInputError(
                f"password cannot exceed {_BCRYPT_MAX_PASSWORD_BYTES} bytes"
            )
        salt = bcrypt.gensalt(rounds=self._cost_factor)
        return bcrypt.hashpw(encoded, salt).decode("utf-8")

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        if not password or not password_hash:
            return False
        try:
            encoded_password = password.encode("utf-8")
            encoded_hash = password_hash.encode("utf-8")
            return bcrypt.checkpw(encoded_password, encoded_hash)
        except ValueError:
            return False
