"""Password strength policy and secure password generation."""

from __future__ import annotations

import re
import secrets
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from worklog.domain.auth.errors import InvalidInputError

UPPERCASE = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
LOWERCASE = "abcdefghijklmnopqrstuvwxyz"
DIGITS = "0123456789"
SYMBOLS = "!@#$%^&*()-_=+[]{}|;:,.<>?"

DEFAULT_MIN_PASSWORD_LENGTH = 8
DEFAULT_GENERATED_PASSWORD_LENGTH = 16
STRONG_PASSWORD_LENGTH = 12
# bcrypt ignores everything past 72 bytes of input.
MAX_PASSWORD_BYTES = 72
MAX_STRENGTH_SCORE = 4
COMMON_PASSWORD_PENALTY = 2

COMMON_PASSWORDS: tuple[str, ...] = (
    "password",
    "password123",
    "123456",
    "12345678",
    "qwerty",
    "qwerty123",
    "abc123",
    "monkey",
    "letmein",
    "trustno1",
    "dragon",
)

_UPPERCASE_RE = re.compile(r"[A-Z]")
_LOWERCASE_RE = re.compile(r"[a-z]")
_DIGIT_RE = re.compile(r"[0-9]")
_REQUIRED_CHARSETS = (UPPERCASE, LOWERCASE, DIGITS, SYMBOLS)
_MAX_GENERATION_ATTEMPTS = 32


@dataclass(frozen=True)
class CredentialPolicy:
    """Explicit credential policy knobs passed into hashing, tokens and validation."""

    token_validity_minutes: int = 60
    hash_cost_factor: int = 10
    min_password_length: int = DEFAULT_MIN_PASSWORD_LENGTH
    generated_password_length: int = DEFAULT_GENERATED_PASSWORD_LENGTH


@dataclass(frozen=True)
class PasswordStrength:
    """Result of one password strength evaluation."""

    is_valid: bool
    score: int
    errors: tuple[str, ...]
    suggestions: tuple[str, ...]


class PasswordStrengthValidator:
    """Score a candidate password and report every rule it violates."""

    def __init__(
        self,
        *,
        min_length: int = DEFAULT_MIN_PASSWORD_LENGTH,
        common_passwords: Iterable[str] = COMMON_PASSWORDS,
    ) -> None:
        if min_length < 1:
            raise ValueError("min_length must be positive")
        self._min_length = min_length
        self._common_passwords = tuple(
            entry.strip().lower() for entry in common_passwords if entry.strip()
        )

    @property
    def min_length(self) -> int:
        return self._min_length

    def validate(self, password: str) -> PasswordStrength:
        """Evaluate all composition rules and the common-password denylist."""

        errors: list[str] = []
        suggestions: list[str] = []
        score = 0

        if len(password) < self._min_length:
            errors.append(f"Password must be at least {self._min_length} characters long")
            suggestions.append(
                "Increase the length to at least "
                f"{max(self._min_length, STRONG_PASSWORD_LENGTH)} characters"
            )
        else:
            score += 1
        if len(password) >= STRONG_PASSWORD_LENGTH:
            score += 1
        if _encoded_length(password) > MAX_PASSWORD_BYTES:
            errors.append(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long")
            suggestions.append("Use a shorter passphrase or fewer non-ASCII characters")

        if _UPPERCASE_RE.search(password) is None:
            errors.append("Password must contain at least one uppercase letter")
            suggestions.append("Add an uppercase letter (A-Z)")
        else:
            score += 1

        if _LOWERCASE_RE.search(password) is None:
            errors.append("Password must contain at least one lowercase letter")
            suggestions.append("Add a lowercase letter (a-z)")
        else:
            score += 1

        if _DIGIT_RE.search(password) is None:
            errors.append("Password must contain at least one number")
            suggestions.append("Add a number (0-9)")
        else:
            score += 1

        has_symbol = any(character in SYMBOLS for character in password)
        if has_symbol:
            score += 1

        if self.is_common(password):
            errors.append("Password is too common and easy to guess")
            suggestions.append("Avoid common words, keyboard patterns and number sequences")
            score = max(0, score - COMMON_PASSWORD_PENALTY)

        if errors and not has_symbol:
            suggestions.append("Add a symbol such as ! @ # $ for stronger security")
        if not errors:
            suggestions.clear()

        return PasswordStrength(
            is_valid=not errors,
            score=min(MAX_STRENGTH_SCORE, score),
            errors=tuple(errors),
            suggestions=tuple(suggestions),
        )

    def is_common(self, password: str) -> bool:
        """Return whether the password contains any denylisted entry, ignoring case."""

        lowered = password.lower()
        return any(common in lowered for common in self._common_passwords)


class SecurePasswordGenerator:
    """Generate random passwords that always satisfy the bound validator."""

    def __init__(self, validator: PasswordStrengthValidator | None = None) -> None:
        self._validator = validator or PasswordStrengthValidator()
        self._random = secrets.SystemRandom()

    @property
    def min_length(self) -> int:
        return max(len(_REQUIRED_CHARSETS), self._validator.min_length)

    def generate(self, length: int = DEFAULT_GENERATED_PASSWORD_LENGTH) -> str:
        """Return a password of exactly `length` characters from every required class."""

        if length < self.min_length:
            raise InvalidInputError(
                f"password length must be at least {self.min_length}, got {length}"
            )
        if length > MAX_PASSWORD_BYTES:
            raise InvalidInputError(
                f"password length must be at most {MAX_PASSWORD_BYTES}, got {length}"
            )

        for _ in range(_MAX_GENERATION_ATTEMPTS):
            candidate = self._build_candidate(length)
            if self._validator.validate(candidate).is_valid:
                return candidate
        raise RuntimeError("could not generate a password accepted by the strength policy")

    def _build_candidate(self, length: int) -> str:
        characters = [secrets.choice(charset) for charset in _REQUIRED_CHARSETS]
        alphabet = "".join(_REQUIRED_CHARSETS)
        characters.extend(secrets.choice(alphabet) for _ in range(length - len(characters)))
        self._random.shuffle(characters)
        return "".join(characters)


def _encoded_length(password: str) -> int:
    return len(password.encode("utf-8", errors="surrogatepass"))


def load_common_passwords(path: str | Path) -> tuple[str, ...]:
    """Read a newline-delimited denylist file, skipping blanks and `#` comments."""

    entries: list[str] = []
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        entry = line.strip()
        if not entry or entry.startswith("#"):
            continue
        entries.append(entry.lower())
    return tuple(entries)


def build_password_validator(
    policy: CredentialPolicy,
    *,
    extra_common_passwords: Iterable[str] = (),
) -> PasswordStrengthValidator:
    """Build the strength validator for one credential policy."""

    return PasswordStrengthValidator(
        min_length=policy.min_password_length,
        common_passwords=(*COMMON_PASSWORDS, *extra_common_passwords),
    )
