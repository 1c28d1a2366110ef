from __future__ import annotations

import hashlib
import re
from datetime import UTC, datetime, timedelta

import pytest

from worklog.infrastructure.security.reset_tokens import (
    ResetTokenIssuer,
    ResetTokenVerifier,
    generate_reset_token,
    hash_reset_token,
    verify_reset_token,
)
from worklog.infrastructure.security.token_service import OpaqueTokenService

_HEX64 = re.compile(r"^[0-9a-f]{64}$")


def test_generated_token_is_64_lowercase_hex_characters() -> None:
    token = generate_reset_token()

    assert _HEX64.fullmatch(token) is not None


def test_generated_tokens_are_unique() -> None:
    assert len({generate_reset_token() for _ in range(200)}) == 200


def test_hash_is_deterministic_sha256_hex() -> None:
    token = "a" * 64

    assert hash_reset_token(token) == hashlib.sha256(token.encode("utf-8")).hexdigest()
    assert hash_reset_token(token) == hash_reset_token(token)
    assert hash_reset_token(token) != hash_reset_token("b" * 64)


def test_verify_accepts_matching_token() -> None:
    token = generate_reset_token()

    assert verify_reset_token(token, hash_reset_token(token)) is True


@pytest.mark.parametrize(
    ("token", "token_hash"),
    [
        ("", hash_reset_token("x")),
        ("x", ""),
        ("x", "not-a-digest"),
        ("x", hash_reset_token("x").upper()),
        ("x", hash_reset_token("y")),
    ],
)
def test_verify_rejects_mismatched_or_malformed_input(token: str, token_hash: str) -> None:
    assert verify_reset_token(token, token_hash) is False


def test_issuer_returns_plaintext_hash_and_expiry_from_clock() -> None:
    fixed_now = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
    issuer = ResetTokenIssuer(
        validity=timedelta(minutes=30),
        token_factory=lambda: "c" * 64,
        now=lambda: fixed_now,
    )

    issued = issuer.issue()

    assert issued.plaintext_token == "c" * 64
    assert issued.token_hash == hash_reset_token("c" * 64)
    assert issued.expires_at == fixed_now + timedelta(minutes=30)
    assert issuer.validity == timedelta(minutes=30)


def test_issuer_defaults_to_one_hour_validity() -> None:
    before = datetime.now(tz=UTC)

    issued = ResetTokenIssuer().issue()

    assert _HEX64.fullmatch(issued.plaintext_token) is not None
    assert before + timedelta(hours=1) <= issued.expires_at
    assert issued.expires_at <= datetime.now(tz=UTC) + timedelta(hours=1)


def test_issuer_rejects_non_positive_validity() -> None:
    with pytest.raises(ValueError):
        ResetTokenIssuer(validity=timedelta(0))


def test_verifier_object_delegates_to_module_helpers() -> None:
    verifier = ResetTokenVerifier()
    token = generate_reset_token()

    assert verifier.hash_token(token) == hash_reset_token(token)
    assert verifier.verify(token, verifier.hash_token(token)) is True
    assert verifier.verify(token, hash_reset_token("other")) is False


def test_session_token_service_uses_ttl_and_hashes_token() -> None:
    fixed_now = datetime(2026, 3, 1, 8, 0, tzinfo=UTC)
    service = OpaqueTokenService(
        token_ttl=timedelta(hours=2),
        token_factory=lambda: "session-token",
        now=lambda: fixed_now,
    )

    issued = service.issue_token()

    assert issued.token == "session-token"
    assert issued.token_hash == hash_reset_token("session-token")
    assert issued.expires_at == datetime(2026, 3, 1, 10, 0, tzinfo=UTC)


def test_issued_token_verifies_against_its_own_hash_only() -> None:
    issuer = ResetTokenIssuer()
    verifier = ResetTokenVerifier()

    first = issuer.issue()
    second = issuer.issue()

    assert verifier.verify(first.plaintext_token, first.token_hash) is True
    assert verifier.verify(first.plaintext_token, second.token_hash) is False
    assert len(first.token_hash) == 64


def test_verify_returns_false_for_unencodable_token() -> None:
    assert verify_reset_token("\ud800", hash_reset_token("abc")) is False
    assert ResetTokenVerifier().verify("ab\udfffcd", hash_reset_token("abcd")) is False
