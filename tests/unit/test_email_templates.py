from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from worklog.infrastructure.email.templates import JinjaEmailTemplates, format_validity


def _templates() -> JinjaEmailTemplates:
    return JinjaEmailTemplates(
        public_base_url="https://app.example.org/",
        now=lambda: datetime(2026, 1, 2, tzinfo=UTC),
    )


def test_reset_url_points_at_reset_page_with_token_query() -> None:
    assert (
        _templates().build_reset_url("abc123")
        == "https://app.example.org/auth/reset-password?token=abc123"
    )


def test_password_reset_email_has_link_validity_and_both_bodies() -> None:
    message = _templates().render_password_reset(
        to="jane@example.org",
        name="Jane",
        reset_token="d" * 64,
        validity=timedelta(hours=1),
    )

    link = f"https://app.example.org/auth/reset-password?token={'d' * 64}"
    assert message.to == "jane@example.org"
    assert message.subject == "Password Reset Request"
    assert link in message.text
    assert link in message.html
    assert "expire in 1 hour" in message.text
    assert "Hello Jane," in message.text
    assert "2026 Work Management" in message.html


def test_html_body_escapes_user_supplied_name() -> None:
    message = _templates().render_password_reset(
        to="x@example.org",
        name="<script>alert(1)</script>",
        reset_token="e" * 64,
        validity=timedelta(minutes=30),
    )

    assert "<script>" not in message.html
    assert "&lt;script&gt;" in message.html
    assert "expire in 30 minutes" in message.html


def test_welcome_email_includes_credentials_and_sign_in_link() -> None:
    message = _templates().render_welcome(
        to="new@example.org",
        name="Ana",
        temporary_password="Tmp<Pass>&1234",
    )

    assert message.subject == "Welcome to Work Management"
    assert "Temporary password: Tmp<Pass>&1234" in message.text
    assert "Tmp&lt;Pass&gt;&amp;1234" in message.html
    assert "https://app.example.org/auth/signin" in message.text


@pytest.mark.parametrize(
    ("validity", "label"),
    [
        (timedelta(hours=1), "1 hour"),
        (timedelta(hours=3), "3 hours"),
        (timedelta(minutes=45), "45 minutes"),
        (timedelta(minutes=90), "90 minutes"),
        (timedelta(minutes=1), "1 minute"),
    ],
)
def test_format_validity(validity: timedelta, label: str) -> None:
    assert format_validity(validity) == label
