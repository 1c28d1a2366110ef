"""Jinja2 rendering for password reset and welcome emails."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any
from urllib.parse import urlencode

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from worklog.application.ports.email_sender_port import EmailMessage
from worklog.application.ports.email_template_port import EmailTemplatePort

_TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
DEFAULT_PRODUCT_NAME = "Work Management"


class JinjaEmailTemplates(EmailTemplatePort):
    """Render HTML and plain-text bodies from the packaged email templates."""

    def __init__(
        self,
        *,
        public_base_url: str,
        product_name: str = DEFAULT_PRODUCT_NAME,
        template_dir: Path | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._public_base_url = public_base_url.rstrip("/")
        self._product_name = product_name
        self._now = now or (lambda: datetime.now(tz=UTC))
        self._environment = Environment(
            loader=FileSystemLoader(str(template_dir or _TEMPLATE_DIR)),
            autoescape=select_autoescape(enabled_extensions=("html",), default=False),
            undefined=StrictUndefined,
        )

    def build_reset_url(self, reset_token: str) -> str:
        return f"{self._public_base_url}/auth/reset-password?{urlencode({'token': reset_token})}"

    def render_password_reset(
        self,
        *,
        to: str,
        name: str,
        reset_token: str,
        validity: timedelta,
    ) -> EmailMessage:
        context = {
            "name": name,
            "reset_url": self.build_reset_url(reset_token),
            "validity_label": format_validity(validity),
        }
        return self._render(
            template="password_reset",
            to=to,
            subject="Password Reset Request",
            context=context,
        )

    def render_welcome(self, *, to: str, name: str, temporary_password: str) -> EmailMessage:
        context = {
            "name": name,
            "email": to,
            "temporary_password": temporary_password,
            "login_url": f"{self._public_base_url}/auth/signin",
        }
        return self._render(
            template="welcome",
            to=to,
            subject=f"Welcome to {self._product_name}",
            context=context,
        )

    def _render(
        self,
        *,
        template: str,
        to: str,
        subject: str,
        context: dict[str, Any],
    ) -> EmailMessage:
        shared = {
            "product_name": self._product_name,
            "year": self._now().year,
            **context,
        }
        html = self._environment.get_template(f"{template}.html").render(shared)
        text = self._environment.get_template(f"{template}.txt").render(shared)
        return EmailMessage(to=to, subject=subject, html=html, text=text.strip())


def format_validity(validity: timedelta) -> str:
    """Render a validity window as `1 hour`, `2 hours` or `45 minutes`."""

    minutes = int(validity.total_seconds() // 60)
    if minutes >= 60 and minutes % 60 == 0:
        hours = minutes // 60
        return "1 hour" if hours == 1 else f"{hours} hours"
    return "1 minute" if minutes == 1 else f"{minutes} minutes"
