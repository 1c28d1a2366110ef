"""Port for rendering account notification emails."""

from __future__ import annotations

from datetime import timedelta
from typing import Protocol

from worklog.application.ports.email_sender_port import EmailMessage


class EmailTemplatePort(Protocol):
    """Rendering contract for password-related notification emails."""

    def render_password_reset(
        self,
        *,
        to: str,
        name: str,
        reset_token: str,
        validity: timedelta,
    ) -> EmailMessage:
        """Render the reset-link email for one plaintext token."""

    def render_welcome(self, *, to: str, name: str, temporary_password: str) -> EmailMessage:
        """Render the new-account email carrying a temporary password."""
