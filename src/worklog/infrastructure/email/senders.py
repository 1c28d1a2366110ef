"""Email delivery adapters: log-only preview and SMTP."""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage as MimeMessage

from worklog.application.ports.email_sender_port import (
    EmailDeliveryError,
    EmailMessage,
    EmailSenderPort,
)

logger = logging.getLogger(__name__)


class PreviewEmailSender(EmailSenderPort):
    """Log outgoing mail headers instead of delivering it; keeps no copy of the body."""

    async def send(self, message: EmailMessage) -> None:
        logger.info(
            "email_preview to=%s subject=%r text_chars=%d",
            message.to,
            message.subject,
            len(message.text),
        )


class SmtpEmailSender(EmailSenderPort):
    """Deliver mail through an SMTP relay from a worker thread."""

    def __init__(
        self,
        *,
        host: str,
        port: int,
        sender: str,
        username: str | None = None,
        password: str | None = None,
        starttls: bool = False,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._username = username
        self._password = password
        self._starttls = starttls
        self._timeout_seconds = timeout_seconds

    async def send(self, message: EmailMessage) -> None:
        await asyncio.to_thread(self._send_sync, self.build_mime_message(message))
        logger.info("email_sent to=%s subject=%r", message.to, message.subject)

    def build_mime_message(self, message: EmailMessage) -> MimeMessage:
        mime = MimeMessage()
        mime["From"] = self._sender
        mime["To"] = message.to
        mime["Subject"] = message.subject
        mime.set_content(message.text)
        mime.add_alternative(message.html, subtype="html")
        return mime

    def _send_sync(self, mime: MimeMessage) -> None:
        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout_seconds) as client:
                if self._starttls:
                    client.starttls()
                if self._username is not None and self._password is not None:
                    client.login(self._username, self._password)
                client.send_message(mime)
        except (smtplib.SMTPException, OSError) as exc:
            raise EmailDeliveryError(
                f"smtp delivery to {self._host}:{self._port} failed"
            ) from exc
