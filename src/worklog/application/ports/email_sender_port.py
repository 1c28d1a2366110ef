"""Port for outbound transactional email delivery."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class EmailMessage:
    """Rendered email ready for delivery."""

    to: str
    subject: str
    html: str
    text: str


class EmailDeliveryError(RuntimeError):
    """Raised when an email provider fails to accept a message."""


class EmailSenderPort(Protocol):
    """Email delivery contract."""

    async def send(self, message: EmailMessage) -> None:
        """Deliver one message or raise EmailDeliveryError."""
