"""Shared test helpers."""

import re

from src.app.core.exceptions import DeliveryError
from src.app.core.notifications import EmailMessage


class FakeNotifier:
    """In-memory notifier that records every message it accepts.

    Addresses in ``fail_for`` are rejected with ``DeliveryError``.
    """

    def __init__(self) -> None:
        self.sent: list[EmailMessage] = []
        self.fail_for: set[str] = set()

    async def send(self, message: EmailMessage) -> None:
        if message.to in self.fail_for:
            raise DeliveryError(f"Mailbox unavailable: {message.to}")
        self.sent.append(message)

    def sent_to(self, address: str) -> list[EmailMessage]:
        return [m for m in self.sent if m.to == address]


def extract_link_token(message: EmailMessage, path: str) -> str:
    """Pull the ``token`` query value of the ``path`` link out of an email body."""
    match = re.search(rf"{re.escape(path)}\?token=([A-Za-z0-9_.\-]+)", message.html)
    assert match, f"{path} link missing from email"
    return match.group(1)
