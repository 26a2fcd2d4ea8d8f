"""Notification channel port (abstract interface).

A channel is one independent transport. ``send`` takes the recipient's
address on that transport and the message already rendered for it, and
reports the outcome as a dict:

    {"message_id": str | None, "status": "sent" | "failed" | "logged", "error": str}

Adapters should report failures through the result, but the dispatcher also
treats any exception escaping ``send`` as a failure of that channel alone.
"""

from abc import ABC, abstractmethod
from enum import Enum


class ChannelName(Enum):
    EMAIL = "email"
    SMS = "sms"
    MESSAGING_APP = "whatsapp"


def sent(message_id: str | None) -> dict:
    return {"message_id": message_id, "status": "sent"}


def failed(error: str) -> dict:
    return {"message_id": None, "status": "failed", "error": error}


class Channel(ABC):
    """Abstract interface for notification dispatch adapters."""

    name: str

    @abstractmethod
    def send(self, recipient: str, message: dict) -> dict:
        """Deliver ``message`` to ``recipient``.

        ``message`` always carries ``body``; email messages also carry
        ``subject`` and optionally ``html_body``.
        """
        ...
