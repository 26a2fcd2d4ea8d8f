"""Ephemeral notification event handed to the dispatcher.

Events carry a plain snapshot of the order (``context``) so that worker
threads never reach back into the persistence layer.
"""

from dataclasses import dataclass, field
from enum import Enum

from notifications.channel.port import ChannelName


class NotificationKind(Enum):
    ORDER_PLACED = "order_placed"
    ORDER_CONFIRMED = "order_confirmed"
    STATUS_CHANGED = "status_changed"
    FEEDBACK_REQUESTED = "feedback_requested"
    CUSTOM_MESSAGE = "custom_message"


@dataclass(frozen=True)
class Recipient:
    """Resolved per-channel addresses of the person being notified."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    whatsapp: str | None = None

    def address_for(self, channel_name: str) -> str | None:
        if channel_name == ChannelName.EMAIL.value:
            return self.email
        if channel_name == ChannelName.SMS.value:
            return self.phone
        if channel_name == ChannelName.MESSAGING_APP.value:
            return self.whatsapp
        return None


@dataclass(frozen=True)
class NotificationEvent:
    kind: str
    context: dict
    recipient: Recipient
    # None means every registered channel
    channels: tuple[str, ...] | None = field(default=None)
