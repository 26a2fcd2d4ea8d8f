"""Degraded channel used when a provider has no credentials configured."""

import structlog

from notifications.channel.port import Channel

logger = structlog.get_logger(__name__)


class LogOnlyChannel(Channel):
    """Logs the rendered message instead of delivering it."""

    def __init__(self, name: str) -> None:
        self.name = name

    def send(self, recipient: str, message: dict) -> dict:
        logger.info(
            "Channel not configured; message logged only",
            channel=self.name,
            recipient=recipient,
            subject=message.get("subject"),
            body=message["body"],
        )
        return {"message_id": None, "status": "logged"}
