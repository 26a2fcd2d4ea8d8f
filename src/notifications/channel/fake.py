"""Fake channel adapter: records sent messages for testing."""

import threading
import time
from uuid import uuid4

from notifications.channel.port import Channel, failed, sent


class FakeChannel(Channel):
    """Channel adapter that records messages in memory for test assertions."""

    def __init__(self, name: str):
        self.name = name
        self.sent_messages: list[dict] = []
        self.should_succeed = True
        self.failure_reason = f"{name} delivery failed"
        self.raise_error = False
        self.delay = 0.0
        self._lock = threading.Lock()

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str | None = None,
        raise_error: bool = False,
        delay: float = 0.0,
    ):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason or f"{self.name} delivery failed"
        self.raise_error = raise_error
        self.delay = delay

    def send(self, recipient: str, message: dict) -> dict:
        if self.delay:
            time.sleep(self.delay)
        if self.raise_error:
            raise ConnectionError(self.failure_reason)
        if not self.should_succeed:
            return failed(self.failure_reason)

        message_id = f"{self.name}-{uuid4().hex[:12]}"
        with self._lock:
            self.sent_messages.append({"message_id": message_id, "to": recipient, **message})
        return sent(message_id)

    def reset(self):
        """Clear sent messages (useful between tests)."""
        with self._lock:
            self.sent_messages.clear()
        self.configure()
