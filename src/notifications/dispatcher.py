"""Best-effort notification fan-out.

``submit`` hands an event to a bounded worker pool and returns at once, so
checkout and admin requests never wait for delivery. The worker renders the
event for each channel and sends to all channels in parallel on a second
pool; a slow or failing channel never holds up or breaks the others.

Outcomes are only logged. Nothing is retried and nothing propagates back to
the request that triggered the notification.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait

import structlog

from notifications.channel import Channel, get_channels
from notifications.event import NotificationEvent
from notifications.templates import get_template
from shared.config import get_settings

logger = structlog.get_logger(__name__)


class NotificationDispatcher:
    def __init__(
        self,
        channels: dict[str, Channel] | None = None,
        max_workers: int = 4,
        channel_workers: int = 6,
    ) -> None:
        self.channels: dict[str, Channel] = dict(channels or {})
        # Separate pools: event workers block on channel sends.
        self._events = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="notify")
        self._sends = ThreadPoolExecutor(max_workers=channel_workers, thread_name_prefix="notify-channel")
        self._pending: set[Future] = set()
        self._lock = threading.Lock()

    def register(self, channel: Channel) -> None:
        self.channels[channel.name] = channel

    def submit(self, event: NotificationEvent) -> Future:
        """Schedule ``event`` for delivery without waiting for it."""
        future = self._events.submit(self._run, event)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def _run(self, event: NotificationEvent) -> dict[str, dict]:
        try:
            return self.dispatch(event)
        except Exception as exc:
            logger.error(
                "Notification dispatch failed",
                kind=event.kind,
                order_id=event.context.get("order_id"),
                error=str(exc),
            )
            return {}

    def dispatch(self, event: NotificationEvent) -> dict[str, dict]:
        """Send ``event`` on every selected channel and return per-channel results."""
        template = get_template(event.kind)
        names = event.channels if event.channels is not None else tuple(self.channels)

        results: dict[str, dict] = {}
        futures: dict[str, Future] = {}
        for name in names:
            channel = self.channels.get(name)
            if channel is None:
                results[name] = {"message_id": None, "status": "skipped", "error": "channel not registered"}
                continue
            address = event.recipient.address_for(name)
            if not address:
                results[name] = {"message_id": None, "status": "skipped", "error": "no address"}
                continue
            futures[name] = self._sends.submit(self._send, channel, template, event, address)

        wait(futures.values())
        for name, future in futures.items():
            results[name] = future.result()

        for name, result in results.items():
            log = logger.info if result["status"] in ("sent", "logged", "skipped") else logger.warning
            log(
                "Notification channel result",
                kind=event.kind,
                order_id=event.context.get("order_id"),
                channel=name,
                status=result["status"],
                error=result.get("error"),
            )
        return results

    @staticmethod
    def _send(channel: Channel, template, event: NotificationEvent, address: str) -> dict:
        try:
            message = template.render(event.context, channel.name)
            return channel.send(address, message)
        except Exception as exc:
            return {"message_id": None, "status": "failed", "error": str(exc)}

    def flush(self, timeout: float | None = None) -> None:
        """Block until every submitted event has been dispatched."""
        with self._lock:
            pending = list(self._pending)
        wait(pending, timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        self._events.shutdown(wait=wait)
        self._sends.shutdown(wait=wait)


_current_dispatcher: NotificationDispatcher | None = None


def get_dispatcher() -> NotificationDispatcher:
    """Return the process-wide dispatcher, wired with the configured channels."""
    global _current_dispatcher
    if _current_dispatcher is None:
        settings = get_settings()
        _current_dispatcher = NotificationDispatcher(
            channels=get_channels(),
            max_workers=settings.notification_workers,
            channel_workers=settings.channel_workers,
        )
    return _current_dispatcher


def set_dispatcher(dispatcher: NotificationDispatcher) -> None:
    global _current_dispatcher
    _current_dispatcher = dispatcher


def reset_dispatcher() -> None:
    """Shut down and forget the current dispatcher."""
    global _current_dispatcher
    if _current_dispatcher is not None:
        _current_dispatcher.shutdown(wait=True)
    _current_dispatcher = None
