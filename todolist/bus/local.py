from __future__ import annotations

import threading
from collections.abc import Callable

from todolist.observability import get_json_logger

from .interface import Bus, BusMessage, Handler


class LocalBus(Bus):
    """Synchronous in-process Bus.

    - publish: calls each subscriber in subscription order on the caller's thread
    - a failing subscriber is logged and skipped; the publisher never sees it
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = {}
        self._lock = threading.Lock()

    def publish(self, topic: str, message: BusMessage) -> str:  # noqa: D401
        with self._lock:
            handlers = list(self._handlers.get(topic, []))
        for handler in handlers:
            try:
                handler(message)
            except Exception:
                get_json_logger("todolist.bus").exception(
                    "subscriber failed",
                    extra={"event": "subscriber_error", "metadata": {"topic": topic}},
                )
        return message.id

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        with self._lock:
            self._handlers.setdefault(topic, []).append(handler)

        def _unsubscribe() -> None:
            with self._lock:
                items = self._handlers.get(topic, [])
                if handler in items:
                    items.remove(handler)

        return _unsubscribe


__all__ = ["LocalBus"]
