from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

TASKS_MUTATED = "tasks.mutated"
SAVE_STATUS = "save.status"


@dataclass(slots=True)
class BusMessage:
    topic: str
    payload: dict[str, Any]
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


Handler = Callable[[BusMessage], None]


class Bus(Protocol):
    """Minimal in-process publish/subscribe interface.

    Keep this tiny and stable so UI layers can subscribe without knowing
    which component publishes.
    """

    def publish(self, topic: str, message: BusMessage) -> str:
        """Deliver one message to every subscriber of topic. Returns message id."""

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        """Register handler for topic. Returns a callable that unsubscribes it."""


__all__ = ["Bus", "BusMessage", "Handler", "SAVE_STATUS", "TASKS_MUTATED"]
