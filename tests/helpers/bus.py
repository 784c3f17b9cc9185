from __future__ import annotations

from todolist.bus.interface import BusMessage
from todolist.bus.local import LocalBus


class RecordingBus(LocalBus):
    """LocalBus that also keeps every published message for assertions."""

    def __init__(self) -> None:
        super().__init__()
        self.messages: list[BusMessage] = []

    def publish(self, topic: str, message: BusMessage) -> str:
        self.messages.append(message)
        return super().publish(topic, message)

    def on(self, topic: str) -> list[BusMessage]:
        return [m for m in self.messages if m.topic == topic]


__all__ = ["RecordingBus"]
