from __future__ import annotations

import datetime as _dt
import threading
import time
from collections.abc import Callable
from enum import StrEnum
from pathlib import Path
from typing import Any, Protocol

from todolist.bus.interface import SAVE_STATUS, TASKS_MUTATED, Bus, BusMessage
from todolist.config import DEFAULT_AUTOSAVE_DELAY_MS
from todolist.observability import get_json_logger, get_metrics
from todolist.persistence import JsonTaskFile, TaskSaveError
from todolist.store import TaskStore

SAVING_TEXT = "Saving..."
FAILED_TEXT = "Save failed!"


def saved_text(at: _dt.datetime) -> str:
    return f"Saved at {at.strftime('%H:%M:%S')}"


class TimerHandle(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


def _thread_timer(interval: float, callback: Callable[[], None]) -> TimerHandle:
    timer = threading.Timer(interval, callback)
    timer.daemon = True
    return timer


class AutosaveState(StrEnum):
    IDLE = "idle"
    PENDING = "pending"


class AutosavePolicy:
    """Debounced write-back of a TaskStore.

    Every ``tasks.mutated`` message (re)starts a countdown; when it runs out
    without another mutation the store is saved once on the timer thread.
    ``save_now`` skips the countdown and raises on failure, while the
    debounced path only reports through ``status_text`` and ``save.status``.

    Status messages of the debounced path are published on the timer thread;
    UI subscribers must marshal them onto their own event loop.
    """

    def __init__(
        self,
        store: TaskStore,
        storage: JsonTaskFile,
        path: str | Path,
        bus: Bus,
        *,
        delay_s: float = DEFAULT_AUTOSAVE_DELAY_MS / 1000.0,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        self._store = store
        self._storage = storage
        self._path = Path(path)
        self._bus = bus
        self._delay_s = delay_s
        self._timer_factory = timer_factory or _thread_timer
        self._lock = threading.Lock()
        self._timer: TimerHandle | None = None
        self._deadline: float | None = None
        # Bumped on every schedule/cancel so a stale timer callback is ignored
        self._generation = 0
        self._status_text = ""
        self._last_saved_at: _dt.datetime | None = None
        self._logger = get_json_logger("todolist.autosave")
        self._unsubscribe: Callable[[], None] | None = bus.subscribe(
            TASKS_MUTATED, self._on_mutated
        )

    # ----------------------------
    # State
    # ----------------------------
    @property
    def state(self) -> AutosaveState:
        with self._lock:
            return AutosaveState.PENDING if self._timer is not None else AutosaveState.IDLE

    @property
    def is_pending(self) -> bool:
        return self.state is AutosaveState.PENDING

    @property
    def deadline(self) -> float | None:
        """Monotonic time at which the pending save fires, or None when idle."""
        with self._lock:
            return self._deadline

    @property
    def delay_s(self) -> float:
        return self._delay_s

    @property
    def status_text(self) -> str:
        return self._status_text

    @property
    def last_saved_at(self) -> _dt.datetime | None:
        return self._last_saved_at

    # ----------------------------
    # Scheduling
    # ----------------------------
    def schedule(self) -> None:
        """Start the countdown, or restart it if one is already running."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            generation = self._generation
            self._deadline = time.monotonic() + self._delay_s
            self._timer = self._timer_factory(self._delay_s, lambda: self._on_deadline(generation))
            self._timer.start()

    def cancel(self) -> bool:
        """Drop any pending save. Returns True when one was pending."""
        with self._lock:
            return self._cancel_locked()

    def save_now(self) -> _dt.datetime:
        """Save immediately, bypassing the debounce. Raises TaskSaveError on failure."""
        self.cancel()
        return self._save(manual=True)

    def flush(self) -> bool:
        """Run a pending save synchronously. Returns True when one was pending."""
        if not self.cancel():
            return False
        try:
            self._save(manual=False)
        except TaskSaveError:
            pass  # already reported through status
        return True

    def close(self, *, flush: bool = True) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if flush:
            self.flush()
        else:
            self.cancel()

    # ----------------------------
    # Internals
    # ----------------------------
    def _on_mutated(self, message: BusMessage) -> None:
        self.schedule()

    def _on_deadline(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._timer is None:
                return
            self._timer = None
            self._deadline = None
        try:
            self._save(manual=False)
        except TaskSaveError:
            pass  # reported through status; the debounced path never raises

    def _cancel_locked(self) -> bool:
        pending = self._timer is not None
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._deadline = None
        self._generation += 1
        return pending

    def _save(self, *, manual: bool) -> _dt.datetime:
        metrics = get_metrics()
        self._set_status("saving", SAVING_TEXT, manual)
        records = self._store.snapshot()
        try:
            saved_at = self._storage.save(records, self._path)
        except TaskSaveError as exc:
            metrics.increment("save_failures", {"manual": str(manual).lower()})
            self._logger.error(
                "autosave failed" if not manual else "manual save failed",
                extra={"event": "save_failed", "manual": manual, "metadata": {"error": str(exc)[:200]}},
            )
            self._set_status("failed", FAILED_TEXT, manual, error=str(exc))
            raise
        metrics.increment("saves_completed", {"manual": str(manual).lower()})
        self._last_saved_at = saved_at
        self._set_status("saved", saved_text(saved_at), manual)
        return saved_at

    def _set_status(self, state: str, text: str, manual: bool, error: str | None = None) -> None:
        self._status_text = text
        payload: dict[str, Any] = {"state": state, "text": text, "manual": manual}
        if error is not None:
            payload["error"] = error
        self._bus.publish(SAVE_STATUS, BusMessage(topic=SAVE_STATUS, payload=payload))


__all__ = [
    "AutosavePolicy",
    "AutosaveState",
    "FAILED_TEXT",
    "SAVING_TEXT",
    "TimerFactory",
    "TimerHandle",
    "saved_text",
]
