from __future__ import annotations

import datetime as _dt
from collections.abc import Callable
from pathlib import Path

from todolist.autosave import AutosavePolicy, TimerFactory
from todolist.bus.interface import SAVE_STATUS, TASKS_MUTATED, Bus, BusMessage
from todolist.bus.local import LocalBus
from todolist.config import TodoConfig, load_config
from todolist.filters import FilteredView
from todolist.observability import get_json_logger
from todolist.persistence import JsonTaskFile, LoadResult
from todolist.store import TaskStore

CORRUPT_WARNING = (
    "tasks.json is corrupted. A backup was created and a new file will be used."
)


class TodoApp:
    """Wires store, persistence, autosave and the filtered view for a UI.

    - ``load`` fills the store from disk and returns a one-time warning text
      when the file was corrupt (the UI shows it in a dialog)
    - ``save_now`` is the manual save; it raises so the UI can show an error
    - ``status_text`` mirrors the autosave status line
    """

    def __init__(
        self,
        config: TodoConfig | None = None,
        *,
        bus: Bus | None = None,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        self.config = config or load_config()
        self.bus: Bus = bus or LocalBus()
        self.storage = JsonTaskFile(backup=self.config.backup)
        self.store = TaskStore(self.bus)
        self.autosave = AutosavePolicy(
            self.store,
            self.storage,
            self.config.data_file,
            self.bus,
            delay_s=self.config.autosave_delay_s,
            timer_factory=timer_factory,
        )
        self.view = FilteredView(self.store, self.bus)
        self._logger = get_json_logger("todolist.app")

    @property
    def data_file(self) -> Path:
        return self.config.data_file

    @property
    def status_text(self) -> str:
        return self.autosave.status_text

    def load(self) -> str | None:
        """Load tasks from disk. Returns a warning message if the file was corrupt.

        Raises TaskLoadError for I/O failures other than corrupt content.
        """
        result: LoadResult = self.storage.load(self.data_file)
        self.store.replace_all(result.tasks)
        self.view.refresh()
        if result.corrupt:
            return CORRUPT_WARNING
        return None

    def save_now(self) -> _dt.datetime:
        return self.autosave.save_now()

    def on_status(self, handler: Callable[[BusMessage], None]) -> Callable[[], None]:
        return self.bus.subscribe(SAVE_STATUS, handler)

    def on_mutated(self, handler: Callable[[BusMessage], None]) -> Callable[[], None]:
        return self.bus.subscribe(TASKS_MUTATED, handler)

    def close(self) -> None:
        self.view.close()
        self.autosave.close(flush=True)
        self._logger.debug("app closed", extra={"event": "app_closed"})


__all__ = ["CORRUPT_WARNING", "TodoApp"]
