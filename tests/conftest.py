from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from tests.helpers.bus import RecordingBus
from tests.helpers.timers import ManualTimerFactory
from todolist.observability import configure_logging, reset_metrics
from todolist.store import TaskStore


@pytest.fixture(autouse=True)
def _quiet_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep tests independent of the developer's environment."""
    for name in ("TODO_DATA_FILE", "TODO_AUTOSAVE_DELAY_MS", "TODO_BACKUP", "LOG_LEVEL", "LOG_MODULE_LEVELS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LOG_FORMAT", "json")
    reset_metrics()
    yield
    configure_logging(None)


@pytest.fixture()
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "data" / "tasks.json"


@pytest.fixture()
def bus() -> RecordingBus:
    return RecordingBus()


@pytest.fixture()
def store(bus: RecordingBus) -> TaskStore:
    return TaskStore(bus)


@pytest.fixture()
def timers() -> ManualTimerFactory:
    return ManualTimerFactory()

