from __future__ import annotations

import json
from pathlib import Path

import pytest

from tests.helpers.timers import ManualTimerFactory
from todolist.app import CORRUPT_WARNING, TodoApp
from todolist.autosave import FAILED_TEXT, SAVING_TEXT
from todolist.bus.interface import BusMessage
from todolist.config import load_config
from todolist.filters import QuickFilter
from todolist.persistence import TaskLoadError, TaskSaveError


def _app(data_file: Path, timers: ManualTimerFactory) -> TodoApp:
    cfg = load_config({"TODO_DATA_FILE": str(data_file)})
    return TodoApp(cfg, timer_factory=timers)


def test_startup_with_missing_file(data_file: Path, timers: ManualTimerFactory) -> None:
    app = _app(data_file, timers)
    assert app.load() is None
    assert len(app.store) == 0
    assert app.view.items == []


def test_corrupt_file_warns_once_and_starts_empty(data_file: Path, timers: ManualTimerFactory) -> None:
    data_file.parent.mkdir(parents=True)
    data_file.write_text("[{broken", encoding="utf-8")
    app = _app(data_file, timers)
    assert app.load() == CORRUPT_WARNING
    assert len(app.store) == 0
    # The quarantined file is gone from the primary path, so a reload is clean
    assert app.load() is None


def test_load_io_error_propagates(tmp_path: Path, timers: ManualTimerFactory) -> None:
    target = tmp_path / "tasks.json"
    target.mkdir()
    app = _app(target, timers)
    with pytest.raises(TaskLoadError):
        app.load()


def test_mutations_autosave_and_reload(data_file: Path, timers: ManualTimerFactory) -> None:
    statuses: list[str] = []
    app = _app(data_file, timers)
    app.load()
    app.on_status(lambda m: statuses.append(m.payload["text"]))
    a = app.store.add("Buy milk", tags=["x", " X ", "y"])
    app.store.add("Walk dog")
    assert a is not None
    app.store.toggle(a.id)
    assert not data_file.exists()

    timers.fire_all()
    assert statuses[0] == SAVING_TEXT
    assert statuses[-1].startswith("Saved at ")

    again = _app(data_file, ManualTimerFactory())
    again.load()
    assert [t.title for t in again.store] == ["Buy milk", "Walk dog"]
    assert again.store.get(a.id).tags == ["x", "y"]  # type: ignore[union-attr]
    assert again.store.get(a.id).is_completed is True  # type: ignore[union-attr]


def test_view_follows_store(data_file: Path, timers: ManualTimerFactory) -> None:
    app = _app(data_file, timers)
    app.load()
    app.view.set_filters(QuickFilter.ALL, tag="work")
    app.store.add("a", tags=["work"])
    app.store.add("b", tags=["home"])
    assert [t.title for t in app.view.items] == ["a"]
    assert app.view.available_tags() == ["home", "work"]


def test_manual_save_failure_raises(tmp_path: Path, timers: ManualTimerFactory) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")
    app = _app(blocker / "tasks.json", timers)
    app.store.add("a")
    with pytest.raises(TaskSaveError):
        app.save_now()
    assert app.status_text == FAILED_TEXT
    assert [t.title for t in app.store] == ["a"]


def test_close_flushes_pending_save(data_file: Path, timers: ManualTimerFactory) -> None:
    app = _app(data_file, timers)
    app.load()
    app.store.add("pending")
    app.close()
    assert json.loads(data_file.read_text(encoding="utf-8"))[0]["title"] == "pending"


def test_status_subscription_receives_bus_messages(data_file: Path, timers: ManualTimerFactory) -> None:
    got: list[BusMessage] = []
    app = _app(data_file, timers)
    unsubscribe = app.on_status(got.append)
    app.save_now()
    assert [m.payload["state"] for m in got] == ["saving", "saved"]
    unsubscribe()
    app.save_now()
    assert len(got) == 2


def test_mutation_subscription(data_file: Path, timers: ManualTimerFactory) -> None:
    actions: list[str] = []
    app = _app(data_file, timers)
    app.on_mutated(lambda m: actions.append(m.payload["action"]))
    t = app.store.add("a")
    assert t is not None
    app.store.remove(t.id)
    assert actions == ["add", "remove"]
