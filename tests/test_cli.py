from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from todolist.cli import main


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as ei:
        main(argv)
    return int(ei.value.code or 0)


def _add(data_file: Path, capsys: Any, *args: str) -> str:
    assert _run(["--data-file", str(data_file), "add", *args]) == 0
    return capsys.readouterr().out.strip().splitlines()[-1]


def test_add_list_and_persist(data_file: Path, capsys: Any) -> None:
    tid = _add(data_file, capsys, "Buy milk", "--tags", "x, X ,y", "--due", "2024-06-01T23:00")
    assert data_file.exists()

    assert _run(["--data-file", str(data_file), "list", "--json"]) == 0
    tasks = json.loads(capsys.readouterr().out)
    assert len(tasks) == 1
    assert tasks[0]["id"] == tid
    assert tasks[0]["tags"] == ["x", "y"]
    assert tasks[0]["dueDate"].startswith("2024-06-01T23:00:00")

    assert _run(["--data-file", str(data_file), "list"]) == 0
    line = capsys.readouterr().out.strip()
    assert line.startswith(tid[:8])
    assert "[ ] Buy milk" in line
    assert "(due 2024-06-01)" in line
    assert "#x #y" in line


def test_blank_title_rejected(data_file: Path, capsys: Any) -> None:
    assert _run(["--data-file", str(data_file), "add", "   "]) == 2
    assert "title must be non-empty" in capsys.readouterr().err
    assert not data_file.exists()


def test_done_by_prefix_then_clear_completed(data_file: Path, capsys: Any) -> None:
    a = _add(data_file, capsys, "A")
    b = _add(data_file, capsys, "B")
    c = _add(data_file, capsys, "C")

    assert _run(["--data-file", str(data_file), "done", a[:12]]) == 0
    assert _run(["--data-file", str(data_file), "done", c]) == 0
    assert _run(["--data-file", str(data_file), "clear-completed"]) == 0
    assert "removed 2" in capsys.readouterr().out

    saved = json.loads(data_file.read_text(encoding="utf-8"))
    assert [t["id"] for t in saved] == [b]
    # The previous state is kept as a backup
    bak = json.loads(Path(str(data_file) + ".bak").read_text(encoding="utf-8"))
    assert len(bak) == 3


def test_edit_and_tags(data_file: Path, capsys: Any) -> None:
    tid = _add(data_file, capsys, "Draft", "--due", "2024-06-01")
    assert _run(
        ["--data-file", str(data_file), "edit", tid, "--title", "Final", "--clear-due", "--tags", "Work,home"]
    ) == 0
    saved = json.loads(data_file.read_text(encoding="utf-8"))[0]
    assert saved["title"] == "Final"
    assert saved["dueDate"] is None
    assert saved["tags"] == ["Work", "home"]

    capsys.readouterr()
    assert _run(["--data-file", str(data_file), "tags"]) == 0
    assert capsys.readouterr().out.split() == ["home", "Work"]


def test_unknown_id_and_bad_filter(data_file: Path, capsys: Any) -> None:
    _add(data_file, capsys, "A")
    assert _run(["--data-file", str(data_file), "rm", "zzzz"]) == 2
    assert "no task with id" in capsys.readouterr().err
    assert _run(["--data-file", str(data_file), "list", "--filter", "Someday"]) == 2
    assert "unknown quick filter" in capsys.readouterr().err


def test_corrupt_file_warns_and_recovers(data_file: Path, capsys: Any) -> None:
    data_file.parent.mkdir(parents=True)
    data_file.write_text("not json", encoding="utf-8")
    assert _run(["--data-file", str(data_file), "list"]) == 0
    assert "warning: tasks.json is corrupted" in capsys.readouterr().err
    assert not data_file.exists()
    assert len(list(data_file.parent.glob("tasks.json.corrupt.*"))) == 1


def test_save_failure_exits_nonzero(tmp_path: Path, capsys: Any) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")
    assert _run(["--data-file", str(blocker / "tasks.json"), "add", "A"]) == 1
    assert "error: failed to save" in capsys.readouterr().err


def test_no_command_prints_help(capsys: Any) -> None:
    assert _run([]) == 0
    assert "usage" in capsys.readouterr().out.lower()
