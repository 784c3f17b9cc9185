from __future__ import annotations

import datetime as _dt
import json
import os
import shutil
import tempfile
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from todolist.models.task import TaskRecord
from todolist.observability import get_json_logger, get_metrics

_TASK_LIST = TypeAdapter(list[TaskRecord])


class PersistenceError(RuntimeError):
    pass


class TaskLoadError(PersistenceError):
    pass


class TaskSaveError(PersistenceError):
    pass


@dataclass(slots=True)
class LoadResult:
    tasks: list[TaskRecord] = field(default_factory=list)
    corrupt: bool = False
    quarantine_path: Path | None = None


def backup_path_for(path: Path) -> Path:
    return path.with_name(path.name + ".bak")


def quarantine_path_for(path: Path, epoch_seconds: int) -> Path:
    return path.with_name(f"{path.name}.corrupt.{epoch_seconds}")


def _unused_quarantine_path(path: Path) -> Path:
    # Never overwrite an earlier quarantined copy from the same second
    base = quarantine_path_for(path, int(time.time()))
    dest = base
    n = 1
    while dest.exists():
        dest = base.with_name(f"{base.name}.{n}")
        n += 1
    return dest


class JsonTaskFile:
    """Reads and writes the task list as a JSON array.

    - load: a missing file is an empty list; unparsable content is moved aside
      to ``<name>.corrupt.<epoch>`` (``.1``, ``.2`` ... appended when taken) and
      reported through ``LoadResult.corrupt``
    - save: copies the previous file to ``<name>.bak`` first (best effort), then
      writes a temp file next to the target and swaps it in with ``os.replace``
    """

    def __init__(self, *, backup: bool = True) -> None:
        self._backup = backup
        self._logger = get_json_logger("todolist.persistence")

    def load(self, path: str | Path) -> LoadResult:
        target = Path(path)
        if not target.exists():
            return LoadResult()
        try:
            raw = target.read_bytes()
        except OSError as exc:
            self._logger.error(
                "load failed",
                extra={"event": "load_failed", "path": str(target), "metadata": {"error": str(exc)[:200]}},
            )
            raise TaskLoadError(f"failed to read {target}: {exc}") from exc
        try:
            tasks = _TASK_LIST.validate_python(json.loads(raw))
        except (ValueError, ValidationError) as exc:
            # json.JSONDecodeError and UnicodeDecodeError are both ValueErrors
            return self._quarantine(target, exc)
        self._logger.info(
            "tasks loaded",
            extra={"event": "load_completed", "path": str(target), "metadata": {"count": len(tasks)}},
        )
        return LoadResult(tasks=tasks)

    def save(self, records: Iterable[TaskRecord], path: str | Path) -> _dt.datetime:
        target = Path(path)
        started = time.perf_counter()
        payload = json.dumps(
            [r.to_json_dict() for r in records],
            indent=2,
            ensure_ascii=False,
        )
        tmp_name: str | None = None
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            if self._backup and target.exists():
                self._copy_backup(target)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, target)
            tmp_name = None
        except OSError as exc:
            self._logger.error(
                "save failed",
                extra={"event": "save_failed", "path": str(target), "metadata": {"error": str(exc)[:200]}},
            )
            raise TaskSaveError(f"failed to save {target}: {exc}") from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
        completed_at = _dt.datetime.now().astimezone()
        self._logger.info(
            "tasks saved",
            extra={
                "event": "save_completed",
                "path": str(target),
                "duration_ms": (time.perf_counter() - started) * 1000.0,
            },
        )
        return completed_at

    def _copy_backup(self, target: Path) -> None:
        bak = backup_path_for(target)
        try:
            shutil.copyfile(target, bak)
        except OSError as exc:
            self._logger.warning(
                "backup failed",
                extra={"event": "backup_failed", "path": str(bak), "metadata": {"error": str(exc)[:200]}},
            )

    def _quarantine(self, target: Path, exc: Exception) -> LoadResult:
        dest = _unused_quarantine_path(target)
        moved: Path | None = None
        try:
            os.replace(target, dest)
            moved = dest
        except OSError as move_exc:
            self._logger.warning(
                "quarantine failed",
                extra={
                    "event": "quarantine_failed",
                    "path": str(dest),
                    "metadata": {"error": str(move_exc)[:200]},
                },
            )
        self._logger.warning(
            "tasks file corrupt",
            extra={
                "event": "load_corrupt",
                "path": str(target),
                "metadata": {"error": str(exc)[:200], "quarantine": str(moved) if moved else None},
            },
        )
        get_metrics().increment("loads_corrupt")
        return LoadResult(corrupt=True, quarantine_path=moved)


__all__ = [
    "JsonTaskFile",
    "LoadResult",
    "PersistenceError",
    "TaskLoadError",
    "TaskSaveError",
    "backup_path_for",
    "quarantine_path_for",
]
