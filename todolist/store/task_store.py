from __future__ import annotations

import datetime as _dt
import threading
from collections.abc import Iterable, Iterator
from typing import Any

from todolist.bus.interface import TASKS_MUTATED, Bus, BusMessage
from todolist.models.task import TaskRecord, new_task_id, normalize_tags
from todolist.observability import get_json_logger, get_metrics

# Distinguishes "leave due date alone" from "clear due date" in update()
_UNSET: Any = object()


class TaskStore:
    """Owner of the master task list.

    - Insertion order is list order and persisted order
    - Every successful mutation publishes one ``tasks.mutated`` message
    - Ids are never handed out twice, even after the task is deleted
    """

    def __init__(self, bus: Bus, records: Iterable[TaskRecord] | None = None) -> None:
        self._bus = bus
        self._lock = threading.RLock()
        self._tasks: list[TaskRecord] = []
        self._issued_ids: set[str] = set()
        if records is not None:
            self.replace_all(records)

    # ----------------------------
    # Reads
    # ----------------------------
    def get(self, task_id: str) -> TaskRecord | None:
        with self._lock:
            return self._find(task_id)

    def list_tasks(self) -> list[TaskRecord]:
        with self._lock:
            return list(self._tasks)

    def snapshot(self) -> list[TaskRecord]:
        """Deep copies of every record, safe to hand to another thread."""
        with self._lock:
            return [t.model_copy(deep=True) for t in self._tasks]

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def __iter__(self) -> Iterator[TaskRecord]:
        return iter(self.list_tasks())

    # ----------------------------
    # Mutations
    # ----------------------------
    def replace_all(self, records: Iterable[TaskRecord]) -> None:
        """Swap in a freshly loaded list. Not a user edit, so nothing is published."""
        with self._lock:
            self._tasks = list(records)
            self._issued_ids.update(t.id for t in self._tasks)

    def add(
        self,
        title: str,
        due_date: _dt.datetime | None = None,
        tags: Iterable[str] | None = None,
    ) -> TaskRecord | None:
        if not isinstance(title, str) or not title.strip():
            return None
        with self._lock:
            record = TaskRecord(
                id=self._fresh_id(),
                title=title.strip(),
                due_date=due_date,
                tags=normalize_tags(tags),
            )
            self._tasks.append(record)
        self._publish("add", [record.id])
        return record

    def update(
        self,
        task_id: str,
        *,
        title: str | None = None,
        due_date: _dt.datetime | None = _UNSET,
        tags: Iterable[str] | None = None,
        is_completed: bool | None = None,
    ) -> TaskRecord | None:
        if title is not None and (not isinstance(title, str) or not title.strip()):
            raise ValueError("title must be non-empty")
        if due_date is not _UNSET and due_date is not None and due_date.tzinfo is None:
            due_date = due_date.astimezone()
        with self._lock:
            record = self._find(task_id)
            if record is None:
                return None
            changed = False
            if title is not None and record.title != title.strip():
                record.title = title.strip()
                changed = True
            if due_date is not _UNSET and record.due_date != due_date:
                record.due_date = due_date
                changed = True
            if tags is not None:
                new_tags = normalize_tags(tags)
                if new_tags != record.tags:
                    record.tags = new_tags
                    changed = True
            if is_completed is not None and record.is_completed != bool(is_completed):
                record.is_completed = bool(is_completed)
                changed = True
        if changed:
            self._publish("update", [record.id])
        return record

    def toggle(self, task_id: str) -> TaskRecord | None:
        with self._lock:
            record = self._find(task_id)
            if record is None:
                return None
            record.is_completed = not record.is_completed
        self._publish("toggle", [record.id])
        return record

    def remove(self, task_id: str) -> bool:
        with self._lock:
            record = self._find(task_id)
            if record is None:
                return False
            self._tasks.remove(record)
        self._publish("remove", [task_id])
        return True

    def complete_all(self) -> None:
        with self._lock:
            if not self._tasks:
                return
            ids = [t.id for t in self._tasks]
            for t in self._tasks:
                t.is_completed = True
        # One message for the whole batch
        self._publish("complete_all", ids)

    def clear_completed(self) -> int:
        with self._lock:
            removed = [t.id for t in self._tasks if t.is_completed]
            if not removed:
                return 0
            self._tasks = [t for t in self._tasks if not t.is_completed]
        self._publish("clear_completed", removed)
        return len(removed)

    # ----------------------------
    # Internals
    # ----------------------------
    def _find(self, task_id: str) -> TaskRecord | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def _fresh_id(self) -> str:
        while True:
            candidate = new_task_id()
            if candidate not in self._issued_ids:
                self._issued_ids.add(candidate)
                return candidate

    def _publish(self, action: str, task_ids: list[str]) -> None:
        get_json_logger("todolist.store").debug(
            "tasks mutated",
            extra={"event": "tasks_mutated", "action": action, "metadata": {"count": len(task_ids)}},
        )
        get_metrics().increment("mutations", {"action": action})
        self._bus.publish(
            TASKS_MUTATED,
            BusMessage(topic=TASKS_MUTATED, payload={"action": action, "task_ids": task_ids}),
        )


__all__ = ["TaskStore"]
