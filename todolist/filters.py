from __future__ import annotations

import datetime as _dt
from collections.abc import Callable, Iterable
from enum import StrEnum

from todolist.bus.interface import TASKS_MUTATED, Bus, BusMessage
from todolist.models.task import TaskRecord, normalize_tags
from todolist.store import TaskStore

WEEK_WINDOW_DAYS = 7


class QuickFilter(StrEnum):
    ALL = "All"
    TODAY = "Today"
    THIS_WEEK = "This week"
    OVERDUE = "Overdue"

    @classmethod
    def parse(cls, label: str | None) -> QuickFilter:
        if not label or not label.strip():
            return cls.ALL
        wanted = " ".join(label.split()).casefold()
        for member in cls:
            if member.value.casefold() == wanted:
                return member
        raise ValueError(f"unknown quick filter: {label!r}")


def _local_now() -> _dt.datetime:
    return _dt.datetime.now().astimezone()


def passes_quick_filter(task: TaskRecord, quick: QuickFilter, now: _dt.datetime) -> bool:
    if quick is QuickFilter.ALL:
        return True
    due = task.due_date
    if due is None:
        return False
    today = now.date()
    if quick is QuickFilter.TODAY:
        return due.date() == today
    if quick is QuickFilter.THIS_WEEK:
        # Both ends inclusive: today through today+7
        return today <= due.date() <= today + _dt.timedelta(days=WEEK_WINDOW_DAYS)
    if quick is QuickFilter.OVERDUE:
        return due < now and not task.is_completed
    return True


def apply_filters(
    tasks: Iterable[TaskRecord],
    quick: QuickFilter | str = QuickFilter.ALL,
    tag: str | None = None,
    *,
    now: _dt.datetime | None = None,
) -> list[TaskRecord]:
    """Return the tasks that pass both filters, in their original order.

    ``now`` defaults to the current local time; naive values are taken as
    local time. Tag matching is exact and case-sensitive.
    """
    mode = quick if isinstance(quick, QuickFilter) else QuickFilter.parse(quick)
    current = now if now is not None else _local_now()
    if current.tzinfo is None:
        current = current.astimezone()
    return [
        t
        for t in tasks
        if passes_quick_filter(t, mode, current) and (not tag or tag in t.tags)
    ]


def available_tags(tasks: Iterable[TaskRecord]) -> list[str]:
    """Distinct tags across tasks, case-insensitively deduplicated and sorted."""
    merged = normalize_tags(tag for t in tasks for tag in t.tags)
    return sorted(merged, key=lambda s: (s.casefold(), s))


def parse_tags(text: str | None) -> list[str]:
    """Split comma-separated tag input into a normalized tag list."""
    if not text or not text.strip():
        return []
    return normalize_tags(text.split(","))


class FilteredView:
    """Derived read of a TaskStore under the current quick/tag filters.

    Recomputed on every ``tasks.mutated`` message and on ``set_filters``;
    the store's list is never modified from here.
    """

    def __init__(
        self,
        store: TaskStore,
        bus: Bus,
        *,
        clock: Callable[[], _dt.datetime] = _local_now,
    ) -> None:
        self._store = store
        self._clock = clock
        self._quick = QuickFilter.ALL
        self._tag: str | None = None
        self._items: list[TaskRecord] = []
        self._unsubscribe: Callable[[], None] | None = bus.subscribe(
            TASKS_MUTATED, self._on_mutated
        )
        self.refresh()

    @property
    def quick(self) -> QuickFilter:
        return self._quick

    @property
    def tag(self) -> str | None:
        return self._tag

    @property
    def items(self) -> list[TaskRecord]:
        return list(self._items)

    def set_filters(self, quick: QuickFilter | str | None = None, tag: str | None = None) -> list[TaskRecord]:
        if quick is not None:
            self._quick = quick if isinstance(quick, QuickFilter) else QuickFilter.parse(quick)
        self._tag = tag.strip() if tag and tag.strip() else None
        return self.refresh()

    def refresh(self) -> list[TaskRecord]:
        self._items = apply_filters(
            self._store.list_tasks(), self._quick, self._tag, now=self._clock()
        )
        return self.items

    def available_tags(self) -> list[str]:
        return available_tags(self._store.list_tasks())

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_mutated(self, message: BusMessage) -> None:
        self.refresh()


__all__ = [
    "FilteredView",
    "QuickFilter",
    "WEEK_WINDOW_DAYS",
    "apply_filters",
    "available_tags",
    "parse_tags",
    "passes_quick_filter",
]
