from __future__ import annotations

import datetime as dt

import pytest
from pydantic import ValidationError

from todolist.models.task import TaskRecord, normalize_tags


def test_defaults_and_generated_id() -> None:
    a = TaskRecord(title="Buy milk")
    b = TaskRecord(title="Buy bread")
    assert a.id and b.id and a.id != b.id
    assert a.is_completed is False
    assert a.due_date is None
    assert a.tags == []


def test_id_is_immutable() -> None:
    t = TaskRecord(title="x")
    with pytest.raises(ValidationError):
        t.id = "other"  # type: ignore[misc]


def test_tags_normalized_on_construction_and_assignment() -> None:
    t = TaskRecord(title="x", tags=["x", " X ", "y", "  ", "Y"])
    assert t.tags == ["x", "y"]
    t.tags = [" home", "Home", "work "]
    assert t.tags == ["home", "work"]


def test_normalize_tags_keeps_first_spelling() -> None:
    assert normalize_tags(["Work", "work", "WORK", "Play"]) == ["Work", "Play"]
    assert normalize_tags(None) == []


def test_json_dump_uses_camel_case_and_stable_order() -> None:
    due = dt.datetime(2024, 6, 1, 9, 30, tzinfo=dt.timezone(dt.timedelta(hours=2)))
    t = TaskRecord(title="Ship", due_date=due, tags=["a"])
    data = t.to_json_dict()
    assert list(data.keys()) == ["id", "title", "isCompleted", "dueDate", "tags"]
    assert data["dueDate"] == "2024-06-01T09:30:00+02:00"
    assert data["isCompleted"] is False


def test_accepts_aliases_and_field_names() -> None:
    by_alias = TaskRecord.model_validate(
        {"id": "t1", "title": "x", "isCompleted": True, "dueDate": None, "tags": []}
    )
    by_name = TaskRecord(id="t1", title="x", is_completed=True)
    assert by_alias == by_name


def test_naive_due_date_becomes_local_aware() -> None:
    t = TaskRecord(title="x", due_date=dt.datetime(2024, 6, 1, 23, 0))
    assert t.due_date is not None
    assert t.due_date.tzinfo is not None
    assert t.due_date.date() == dt.date(2024, 6, 1)
    assert t.due_date.hour == 23
