from __future__ import annotations

import datetime as _dt
import uuid
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def new_task_id() -> str:
    return str(uuid.uuid4())


def normalize_tags(tags: Iterable[str] | None) -> list[str]:
    """Trim tags, drop empty ones and remove case-insensitive duplicates.

    The first spelling seen wins and the original order is kept, so
    ``["x", " X ", "y"]`` becomes ``["x", "y"]``.
    """
    seen: set[str] = set()
    out: list[str] = []
    for raw in tags or []:
        tag = str(raw).strip()
        if not tag:
            continue
        key = tag.casefold()
        if key in seen:
            continue
        seen.add(key)
        out.append(tag)
    return out


class TaskRecord(BaseModel):
    """A single to-do item as stored in the tasks file.

    - Field order here is the field order of the persisted JSON objects
    - JSON keys use camelCase aliases (``isCompleted``, ``dueDate``)
    - Tags are normalized on construction and on every assignment
    """

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    id: str = Field(default_factory=new_task_id, frozen=True)
    title: str
    is_completed: bool = Field(default=False, alias="isCompleted")
    due_date: _dt.datetime | None = Field(default=None, alias="dueDate")
    tags: list[str] = Field(default_factory=list)

    @field_validator("due_date")
    @classmethod
    def _localize_due_date(cls, value: _dt.datetime | None) -> _dt.datetime | None:
        # Naive timestamps are taken as local wall-clock time
        if value is not None and value.tzinfo is None:
            return value.astimezone()
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> Any:
        if value is None:
            return []
        return value

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, value: list[str]) -> list[str]:
        return normalize_tags(value)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


__all__ = ["TaskRecord", "new_task_id", "normalize_tags"]
