from __future__ import annotations

from .task import TaskRecord, new_task_id, normalize_tags

__all__ = ["TaskRecord", "new_task_id", "normalize_tags"]
