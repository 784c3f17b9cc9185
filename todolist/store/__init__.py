from __future__ import annotations

from .task_store import TaskStore

__all__ = ["TaskStore"]
