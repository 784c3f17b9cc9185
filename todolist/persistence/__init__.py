from __future__ import annotations

from .json_file import (
    JsonTaskFile,
    LoadResult,
    PersistenceError,
    TaskLoadError,
    TaskSaveError,
    backup_path_for,
    quarantine_path_for,
)

__all__ = [
    "JsonTaskFile",
    "LoadResult",
    "PersistenceError",
    "TaskLoadError",
    "TaskSaveError",
    "backup_path_for",
    "quarantine_path_for",
]
