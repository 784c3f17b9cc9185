from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_DATA_FILE = "data/tasks.json"
DEFAULT_AUTOSAVE_DELAY_MS = 1500


@dataclass(slots=True)
class TodoConfig:
    data_file: Path
    autosave_delay_ms: int
    backup: bool

    @property
    def autosave_delay_s(self) -> float:
        return self.autosave_delay_ms / 1000.0


def _parse_flag(raw: str | None, default: bool) -> bool:
    value = (raw or "").strip().lower()
    if not value:
        return default
    return value not in {"0", "false", "no", "off"}


def load_config(env: dict[str, str] | None = None) -> TodoConfig:
    e: dict[str, Any] = dict(os.environ)
    if env:
        e.update(env)
    delay_raw = (e.get("TODO_AUTOSAVE_DELAY_MS") or "").strip()
    try:
        delay_ms = int(delay_raw) if delay_raw else DEFAULT_AUTOSAVE_DELAY_MS
    except Exception:
        delay_ms = DEFAULT_AUTOSAVE_DELAY_MS
    if delay_ms < 0:
        delay_ms = DEFAULT_AUTOSAVE_DELAY_MS
    data_file = (e.get("TODO_DATA_FILE") or "").strip() or DEFAULT_DATA_FILE
    return TodoConfig(
        data_file=Path(data_file),
        autosave_delay_ms=delay_ms,
        backup=_parse_flag(e.get("TODO_BACKUP"), True),
    )


__all__ = ["DEFAULT_AUTOSAVE_DELAY_MS", "DEFAULT_DATA_FILE", "TodoConfig", "load_config"]
