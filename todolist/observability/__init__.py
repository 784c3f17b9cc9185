from __future__ import annotations

import datetime as dt
import json
import logging
import os
import sys
import threading
from collections.abc import Mapping
from typing import Any


def _iso_now() -> str:
    return dt.datetime.now(dt.UTC).isoformat()


def _build_base_payload(record: logging.LogRecord) -> dict[str, Any]:
    return {
        "ts": _iso_now(),
        "level": record.levelname.lower(),
        "logger": record.name,
        "msg": record.getMessage(),
    }


def _add_standard_extras(payload: dict[str, Any], record: logging.LogRecord) -> None:
    # Callers pass structured fields through `extra=`
    for attr in (
        "event",
        "action",
        "task_id",
        "path",
        "duration_ms",
        "manual",
        "metadata",
    ):
        if hasattr(record, attr):
            payload[attr] = getattr(record, attr)


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = _build_base_payload(record)
        _add_standard_extras(payload, record)
        # Attach error fields if present, keeping the JSON single-line
        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            payload["err_type"] = getattr(exc_type, "__name__", str(exc_type))
            if exc_value is not None:
                payload["err"] = str(exc_value)
            payload["stack"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ConsoleLogFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(message)s")

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        ts = _iso_now()[11:19]  # HH:MM:SS
        parts: list[str] = [ts, record.levelname.upper(), record.name]
        event = getattr(record, "event", None)
        if event:
            parts.append(str(event))
        task_id = getattr(record, "task_id", None)
        if task_id:
            parts.append(f"task={str(task_id)[:8]}")
        parts.append("-")
        parts.append(record.getMessage())
        if record.exc_info and record.exc_info[1] is not None:
            parts.append(f"({record.exc_info[1]})")
        return " ".join(parts)


class _StdoutHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """StreamHandler bound to whatever sys.stdout is at emit time."""

    @property  # type: ignore[override]
    def stream(self) -> Any:
        return sys.stdout

    @stream.setter
    def stream(self, value: Any) -> None:
        pass


def _choose_formatter() -> logging.Formatter:
    format_pref = (os.getenv("LOG_FORMAT") or "").strip().lower() or "auto"
    if format_pref == "auto":
        try:
            if sys.stdout.isatty():
                return ConsoleLogFormatter()
        except Exception:
            pass
        return JsonLogFormatter()
    if format_pref == "console":
        return ConsoleLogFormatter()
    return JsonLogFormatter()


def _parse_level(value: str | None, default: int = logging.INFO) -> int:
    name = (value or "").strip().upper()
    if not name:
        return default
    level = getattr(logging, name, None)
    return level if isinstance(level, int) else default


_level_override: int | None = None


def _level_for_logger(logger_name: str) -> int:
    if _level_override is not None:
        return _level_override
    base_level = _parse_level(os.getenv("LOG_LEVEL"), logging.INFO)
    overrides = (os.getenv("LOG_MODULE_LEVELS") or "").strip()
    if not overrides:
        return base_level
    for entry in overrides.split(","):
        entry = entry.strip()
        if not entry or "=" not in entry:
            continue
        prefix, lvl = entry.split("=", 1)
        prefix = prefix.strip()
        if not prefix:
            continue
        if logger_name == prefix or logger_name.startswith(prefix + "."):
            return _parse_level(lvl, base_level)
    return base_level


def get_json_logger(name: str = "todolist") -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = _StdoutHandler()
        handler.setFormatter(_choose_formatter())
        logger.addHandler(handler)
        logger.setLevel(_level_for_logger(name))
        logger.propagate = False
    return logger


def configure_logging(level: str | int | None, prefix: str = "todolist") -> None:
    """Force a level on every logger under prefix, existing and future.

    ``None`` drops the override and goes back to LOG_LEVEL / LOG_MODULE_LEVELS.
    """
    global _level_override
    if level is None:
        _level_override = None
    elif isinstance(level, int):
        _level_override = level
    else:
        _level_override = _parse_level(level)
    for name in list(logging.root.manager.loggerDict):
        if name == prefix or name.startswith(prefix + "."):
            logging.getLogger(name).setLevel(_level_for_logger(name))


class Metrics:
    def __init__(self) -> None:
        self._counters: dict[tuple[str, tuple[tuple[str, str], ...]], int] = {}
        # Incremented from caller threads and the autosave timer thread
        self._lock = threading.Lock()

    def increment(
        self,
        name: str,
        labels: Mapping[str, str] | None = None,
        amount: int = 1,
    ) -> None:
        label_items: tuple[tuple[str, str], ...] = tuple(sorted((labels or {}).items()))
        key = (name, label_items)
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + amount

    def value(self, name: str, labels: Mapping[str, str] | None = None) -> int:
        label_items: tuple[tuple[str, str], ...] = tuple(sorted((labels or {}).items()))
        with self._lock:
            return self._counters.get((name, label_items), 0)

    def snapshot(self) -> list[dict[str, Any]]:
        out: list[dict[str, Any]] = []
        with self._lock:
            items = sorted(self._counters.items())
        for (name, label_items), value in items:
            out.append(
                {
                    "name": name,
                    "labels": dict(label_items),
                    "value": value,
                }
            )
        return out


# ----------------------------
# Metrics singleton
# ----------------------------

_metrics_singleton: Metrics | None = None


def get_metrics() -> Metrics:
    global _metrics_singleton
    if _metrics_singleton is None:
        _metrics_singleton = Metrics()
    return _metrics_singleton


def reset_metrics() -> None:
    global _metrics_singleton
    _metrics_singleton = Metrics()


__all__ = [
    "ConsoleLogFormatter",
    "JsonLogFormatter",
    "Metrics",
    "configure_logging",
    "get_json_logger",
    "get_metrics",
    "reset_metrics",
]
