from __future__ import annotations

from .policy import (
    FAILED_TEXT,
    SAVING_TEXT,
    AutosavePolicy,
    AutosaveState,
    TimerFactory,
    TimerHandle,
    saved_text,
)

__all__ = [
    "AutosavePolicy",
    "AutosaveState",
    "FAILED_TEXT",
    "SAVING_TEXT",
    "TimerFactory",
    "TimerHandle",
    "saved_text",
]
