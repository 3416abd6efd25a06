from __future__ import annotations

from .resolver import (
    DEFAULT_RESTART_THRESHOLD,
    CueTimeline,
    jump_next,
    jump_prev,
    resolve_active,
)

__all__ = [
    "DEFAULT_RESTART_THRESHOLD",
    "CueTimeline",
    "jump_next",
    "jump_prev",
    "resolve_active",
]
