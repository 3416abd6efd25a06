from __future__ import annotations

from .player import Player
from .scheduler import AsyncioScheduler, Scheduler, TimerHandle
from .sync import DEFAULT_SUPPRESSION_WINDOW, PlaybackSyncController

__all__ = [
    "AsyncioScheduler",
    "DEFAULT_SUPPRESSION_WINDOW",
    "PlaybackSyncController",
    "Player",
    "Scheduler",
    "TimerHandle",
]
