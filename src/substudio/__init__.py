from __future__ import annotations

from .config import SubStudioConfig
from .editor import NoActiveSessionError, SubtitleEditor
from .session import EditSession, UnknownCueError

__all__ = [
    "EditSession",
    "NoActiveSessionError",
    "SubStudioConfig",
    "SubtitleEditor",
    "UnknownCueError",
]

__version__ = "0.1.0"
