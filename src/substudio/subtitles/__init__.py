from __future__ import annotations

from .types import Cue, CueError
from .timecode import TimecodeError, format_clock, format_timestamp, parse_timestamp
from .srt_parser import parse_srt, read_srt
from .srt_writer import cues_to_srt, write_srt

__all__ = [
    "Cue",
    "CueError",
    "TimecodeError",
    "format_clock",
    "format_timestamp",
    "parse_timestamp",
    "parse_srt",
    "read_srt",
    "cues_to_srt",
    "write_srt",
]
