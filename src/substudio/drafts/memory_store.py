from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from substudio.subtitles import Cue

from .base import DraftStore


class MemoryDraftStore(DraftStore):
    """进程内草稿存储，不落盘。"""

    def __init__(self) -> None:
        self._cues: Dict[int, Cue] = {}

    def get(self, cue_id: int) -> Optional[Cue]:
        return self._cues.get(cue_id)

    def put(self, cue: Cue) -> None:
        self._cues[cue.id] = cue

    def get_all(self) -> List[Cue]:
        return [self._cues[k] for k in sorted(self._cues)]

    def replace_all(self, cues: Iterable[Cue]) -> None:
        self._cues = {c.id: c for c in cues}

    def clear(self) -> None:
        self._cues.clear()
