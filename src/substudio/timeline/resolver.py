from __future__ import annotations

import bisect
import math
from typing import List, Optional, Sequence

from substudio.subtitles import Cue

DEFAULT_RESTART_THRESHOLD = 1.0


class CueTimeline:
    """
    按开始时间排序的字幕时间轴，负责"当前字幕"查询与上一条/下一条跳转。

    构造时预先计算开始时间列表与结束时间的前缀最大值，查询均为 O(log n)：
      - 开始时间 <= position 的字幕是 cues[0..anchor]；
      - 结束时间前缀最大值单调不减，其中第一个 >= position 的下标
        即为最早一个包含 position 的字幕（若该下标不超过 anchor）。
    因此重叠或空档都能得到正确结果；边界时间点同时落在两条字幕上时，
    返回列表中靠前（结束时间等于该点）的那一条。
    """

    def __init__(self, cues: Sequence[Cue]) -> None:
        self._cues: List[Cue] = list(cues)
        self._starts = [c.start for c in self._cues]
        self._max_ends: List[float] = []
        running = -math.inf
        for cue in self._cues:
            running = max(running, cue.end)
            self._max_ends.append(running)

    def __len__(self) -> int:
        return len(self._cues)

    @property
    def cues(self) -> List[Cue]:
        return list(self._cues)

    def anchor_index(self, position: float) -> int:
        """最后一条 start <= position 的字幕下标；position 早于所有字幕时返回 -1。"""
        if math.isnan(position):
            return -1
        return bisect.bisect_right(self._starts, position) - 1

    def anchor(self, position: float) -> Optional[Cue]:
        idx = self.anchor_index(position)
        return self._cues[idx] if idx >= 0 else None

    def resolve(self, position: float) -> Optional[Cue]:
        anchor = self.anchor_index(position)
        if anchor < 0:
            return None
        first = bisect.bisect_left(self._max_ends, position, 0, anchor + 1)
        if first > anchor:
            return None
        return self._cues[first]

    def jump_next(self, position: float) -> Optional[Cue]:
        """锚点之后的一条；没有锚点时返回第一条，锚点已是最后一条时返回 None。"""
        if not self._cues:
            return None
        anchor = self.anchor_index(position)
        if anchor < 0:
            return self._cues[0]
        if anchor + 1 >= len(self._cues):
            return None
        return self._cues[anchor + 1]

    def jump_prev(
        self,
        position: float,
        restart_threshold: float = DEFAULT_RESTART_THRESHOLD,
    ) -> Optional[Cue]:
        """
        已进入锚点字幕超过 restart_threshold 秒时回到锚点开头，
        否则返回锚点前一条；锚点已是第一条（或不存在）时返回第一条。
        """
        if not self._cues:
            return None
        anchor = self.anchor_index(position)
        if anchor >= 0 and position > self._cues[anchor].start + restart_threshold:
            return self._cues[anchor]
        if anchor > 0:
            return self._cues[anchor - 1]
        return self._cues[0]


def resolve_active(position: float, cues: Sequence[Cue]) -> Optional[Cue]:
    return CueTimeline(cues).resolve(position)


def jump_next(position: float, cues: Sequence[Cue]) -> Optional[Cue]:
    return CueTimeline(cues).jump_next(position)


def jump_prev(
    position: float,
    cues: Sequence[Cue],
    restart_threshold: float = DEFAULT_RESTART_THRESHOLD,
) -> Optional[Cue]:
    return CueTimeline(cues).jump_prev(position, restart_threshold=restart_threshold)
