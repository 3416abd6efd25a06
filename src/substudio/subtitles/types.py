from __future__ import annotations

import math
import re
from dataclasses import dataclass, replace

_MARKUP_RE = re.compile(r"<[^>]*>")


class CueError(ValueError):
    """字幕条目的时间或编号不合法。"""


@dataclass(frozen=True)
class Cue:
    """
    单条字幕项，对应 SRT 中的一个时间轴块。

    - id 在一次编辑会话内唯一且稳定，由解析顺序分配；
    - start / end 以秒为单位，解析后不可变；
    - translation 是唯一可变的内容，通过 with_translation 生成新对象。
    """

    id: int
    start: float
    end: float
    source_text: str
    translation: str = ""

    def __post_init__(self) -> None:
        if self.id <= 0:
            raise CueError(f"字幕 id 必须为正整数: {self.id}")
        if not (math.isfinite(self.start) and math.isfinite(self.end)):
            raise CueError(f"字幕 {self.id} 的时间不是有限数值")
        if self.start < 0:
            raise CueError(f"字幕 {self.id} 的开始时间为负数: {self.start}")
        if self.end <= self.start:
            raise CueError(
                f"字幕 {self.id} 的结束时间 {self.end} 不晚于开始时间 {self.start}"
            )

    @property
    def display_text(self) -> str:
        # 去掉 <i>、<font> 等内联标记，仅用于展示
        return _MARKUP_RE.sub("", self.source_text)

    def with_translation(self, text: str) -> "Cue":
        return replace(self, translation=text)
