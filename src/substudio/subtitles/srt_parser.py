from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional, Tuple

from substudio.utils.logger import warning

from .timecode import TimecodeError, parse_timestamp
from .types import Cue, CueError

TIME_SEPARATOR = "-->"

# 序号行 + 时间轴行；只有一行时间轴的块没有任何可用内容
MIN_BLOCK_LINES = 2

_BLOCK_SPLIT_RE = re.compile(r"\n[ \t]*\n")


def _normalize(raw_text: str) -> str:
    text = raw_text.replace("\r\n", "\n").replace("\r", "\n")
    if text.startswith("\ufeff"):
        text = text[1:]
    return text


def _parse_time_line(line: str) -> Tuple[float, float]:
    left, _, right = line.partition(TIME_SEPARATOR)
    right_parts = right.split()
    if not right_parts:
        raise TimecodeError(f"时间轴缺少结束时间: {line!r}")
    # 结束时间之后可能还有位置信息（X1:... Y1:...），直接忽略
    return parse_timestamp(left), parse_timestamp(right_parts[0])


def _parse_block(block: str, cue_id: int) -> Tuple[Optional[Cue], str]:
    lines = [ln.rstrip() for ln in block.strip("\n").split("\n")]
    if len(lines) < MIN_BLOCK_LINES:
        return None, f"行数不足（{len(lines)}）"

    time_idx = next((i for i, ln in enumerate(lines) if TIME_SEPARATOR in ln), -1)
    if time_idx == -1:
        return None, "缺少时间轴行"

    try:
        start, end = _parse_time_line(lines[time_idx])
    except TimecodeError as exc:
        return None, str(exc)

    text = "\n".join(lines[time_idx + 1 :]).strip()
    try:
        cue = Cue(id=cue_id, start=start, end=end, source_text=text)
    except CueError as exc:
        return None, str(exc)
    return cue, ""


def parse_srt(raw_text: str, start_id: int = 1) -> List[Cue]:
    """
    将 SRT 文本解析为按开始时间排序的字幕列表。

    - 以空行分块，每块中第一条包含 "-->" 的行为时间轴，其后各行以换行拼接为原文；
    - 不合法的块（缺少时间轴、行数不足、end <= start）逐块丢弃，不影响其余内容；
    - id 按块出现顺序从 start_id 开始递增，可用于在已有自增序列之后继续编号；
    - 输入未按时间排序时记录警告并做稳定排序，id 仍保留原始出现顺序。
    """
    text = _normalize(raw_text)
    cues: List[Cue] = []
    next_id = start_id

    for block_num, block in enumerate(_BLOCK_SPLIT_RE.split(text), start=1):
        if not block.strip():
            continue
        cue, reason = _parse_block(block, next_id)
        if cue is None:
            warning("丢弃第 %d 个字幕块: %s", block_num, reason)
            continue
        cues.append(cue)
        next_id += 1

    if any(later.start < earlier.start for earlier, later in zip(cues, cues[1:])):
        warning("字幕块未按开始时间排序，已按开始时间重新排序（共 %d 条）", len(cues))
        cues.sort(key=lambda c: c.start)
    return cues


def read_srt(path: str | Path, start_id: int = 1) -> List[Cue]:
    src_path = Path(path).expanduser().resolve()
    raw = src_path.read_text(encoding="utf-8", errors="replace")
    return parse_srt(raw, start_id=start_id)
