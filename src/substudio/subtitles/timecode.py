from __future__ import annotations

import math
import re

_TIMESTAMP_RE = re.compile(r"^(\d+):(\d{2}):(\d{2})[,.](\d{1,3})$")

ZERO_TIMESTAMP = "00:00:00,000"


class TimecodeError(ValueError):
    """时间戳字符串无法解析。"""


def parse_timestamp(value: str) -> float:
    """
    将 "HH:MM:SS,mmm" 转换为秒数：H*3600 + M*60 + S + ms/1000。

    兼容以 "." 作为毫秒分隔符的写法；毫秒不足三位时按右侧补零处理（",5" 即 500ms）。
    """
    match = _TIMESTAMP_RE.match(value.strip())
    if not match:
        raise TimecodeError(f"无效的时间戳: {value!r}")
    hours, minutes, seconds = (int(g) for g in match.groups()[:3])
    if minutes >= 60 or seconds >= 60:
        raise TimecodeError(f"时间戳中的分钟或秒越界: {value!r}")
    millis = int(match.group(4).ljust(3, "0"))
    return hours * 3600 + minutes * 60 + seconds + millis / 1000


def format_timestamp(seconds: float) -> str:
    # 导出必须成功：负数、NaN、inf 一律输出零时间
    if seconds is None or not math.isfinite(seconds) or seconds < 0:
        return ZERO_TIMESTAMP
    total_ms = int(round(seconds * 1000))
    ms = total_ms % 1000
    total_seconds = total_ms // 1000
    s = total_seconds % 60
    total_minutes = total_seconds // 60
    m = total_minutes % 60
    h = total_minutes // 60
    return f"{h:02d}:{m:02d}:{s:02d},{ms:03d}"


def format_clock(seconds: float) -> str:
    """播放器上显示的 "HH:MM:SS"，不含毫秒。"""
    return format_timestamp(seconds).split(",")[0]
