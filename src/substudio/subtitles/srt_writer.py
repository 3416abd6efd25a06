from __future__ import annotations

from pathlib import Path
from typing import Iterable, List

from .timecode import format_timestamp
from .types import Cue


def _block_text(text: str) -> List[str]:
    # 文本内部的空行会被解析器当作块分隔符，导出时去掉
    return [line for line in text.split("\n") if line.strip()]


def cues_to_srt(items: Iterable[Cue], bilingual: bool = False) -> str:
    """
    按当前列表顺序导出 SRT 文本，序号从 1 重新编号。

    - 默认仅输出译文（译文为空时保留空文本行，不回退到原文）；
    - bilingual=True 时先输出原文、再输出译文。
    """
    lines: list[str] = []
    for seq, item in enumerate(items, start=1):
        lines.append(str(seq))
        lines.append(f"{format_timestamp(item.start)} --> {format_timestamp(item.end)}")
        if bilingual:
            lines.extend(_block_text(item.source_text))
        translation = _block_text(item.translation)
        if translation:
            lines.extend(translation)
        elif not bilingual:
            lines.append("")
        lines.append("")  # 空行分隔
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def write_srt(
    items: Iterable[Cue],
    path: str | Path,
    bilingual: bool = False,
) -> Path:
    srt_text = cues_to_srt(items, bilingual=bilingual)
    out_path = Path(path).expanduser().resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(srt_text, encoding="utf-8")
    return out_path
