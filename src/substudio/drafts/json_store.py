from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from substudio.subtitles import Cue, CueError

from .base import DraftStore, DraftStoreError

FORMAT_VERSION = 1


def _cue_to_dict(cue: Cue) -> Dict[str, Any]:
    return {
        "id": cue.id,
        "start": cue.start,
        "end": cue.end,
        "text": cue.source_text,
        "translation": cue.translation,
    }


def _cue_from_dict(data: Dict[str, Any]) -> Cue:
    return Cue(
        id=int(data["id"]),
        start=float(data["start"]),
        end=float(data["end"]),
        source_text=str(data.get("text") or ""),
        translation=str(data.get("translation") or ""),
    )


class JsonDraftStore(DraftStore):
    """
    以单个 JSON 文件保存草稿（默认位于任务目录下的 drafts.json）。

    - 首次访问时整体读入内存，之后每次写入都整体重写文件；
    - 写入先落到同目录临时文件再 os.replace，避免中途失败留下半个文件；
    - 文件损坏或读写失败统一抛出 DraftStoreError。
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser().resolve()
        self._cache: Optional[Dict[int, Cue]] = None

    def _load(self) -> Dict[int, Cue]:
        if self._cache is not None:
            return self._cache
        if not self.path.is_file():
            self._cache = {}
            return self._cache
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            records = data.get("cues", []) if isinstance(data, dict) else data
            cues = [_cue_from_dict(r) for r in records]
        except (OSError, ValueError, KeyError, TypeError, CueError) as exc:
            raise DraftStoreError(f"读取草稿文件失败: {self.path}: {exc}") from exc
        self._cache = {c.id: c for c in cues}
        return self._cache

    def _write(self, cues: Dict[int, Cue]) -> None:
        payload = {
            "version": FORMAT_VERSION,
            "cues": [_cue_to_dict(cues[k]) for k in sorted(cues)],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=self.path.name + ".", suffix=".tmp", dir=str(self.path.parent)
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f_out:
                    json.dump(payload, f_out, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise DraftStoreError(f"写入草稿文件失败: {self.path}: {exc}") from exc

    def get(self, cue_id: int) -> Optional[Cue]:
        return self._load().get(cue_id)

    def put(self, cue: Cue) -> None:
        cues = dict(self._load())
        cues[cue.id] = cue
        self._write(cues)
        self._cache = cues

    def get_all(self) -> List[Cue]:
        cues = self._load()
        return [cues[k] for k in sorted(cues)]

    def replace_all(self, cues: Iterable[Cue]) -> None:
        new_cues = {c.id: c for c in cues}
        self._write(new_cues)
        self._cache = new_cues

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            raise DraftStoreError(f"删除草稿文件失败: {self.path}: {exc}") from exc
        self._cache = {}
