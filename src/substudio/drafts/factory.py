from __future__ import annotations

from pathlib import Path

from .base import DraftStore
from .json_store import JsonDraftStore
from .memory_store import MemoryDraftStore


def get_draft_store(name: str, path: str | Path | None = None) -> DraftStore:
    """
    根据名称返回对应的草稿存储实例。

    支持：
      - "json"   : JsonDraftStore（需要 path）
      - "memory" : MemoryDraftStore
    """
    key = name.lower()
    if key == "memory":
        return MemoryDraftStore()
    if key == "json":
        if path is None:
            raise ValueError("json 草稿存储需要指定文件路径")
        return JsonDraftStore(path)
    raise ValueError(f"Unknown draft store: {name}")
