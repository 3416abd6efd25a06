from __future__ import annotations

from .base import DraftStore, DraftStoreError
from .factory import get_draft_store
from .json_store import JsonDraftStore
from .memory_store import MemoryDraftStore

__all__ = [
    "DraftStore",
    "DraftStoreError",
    "JsonDraftStore",
    "MemoryDraftStore",
    "get_draft_store",
]
