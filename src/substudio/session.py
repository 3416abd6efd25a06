from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from substudio.drafts import DraftStore, DraftStoreError
from substudio.playback.scheduler import Scheduler, TimerHandle
from substudio.subtitles import Cue, parse_srt
from substudio.timeline import CueTimeline
from substudio.utils.logger import info, warning

DEFAULT_PERSIST_DEBOUNCE = 0.4


class UnknownCueError(KeyError):
    """会话中不存在该字幕 id。"""


def hydrate_from_store(cues: List[Cue], stored: Sequence[Cue]) -> List[Cue]:
    """
    用已保存的草稿回填译文。

    仅当草稿条数与新解析出的条数一致时才回填（视为同一文件的续编），
    否则丢弃旧草稿。
    """
    if not stored:
        return cues
    if len(stored) != len(cues):
        info("草稿条数 %d 与字幕条数 %d 不一致，丢弃旧草稿", len(stored), len(cues))
        return cues

    by_id = {c.id: c.translation for c in stored}
    info("已从草稿恢复 %d 条字幕的译文", sum(1 for t in by_id.values() if t))
    return [c.with_translation(by_id.get(c.id, "")) for c in cues]


class EditSession:
    """
    一次文件加载对应的编辑会话。

    会话是译文的唯一权威来源：
      - set_translation 立即修改内存并标记为脏，不同步写存储；
      - 每条字幕各自防抖，后一次编辑会取消前一次尚未触发的写入；
      - 写入时重新读取当前内存中的值，因此落盘的永远是最后一次编辑的内容；
      - 写入失败时保持脏标记，等下一次编辑时再重试。
    """

    def __init__(
        self,
        cues: Iterable[Cue],
        store: DraftStore,
        scheduler: Scheduler,
        persist_debounce: float = DEFAULT_PERSIST_DEBOUNCE,
        name: str = "",
    ) -> None:
        self._cues: List[Cue] = list(cues)
        self._index: Dict[int, int] = {c.id: i for i, c in enumerate(self._cues)}
        if len(self._index) != len(self._cues):
            raise ValueError("字幕 id 重复")
        self.timeline = CueTimeline(self._cues)
        self.store = store
        self.scheduler = scheduler
        self.persist_debounce = persist_debounce
        self.name = name
        self.active_cue_id: Optional[int] = None
        self._dirty: Set[int] = set()
        self._pending: Dict[int, TimerHandle] = {}
        self._closed = False

    @classmethod
    def from_cues(
        cls,
        cues: Iterable[Cue],
        store: DraftStore,
        scheduler: Scheduler,
        persist_debounce: float = DEFAULT_PERSIST_DEBOUNCE,
        name: str = "",
    ) -> "EditSession":
        """从草稿回填译文，并以新内容重建草稿存储；草稿读取失败等同于没有草稿。"""
        session = cls(cues, store, scheduler, persist_debounce=persist_debounce, name=name)
        try:
            stored = session.load_all()
        except DraftStoreError as exc:
            warning("读取草稿失败，将忽略已有草稿: %s", exc)
            stored = []
        # 回填不改变 id 与顺序，索引和时间轴无需重建
        session._cues = hydrate_from_store(session._cues, stored)
        try:
            store.replace_all(session._cues)
        except DraftStoreError as exc:
            warning("重建草稿失败，将在编辑时重试: %s", exc)
        info("已加载 %d 条字幕", len(session))
        return session

    @classmethod
    def load(
        cls,
        raw_text: str,
        store: DraftStore,
        scheduler: Scheduler,
        persist_debounce: float = DEFAULT_PERSIST_DEBOUNCE,
        name: str = "",
    ) -> "EditSession":
        """解析字幕文本后按 from_cues 创建会话。"""
        return cls.from_cues(
            parse_srt(raw_text), store, scheduler, persist_debounce=persist_debounce, name=name
        )

    def __len__(self) -> int:
        return len(self._cues)

    @property
    def cues(self) -> List[Cue]:
        return list(self._cues)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def dirty_ids(self) -> Set[int]:
        return set(self._dirty)

    @property
    def pending_ids(self) -> Set[int]:
        return set(self._pending)

    def index_of(self, cue_id: int) -> int:
        try:
            return self._index[cue_id]
        except KeyError:
            raise UnknownCueError(cue_id) from None

    def get(self, cue_id: int) -> Cue:
        return self._cues[self.index_of(cue_id)]

    def next_cue(self, cue_id: int) -> Optional[Cue]:
        idx = self.index_of(cue_id) + 1
        return self._cues[idx] if idx < len(self._cues) else None

    def previous_cue(self, cue_id: int) -> Optional[Cue]:
        idx = self.index_of(cue_id) - 1
        return self._cues[idx] if idx >= 0 else None

    @property
    def active_cue(self) -> Optional[Cue]:
        if self.active_cue_id is None:
            return None
        return self.get(self.active_cue_id)

    def resolve(self, position: float) -> Optional[Cue]:
        # 时间轴里保存的是加载时的对象，按 id 取回带最新译文的版本
        cue = self.timeline.resolve(position)
        return self.get(cue.id) if cue is not None else None

    def translation(self, cue_id: int) -> str:
        return self.get(cue_id).translation

    def progress(self) -> Tuple[int, int]:
        done = sum(1 for c in self._cues if c.translation.strip())
        return done, len(self._cues)

    def set_translation(self, cue_id: int, text: str) -> Cue:
        if self._closed:
            raise RuntimeError("会话已关闭")
        idx = self.index_of(cue_id)
        cue = self._cues[idx]
        if text == cue.translation and cue_id not in self._dirty:
            return cue
        if text != cue.translation:
            cue = cue.with_translation(text)
            self._cues[idx] = cue
        self._dirty.add(cue_id)
        self._schedule_flush(cue_id)
        return cue

    def _schedule_flush(self, cue_id: int) -> None:
        previous = self._pending.pop(cue_id, None)
        if previous is not None:
            previous.cancel()
        self._pending[cue_id] = self.scheduler.call_later(
            self.persist_debounce, lambda: self._on_debounce(cue_id)
        )

    def _on_debounce(self, cue_id: int) -> None:
        self._pending.pop(cue_id, None)
        if self._closed:
            return
        self.flush_persist(cue_id)

    def flush_persist(self, cue_id: int) -> bool:
        """
        立即把该字幕当前的内存值写入存储（跳过防抖）。

        返回是否已与存储一致；写入失败只记录日志，不向上抛出。
        """
        pending = self._pending.pop(cue_id, None)
        if pending is not None:
            pending.cancel()
        cue = self.get(cue_id)
        if cue_id not in self._dirty:
            return True
        try:
            self.store.put(cue)
        except DraftStoreError as exc:
            warning("字幕 %d 的草稿写入失败，将在下次编辑时重试: %s", cue_id, exc)
            return False
        self._dirty.discard(cue_id)
        return True

    def flush_all(self) -> bool:
        ok = True
        for cue_id in sorted(self._dirty | set(self._pending)):
            ok = self.flush_persist(cue_id) and ok
        return ok

    def load_all(self) -> List[Cue]:
        """读取存储中的全部草稿（按 id 升序）。"""
        return self.store.get_all()

    def close(self, flush: bool = True) -> None:
        """
        结束会话：可选地先写出所有脏数据，然后取消所有尚未触发的防抖写入。
        """
        if self._closed:
            return
        if flush:
            self.flush_all()
        for handle in self._pending.values():
            handle.cancel()
        self._pending.clear()
        self._closed = True
