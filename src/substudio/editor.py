from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from .config import SubStudioConfig
from .drafts import DraftStore, MemoryDraftStore, get_draft_store
from .navigation import CommitWorkflow, FocusCallback, NavigationResult, Navigator
from .playback import PlaybackSyncController, Player, Scheduler
from .session import EditSession
from .subtitles import Cue, cues_to_srt, parse_srt, read_srt, write_srt


class NoActiveSessionError(RuntimeError):
    """尚未加载字幕文件。"""


class SubtitleEditor:
    """
    字幕翻译编辑器的主入口。

    持有当前的 EditSession 以及围绕它的同步控制器、导航与提交流程；
    每次 load 都会关闭旧会话（写出未保存的编辑）并创建全新的会话。
    """

    def __init__(
        self,
        config: SubStudioConfig,
        player: Player,
        scheduler: Scheduler,
        store: Optional[DraftStore] = None,
        on_focus: Optional[FocusCallback] = None,
    ) -> None:
        self.config = config
        self.player = player
        self.scheduler = scheduler
        self.store = store if store is not None else self._build_store()
        self.on_focus = on_focus
        self.session: Optional[EditSession] = None
        self.sync: Optional[PlaybackSyncController] = None
        self.navigator: Optional[Navigator] = None
        self.commits: Optional[CommitWorkflow] = None

    def _build_store(self) -> DraftStore:
        if self.config.draft_store == "json" and self.config.draft_path is None:
            # 未配置草稿路径时只保存在内存中
            return MemoryDraftStore()
        return get_draft_store(self.config.draft_store, self.config.draft_path)

    def _require(self) -> EditSession:
        if self.session is None:
            raise NoActiveSessionError("尚未加载字幕文件")
        return self.session

    def load(self, raw_text: str, name: str = "") -> EditSession:
        return self._open(parse_srt(raw_text), name)

    def load_file(self, path: str | Path) -> EditSession:
        src_path = Path(path).expanduser().resolve()
        return self._open(read_srt(src_path), src_path.name)

    def _open(self, cues: List[Cue], name: str) -> EditSession:
        if self.session is not None:
            self.session.close(flush=True)
        session = EditSession.from_cues(
            cues,
            self.store,
            self.scheduler,
            persist_debounce=self.config.persist_debounce,
            name=name,
        )
        self.session = session
        self.sync = PlaybackSyncController(
            session,
            self.player,
            self.scheduler,
            suppression_window=self.config.suppression_window,
        )
        self.navigator = Navigator(
            session,
            self.sync,
            self.player,
            restart_threshold=self.config.restart_threshold,
            seek_step=self.config.seek_step,
        )
        self.commits = CommitWorkflow(
            session,
            self.sync,
            self.player,
            self.scheduler,
            on_focus=self.on_focus,
            cooldown=self.config.commit_cooldown,
            refocus_delay=self.config.refocus_delay,
        )
        return session

    def on_position_update(self, position: float) -> Optional[int]:
        self._require()
        assert self.sync is not None
        return self.sync.on_position_update(position)

    def set_translation(self, cue_id: int, text: str) -> Cue:
        return self._require().set_translation(cue_id, text)

    def commit(self, text: str) -> NavigationResult:
        self._require()
        assert self.commits is not None
        return self.commits.commit_and_advance(text)

    def jump_next(self) -> NavigationResult:
        self._require()
        assert self.navigator is not None
        return self.navigator.jump_next()

    def jump_prev(self) -> NavigationResult:
        self._require()
        assert self.navigator is not None
        return self.navigator.jump_prev()

    def select(self, cue_id: int) -> NavigationResult:
        self._require()
        assert self.navigator is not None
        return self.navigator.select(cue_id)

    def step(self, delta: Optional[float] = None) -> float:
        self._require()
        assert self.navigator is not None
        return self.navigator.step(delta)

    def set_rate(self, rate: float) -> None:
        if rate <= 0:
            raise ValueError(f"播放速度必须为正数: {rate}")
        self.player.set_rate(rate)

    def export(self, bilingual: Optional[bool] = None) -> str:
        if bilingual is None:
            bilingual = self.config.bilingual_export
        return cues_to_srt(self._require().cues, bilingual=bilingual)

    def write(self, path: str | Path, bilingual: Optional[bool] = None) -> Path:
        if bilingual is None:
            bilingual = self.config.bilingual_export
        return write_srt(self._require().cues, path, bilingual=bilingual)

    def flush(self) -> bool:
        """立即写出所有尚未保存的编辑。"""
        return self._require().flush_all()

    def reset(self) -> None:
        """丢弃当前会话及全部草稿。"""
        if self.session is not None:
            self.session.close(flush=False)
        self.store.clear()
        self.session = None
        self.sync = None
        self.navigator = None
        self.commits = None

    def close(self) -> None:
        if self.session is not None:
            self.session.close(flush=True)
