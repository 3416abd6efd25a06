from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from substudio.playback import PlaybackSyncController, Player, Scheduler
from substudio.session import EditSession
from substudio.timeline import DEFAULT_RESTART_THRESHOLD
from substudio.utils.logger import info

DEFAULT_COMMIT_COOLDOWN = 0.3
DEFAULT_REFOCUS_DELAY = 0.05
DEFAULT_SEEK_STEP = 5.0

FocusCallback = Callable[[int], None]


class NavigationOutcome(str, Enum):
    MOVED = "moved"
    RESTARTED = "restarted"
    START_OF_TRACK = "start_of_track"
    END_OF_TRACK = "end_of_track"
    NO_ACTIVE_CUE = "no_active_cue"
    IGNORED = "ignored"


@dataclass
class NavigationResult:
    outcome: NavigationOutcome
    cue_id: Optional[int] = None
    position: Optional[float] = None

    @property
    def moved(self) -> bool:
        return self.outcome in {
            NavigationOutcome.MOVED,
            NavigationOutcome.RESTARTED,
            NavigationOutcome.START_OF_TRACK,
        }


class CommitState(str, Enum):
    IDLE = "idle"
    COMMITTING = "committing"
    COOLDOWN = "cooldown"


class Navigator:
    """按钮与列表点击触发的导航：上一条 / 下一条 / 跳到指定字幕 / 快进快退。"""

    def __init__(
        self,
        session: EditSession,
        sync: PlaybackSyncController,
        player: Player,
        restart_threshold: float = DEFAULT_RESTART_THRESHOLD,
        seek_step: float = DEFAULT_SEEK_STEP,
    ) -> None:
        self.session = session
        self.sync = sync
        self.player = player
        self.restart_threshold = restart_threshold
        self.seek_step = seek_step

    def _go(self, cue_id: int, outcome: NavigationOutcome) -> NavigationResult:
        cue = self.session.get(cue_id)
        if self.player.is_playing:
            self.player.pause()
        self.sync.request_seek(cue.start, cue.id)
        return NavigationResult(outcome, cue_id=cue.id, position=cue.start)

    def select(self, cue_id: int) -> NavigationResult:
        """点击列表中的某条字幕。"""
        cue = self.session.get(cue_id)
        self.sync.request_seek(cue.start, cue.id)
        return NavigationResult(NavigationOutcome.MOVED, cue_id=cue.id, position=cue.start)

    def jump_next(self) -> NavigationResult:
        target = self.session.timeline.jump_next(self.player.current_position)
        if target is None:
            info("已经是最后一条字幕")
            return NavigationResult(NavigationOutcome.END_OF_TRACK)
        return self._go(target.id, NavigationOutcome.MOVED)

    def jump_prev(self) -> NavigationResult:
        position = self.player.current_position
        timeline = self.session.timeline
        target = timeline.jump_prev(position, restart_threshold=self.restart_threshold)
        if target is None:
            info("已经是第一条字幕")
            return NavigationResult(NavigationOutcome.START_OF_TRACK)
        anchor_idx = timeline.anchor_index(position)
        anchor = timeline.anchor(position)
        if anchor is not None and position > anchor.start + self.restart_threshold:
            outcome = NavigationOutcome.RESTARTED
        elif anchor_idx <= 0:
            info("已经是第一条字幕")
            outcome = NavigationOutcome.START_OF_TRACK
        else:
            outcome = NavigationOutcome.MOVED
        return self._go(target.id, outcome)

    def step(self, delta: Optional[float] = None) -> float:
        """
        快进 / 快退（默认 ±seek_step 秒）。

        普通 seek，不开启抑制窗口，当前字幕仍由自然位置更新决定。
        """
        if delta is None:
            delta = self.seek_step
        target = max(0.0, self.player.current_position + delta)
        self.player.seek(target)
        return target


class CommitWorkflow:
    """
    回车提交并前进到下一条：

      idle -> committing -> cooldown -> idle

    非 idle 状态下的新提交直接忽略（不排队），冷却期用于吸收按键连发。
    """

    def __init__(
        self,
        session: EditSession,
        sync: PlaybackSyncController,
        player: Player,
        scheduler: Scheduler,
        on_focus: Optional[FocusCallback] = None,
        cooldown: float = DEFAULT_COMMIT_COOLDOWN,
        refocus_delay: float = DEFAULT_REFOCUS_DELAY,
    ) -> None:
        self.session = session
        self.sync = sync
        self.player = player
        self.scheduler = scheduler
        self.on_focus = on_focus
        self.cooldown = cooldown
        self.refocus_delay = refocus_delay
        self._state = CommitState.IDLE

    @property
    def state(self) -> CommitState:
        return self._state

    def _release(self) -> None:
        self._state = CommitState.IDLE

    def _focus(self, cue_id: int) -> None:
        if self.on_focus is not None and not self.session.closed:
            self.on_focus(cue_id)

    def commit_and_advance(self, text: str) -> NavigationResult:
        """text 为输入框中当前字幕的最新内容。"""
        if self._state is not CommitState.IDLE:
            return NavigationResult(NavigationOutcome.IGNORED)
        active_id = self.session.active_cue_id
        if active_id is None:
            return NavigationResult(NavigationOutcome.NO_ACTIVE_CUE)

        self._state = CommitState.COMMITTING
        try:
            self.session.set_translation(active_id, text)
            self.session.flush_persist(active_id)

            # 正在编辑的字幕在列表中的位置是确定的，直接取下一条
            next_cue = self.session.next_cue(active_id)
            if next_cue is None:
                info("已经是最后一条字幕")
                return NavigationResult(NavigationOutcome.END_OF_TRACK, cue_id=active_id)

            if self.player.is_playing:
                self.player.pause()
            self.sync.request_seek(next_cue.start, next_cue.id)
            target_id = next_cue.id
            self.scheduler.call_later(self.refocus_delay, lambda: self._focus(target_id))
            return NavigationResult(
                NavigationOutcome.MOVED, cue_id=next_cue.id, position=next_cue.start
            )
        finally:
            self._state = CommitState.COOLDOWN
            self.scheduler.call_later(self.cooldown, self._release)
