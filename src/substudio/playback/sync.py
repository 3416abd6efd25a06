from __future__ import annotations

import math
from typing import TYPE_CHECKING, Callable, List, Optional

from substudio.utils.logger import get_logger

from .player import Player
from .scheduler import Scheduler

if TYPE_CHECKING:
    from substudio.session import EditSession

logger = get_logger(__name__)

DEFAULT_SUPPRESSION_WINDOW = 0.5

ActiveCueListener = Callable[[Optional[int]], None]


class PlaybackSyncController:
    """
    协调播放器的位置流与"当前字幕"。

    - 自然播放时，每个位置更新都经解析器重新确定当前字幕，
      落在字幕之间的空档时保留上一条；
    - 导航触发的 seek 会乐观地立即设置当前字幕，并在抑制窗口内忽略位置更新，
      避免播放器追赶目标位置期间的旧位置把当前字幕拉回别处；
    - 窗口结束后恢复由自然位置更新决定当前字幕。
    """

    def __init__(
        self,
        session: EditSession,
        player: Player,
        scheduler: Scheduler,
        suppression_window: float = DEFAULT_SUPPRESSION_WINDOW,
    ) -> None:
        self.session = session
        self.player = player
        self.scheduler = scheduler
        self.suppression_window = suppression_window
        self._suppress_until: Optional[float] = None
        self._listeners: List[ActiveCueListener] = []

    @property
    def suppress_until(self) -> Optional[float]:
        return self._suppress_until

    @property
    def is_suppressed(self) -> bool:
        return self._suppress_until is not None and self.scheduler.now() < self._suppress_until

    def subscribe(self, listener: ActiveCueListener) -> None:
        """注册当前字幕变化的回调（供视图层刷新使用）。"""
        self._listeners.append(listener)

    def _set_active(self, cue_id: Optional[int]) -> None:
        if cue_id == self.session.active_cue_id:
            return
        logger.debug("当前字幕: %s -> %s", self.session.active_cue_id, cue_id)
        self.session.active_cue_id = cue_id
        for listener in list(self._listeners):
            listener(cue_id)

    def on_position_update(self, position: float) -> Optional[int]:
        """处理一次自然位置更新，返回处理后的当前字幕 id。"""
        if self.is_suppressed:
            logger.debug("抑制窗口内，忽略位置更新 %.3f", position)
            return self.session.active_cue_id
        self._suppress_until = None
        if math.isnan(position):
            return self.session.active_cue_id
        cue = self.session.resolve(position)
        # 播放进入字幕之间的空档时保持上一条为当前字幕
        if cue is not None:
            self._set_active(cue.id)
        return self.session.active_cue_id

    def request_seek(self, target_position: float, target_cue_id: Optional[int]) -> None:
        """
        程序化跳转：先开启抑制窗口并乐观设置当前字幕，再向播放器发出 seek。
        """
        if target_cue_id is not None:
            self.session.get(target_cue_id)
        self._suppress_until = self.scheduler.now() + self.suppression_window
        self._set_active(target_cue_id)
        self.player.seek(max(0.0, target_position))
