from __future__ import annotations

from typing import Any, Dict, List, Optional

from substudio.playback import Player


class BrowserBridge(Player):
    """
    浏览器端播放器与输入框在服务端的代理。

    - 客户端通过 report() 上报播放位置与播放状态；
    - 引擎发出的 seek / pause / 变速 / 聚焦请求以指令形式排队，
      随下一次响应下发给客户端执行（drain）。
    """

    def __init__(self) -> None:
        self._position = 0.0
        self._playing = False
        self._rate = 1.0
        self._commands: List[Dict[str, Any]] = []

    @property
    def current_position(self) -> float:
        return self._position

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def rate(self) -> float:
        return self._rate

    def report(self, position: float, playing: Optional[bool] = None) -> None:
        self._position = max(0.0, position)
        if playing is not None:
            self._playing = playing

    def seek(self, position: float) -> None:
        # 浏览器设置 currentTime 后立即可读，这里同样先行更新
        self._position = position
        self._commands.append({"type": "seek", "position": position})

    def pause(self) -> None:
        self._playing = False
        self._commands.append({"type": "pause"})

    def set_rate(self, rate: float) -> None:
        self._rate = rate
        self._commands.append({"type": "rate", "rate": rate})

    def focus(self, cue_id: int) -> None:
        self._commands.append({"type": "focus", "cue_id": cue_id, "select": True})

    def drain(self) -> List[Dict[str, Any]]:
        commands, self._commands = self._commands, []
        return commands
