from __future__ import annotations

from abc import ABC, abstractmethod


class Player(ABC):
    """
    播放器协作方接口。

    引擎只读取 current_position 并发出 seek/pause 请求，从不自行驱动播放；
    seek 是异步的"发出即返回"请求，播放器需要一段时间才能到达目标位置。
    """

    @property
    @abstractmethod
    def current_position(self) -> float:
        """当前播放位置（秒）。"""

    @property
    @abstractmethod
    def is_playing(self) -> bool:
        """是否正在播放。"""

    @abstractmethod
    def seek(self, position: float) -> None:
        """请求跳转到 position（秒）。"""

    @abstractmethod
    def pause(self) -> None:
        """请求暂停播放。"""

    def set_rate(self, rate: float) -> None:
        """请求调整播放速度；不支持变速的播放器可以忽略。"""
