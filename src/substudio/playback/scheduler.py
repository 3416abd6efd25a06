from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional


class TimerHandle(ABC):
    @abstractmethod
    def cancel(self) -> None:
        """取消尚未触发的回调；已触发或已取消时无副作用。"""


class Scheduler(ABC):
    """
    引擎内部唯一的计时来源：持久化防抖、提交冷却、输入框重新聚焦。

    引擎是单线程协作式的，所有回调都在同一个事件循环中执行。
    """

    @abstractmethod
    def now(self) -> float:
        """单调时钟（秒）。"""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        """delay 秒后执行 callback。"""


class _AsyncioTimer(TimerHandle):
    def __init__(self, handle: asyncio.TimerHandle) -> None:
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()


class AsyncioScheduler(Scheduler):
    """
    基于 asyncio 事件循环的调度器（Web 服务中使用）。

    未显式传入 loop 时，在调度时取当前正在运行的事件循环，
    因此 call_later 必须在协程（async 路由）中调用。
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return _AsyncioTimer(loop.call_later(max(0.0, delay), callback))
