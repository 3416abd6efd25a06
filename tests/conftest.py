from __future__ import annotations

import heapq
import itertools
from typing import Any, Callable, List, Tuple

import pytest

from substudio.config import SubStudioConfig
from substudio.drafts import MemoryDraftStore
from substudio.editor import SubtitleEditor
from substudio.playback import Player, Scheduler, TimerHandle


class _ManualTimer(TimerHandle):
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(Scheduler):
    """虚拟时钟：只有调用 advance() 时才推进时间并触发到期回调。"""

    def __init__(self) -> None:
        self._now = 0.0
        self._seq = itertools.count()
        self._queue: List[Tuple[float, int, _ManualTimer, Callable[[], Any]]] = []

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        timer = _ManualTimer()
        heapq.heappush(self._queue, (self._now + max(0.0, delay), next(self._seq), timer, callback))
        return timer

    @property
    def pending(self) -> int:
        return sum(1 for _, _, timer, _ in self._queue if not timer.cancelled)

    def advance(self, seconds: float) -> None:
        target = self._now + seconds
        while self._queue and self._queue[0][0] <= target:
            when, _, timer, callback = heapq.heappop(self._queue)
            self._now = when
            if not timer.cancelled:
                callback()
        self._now = target


class FakePlayer(Player):
    def __init__(self) -> None:
        self.position = 0.0
        self.playing = False
        self.rate = 1.0
        self.seeks: List[float] = []
        self.pauses = 0

    @property
    def current_position(self) -> float:
        return self.position

    @property
    def is_playing(self) -> bool:
        return self.playing

    def seek(self, position: float) -> None:
        self.seeks.append(position)
        self.position = position

    def pause(self) -> None:
        self.pauses += 1
        self.playing = False

    def set_rate(self, rate: float) -> None:
        self.rate = rate


class RecordingStore(MemoryDraftStore):
    def __init__(self) -> None:
        super().__init__()
        self.writes: List[Tuple[int, str]] = []

    def put(self, cue) -> None:
        self.writes.append((cue.id, cue.translation))
        super().put(cue)


THREE_CUES = """1
00:00:00,000 --> 00:00:02,000
First

2
00:00:02,000 --> 00:00:04,000
Second

3
00:00:04,000 --> 00:00:06,000
Third
"""


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def player() -> FakePlayer:
    return FakePlayer()


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def config() -> SubStudioConfig:
    return SubStudioConfig(
        persist_debounce=0.4,
        suppression_window=0.5,
        commit_cooldown=0.3,
        refocus_delay=0.05,
    )


@pytest.fixture
def focused() -> List[int]:
    return []


@pytest.fixture
def editor(config, player, scheduler, store, focused) -> SubtitleEditor:
    return SubtitleEditor(config, player, scheduler, store=store, on_focus=focused.append)
