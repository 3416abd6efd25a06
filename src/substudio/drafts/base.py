from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from substudio.subtitles import Cue


class DraftStoreError(RuntimeError):
    """草稿存储读写失败。"""


class DraftStore(ABC):
    """
    按字幕 id 存取草稿的本地持久化接口。

    编辑会话内存中的译文才是权威数据，存储只是其写后缓存：
    写入失败由调用方吞掉并在下一次编辑时重试，不会阻塞编辑。
    """

    @abstractmethod
    def get(self, cue_id: int) -> Optional[Cue]:
        """读取单条草稿，不存在时返回 None。"""

    @abstractmethod
    def put(self, cue: Cue) -> None:
        """写入（覆盖）单条草稿。"""

    @abstractmethod
    def get_all(self) -> List[Cue]:
        """按 id 升序返回全部草稿。"""

    @abstractmethod
    def replace_all(self, cues: Iterable[Cue]) -> None:
        """清空后整体写入，用于加载新文件时重建草稿。"""

    @abstractmethod
    def clear(self) -> None:
        """删除全部草稿。"""
