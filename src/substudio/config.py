from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Optional


def _env_ms(name: str, default_seconds: float) -> float:
    value = os.getenv(name, "").strip()
    if not value:
        return default_seconds
    try:
        ms = float(value)
    except ValueError:
        return default_seconds
    return ms / 1000.0 if ms >= 0 else default_seconds


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name, "").strip().lower()
    if not value:
        return default
    return value not in {"0", "false", "no", "off"}


@dataclass
class SubStudioConfig:
    """
    字幕编辑引擎的核心配置。

    所有时长字段单位均为秒；环境变量中的时长（*_MS）以毫秒填写。
    """

    # 停止输入多久后把译文写入草稿
    persist_debounce: float = 0.4
    # 程序化 seek 之后忽略自然位置更新的时长
    suppression_window: float = 0.5
    # 回车提交后的冷却时间，吸收按键连发
    commit_cooldown: float = 0.3
    # 跳到下一条后等待输入框重新挂载再聚焦
    refocus_delay: float = 0.05
    # "上一条"在当前字幕内已播放超过该秒数时，改为回到当前字幕开头
    restart_threshold: float = 1.0
    seek_step: float = 5.0
    draft_store: str = "json"
    draft_path: Optional[Path] = None
    bilingual_export: bool = False
    export_filename: str = "translated_subtitles.srt"

    @classmethod
    def from_env(
        cls,
        persist_debounce: float | None = None,
        suppression_window: float | None = None,
        commit_cooldown: float | None = None,
        refocus_delay: float | None = None,
        restart_threshold: float | None = None,
        seek_step: float | None = None,
        draft_store: str | None = None,
        draft_path: Optional[str | Path] = None,
        bilingual_export: bool | None = None,
        export_filename: str | None = None,
    ) -> "SubStudioConfig":
        """显式参数优先，其次读取 SUBSTUDIO_* 环境变量，格式错误时回退默认值。"""
        defaults = cls()

        if draft_path is None:
            env_path = os.getenv("SUBSTUDIO_DRAFT_PATH", "").strip()
            draft_path_obj = Path(env_path).expanduser().resolve() if env_path else None
        else:
            draft_path_obj = Path(draft_path).expanduser().resolve()

        store_value = draft_store or os.getenv("SUBSTUDIO_DRAFT_STORE", "").strip().lower()
        if store_value not in {"json", "memory"}:
            store_value = defaults.draft_store

        return cls(
            persist_debounce=persist_debounce
            if persist_debounce is not None
            else _env_ms("SUBSTUDIO_PERSIST_DEBOUNCE_MS", defaults.persist_debounce),
            suppression_window=suppression_window
            if suppression_window is not None
            else _env_ms("SUBSTUDIO_SUPPRESSION_WINDOW_MS", defaults.suppression_window),
            commit_cooldown=commit_cooldown
            if commit_cooldown is not None
            else _env_ms("SUBSTUDIO_COMMIT_COOLDOWN_MS", defaults.commit_cooldown),
            refocus_delay=refocus_delay
            if refocus_delay is not None
            else _env_ms("SUBSTUDIO_REFOCUS_DELAY_MS", defaults.refocus_delay),
            restart_threshold=restart_threshold
            if restart_threshold is not None
            else _env_float("SUBSTUDIO_RESTART_THRESHOLD", defaults.restart_threshold),
            seek_step=seek_step
            if seek_step is not None
            else _env_float("SUBSTUDIO_SEEK_STEP", defaults.seek_step),
            draft_store=store_value,
            draft_path=draft_path_obj,
            bilingual_export=bilingual_export
            if bilingual_export is not None
            else _env_bool("SUBSTUDIO_BILINGUAL_EXPORT", defaults.bilingual_export),
            export_filename=export_filename or defaults.export_filename,
        )
