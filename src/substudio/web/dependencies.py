"""
Web 层与字幕编辑引擎之间的集成点。

负责任务目录管理（上传的字幕、草稿、元信息）以及每个任务对应的编辑器实例。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple, Dict, Any, Optional
from pathlib import Path
import os
import uuid
import shutil
import time
import json
from datetime import datetime

from substudio.config import SubStudioConfig
from substudio.drafts import JsonDraftStore
from substudio.editor import SubtitleEditor
from substudio.playback import AsyncioScheduler
from substudio.utils.logger import warning

from .bridge import BrowserBridge

SOURCE_FILENAME = "source.srt"
DRAFTS_FILENAME = "drafts.json"
META_FILENAME = "job.json"


def get_web_jobs_root() -> Path:
    """
    获取 Web 任务工作目录根路径。

    默认使用当前工作目录下的 exports/web_jobs，可通过
    SUBSTUDIO_WEB_JOBS_DIR 环境变量覆盖。
    """
    root_env = os.getenv("SUBSTUDIO_WEB_JOBS_DIR")
    if root_env:
        root = Path(root_env).expanduser().resolve()
    else:
        root = Path.cwd() / "exports" / "web_jobs"
    root.mkdir(parents=True, exist_ok=True)
    return root


def get_job_dir(job_id: str) -> Optional[Path]:
    # job_id 只允许是 create_job_dir 生成的十六进制串，防止路径穿越
    if not job_id or not all(ch in "0123456789abcdef" for ch in job_id):
        return None
    job_dir = get_web_jobs_root() / job_id
    return job_dir if job_dir.is_dir() else None


def create_job_dir() -> Tuple[str, Path]:
    """
    创建一个新的任务目录并返回 (job_id, job_dir)。
    """
    jobs_root = get_web_jobs_root()
    job_id = uuid.uuid4().hex[:8]
    job_dir = jobs_root / job_id
    job_dir.mkdir(parents=True, exist_ok=False)
    return job_id, job_dir


def cleanup_old_jobs(ttl_hours: float | None = None) -> List[str]:
    """
    清理超过 TTL 的历史任务目录，返回被删除的 job_id 列表。

    - 默认 TTL 通过环境变量 SUBSTUDIO_WEB_JOBS_TTL_HOURS 控制（小时，默认 12）；
    - 设置为 0 或负数时不执行清理。
    """
    if ttl_hours is None:
        ttl_env = os.getenv("SUBSTUDIO_WEB_JOBS_TTL_HOURS", "12")
        try:
            ttl_hours = float(ttl_env)
        except ValueError:
            ttl_hours = 12.0

    if ttl_hours <= 0:
        return []

    jobs_root = get_web_jobs_root()
    now = time.time()
    ttl_seconds = ttl_hours * 3600.0
    removed: List[str] = []

    for entry in jobs_root.iterdir():
        if not entry.is_dir():
            continue
        try:
            mtime = entry.stat().st_mtime
        except OSError:
            continue
        if now - mtime > ttl_seconds:
            shutil.rmtree(entry, ignore_errors=True)
            removed.append(entry.name)
    return removed


def write_job_meta(job_id: str, job_dir: Path, input_name: str, cue_count: int) -> None:
    """
    将任务的基本元信息写入 job.json，便于首页展示任务列表。
    """
    meta_path = job_dir / META_FILENAME
    created_at = datetime.now().isoformat(timespec="seconds")
    data: Dict[str, Any] = {
        "job_id": job_id,
        "input_name": input_name,
        "created_at": created_at,
        "cue_count": cue_count,
    }
    try:
        meta_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    except OSError as exc:
        # 元信息写入失败不应影响主流程
        warning("写入任务元信息失败: %s", exc)


def load_job_meta(job_dir: Path) -> Dict[str, Any] | None:
    """
    从任务目录读取 job.json，如果不存在或损坏则返回 None。
    """
    meta_path = job_dir / META_FILENAME
    if not meta_path.is_file():
        return None
    try:
        text = meta_path.read_text(encoding="utf-8")
        data = json.loads(text)
    except (OSError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def list_jobs(limit: int = 20) -> List[Dict[str, Any]]:
    """
    列出最近的若干任务（按创建时间倒序）。
    """
    jobs_root = get_web_jobs_root()
    records: List[Dict[str, Any]] = []
    for entry in jobs_root.iterdir():
        if not entry.is_dir():
            continue
        meta = load_job_meta(entry)
        if not meta:
            continue
        records.append(
            {
                "job_id": str(meta.get("job_id") or entry.name),
                "input_name": meta.get("input_name") or "",
                "created_at": meta.get("created_at") or "",
                "cue_count": meta.get("cue_count"),
            }
        )
    # 按 created_at 字符串倒序排序（ISO 格式可直接比较）
    records.sort(key=lambda r: r.get("created_at") or "", reverse=True)
    if limit > 0:
        records = records[:limit]
    return records


@dataclass
class EditorHandle:
    job_id: str
    job_dir: Path
    editor: SubtitleEditor
    bridge: BrowserBridge


class EditorRegistry:
    """
    每个任务一个编辑器实例，保存在应用状态中。

    进程重启后首次访问任务时，会从任务目录下的原始字幕与草稿重新打开。
    """

    def __init__(self, config: SubStudioConfig) -> None:
        self.config = config
        self._handles: Dict[str, EditorHandle] = {}

    def open(self, job_id: str, job_dir: Path) -> EditorHandle:
        bridge = BrowserBridge()
        editor = SubtitleEditor(
            self.config,
            bridge,
            AsyncioScheduler(),
            store=JsonDraftStore(job_dir / DRAFTS_FILENAME),
            on_focus=bridge.focus,
        )
        editor.load_file(job_dir / SOURCE_FILENAME)
        handle = EditorHandle(job_id=job_id, job_dir=job_dir, editor=editor, bridge=bridge)
        self._handles[job_id] = handle
        return handle

    def get(self, job_id: str) -> Optional[EditorHandle]:
        handle = self._handles.get(job_id)
        if handle is not None:
            return handle
        job_dir = get_job_dir(job_id)
        if job_dir is None or not (job_dir / SOURCE_FILENAME).is_file():
            return None
        return self.open(job_id, job_dir)

    def forget(self, job_ids: List[str]) -> None:
        for job_id in job_ids:
            handle = self._handles.pop(job_id, None)
            if handle is not None and handle.editor.session is not None:
                handle.editor.session.close(flush=False)
