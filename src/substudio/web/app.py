from __future__ import annotations

import os
import shutil
from typing import Any, Dict, Optional

from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel

from substudio.config import SubStudioConfig
from substudio.drafts import DraftStoreError
from substudio.env import load_dotenv_if_present
from substudio.navigation import NavigationResult
from substudio.session import UnknownCueError
from substudio.subtitles import Cue, format_clock, parse_srt
from substudio.utils.logger import error
from .dependencies import (
    SOURCE_FILENAME,
    EditorHandle,
    EditorRegistry,
    cleanup_old_jobs,
    create_job_dir,
    list_jobs,
    write_job_meta,
)


class PositionUpdate(BaseModel):
    position: float
    playing: Optional[bool] = None


class TranslationUpdate(BaseModel):
    text: str


class CommitRequest(BaseModel):
    text: str


class StepRequest(BaseModel):
    delta: Optional[float] = None


class RateRequest(BaseModel):
    rate: float


def _cue_payload(cue: Cue) -> Dict[str, Any]:
    return {
        "id": cue.id,
        "start": cue.start,
        "end": cue.end,
        "clock": format_clock(cue.start),
        "text": cue.source_text,
        "display_text": cue.display_text,
        "translation": cue.translation,
    }


def _state_payload(handle: EditorHandle) -> Dict[str, Any]:
    session = handle.editor.session
    done, total = session.progress() if session is not None else (0, 0)
    return {
        "job_id": handle.job_id,
        "active_cue_id": session.active_cue_id if session is not None else None,
        "progress": {"done": done, "total": total},
        "commands": handle.bridge.drain(),
    }


def _navigation_payload(handle: EditorHandle, result: NavigationResult) -> Dict[str, Any]:
    payload = _state_payload(handle)
    payload["outcome"] = result.outcome.value
    payload["target_cue_id"] = result.cue_id
    return payload


def create_app(config: SubStudioConfig | None = None) -> FastAPI:
    """
    创建并配置 FastAPI 应用。

    - 加载 .env 环境变量；
    - 为每个上传的字幕文件创建任务目录与编辑器实例；
    - 所有路由均为 async，引擎的定时器运行在服务的事件循环上。
    """
    load_dotenv_if_present()
    if config is None:
        config = SubStudioConfig.from_env()

    app = FastAPI(
        title="substudio Web",
        description="字幕翻译编辑器：上传 SRT，边看视频边逐条翻译。",
    )
    registry = EditorRegistry(config)
    app.state.editors = registry

    # 启动时尝试清理一次过期任务目录
    registry.forget(cleanup_old_jobs())

    def _handle_or_404(job_id: str) -> EditorHandle:
        handle = registry.get(job_id)
        if handle is None:
            raise HTTPException(status_code=404, detail="任务不存在或已被清理。")
        return handle

    @app.exception_handler(UnknownCueError)
    async def unknown_cue_handler(request: Request, exc: UnknownCueError) -> JSONResponse:
        return JSONResponse({"detail": f"字幕不存在: {exc.args[0]}"}, status_code=404)

    @app.get("/health", response_class=JSONResponse)
    async def health() -> dict[str, str]:
        """
        简单健康检查，用于部署与监控。
        """
        return {"status": "ok"}

    @app.get("/api/jobs", response_class=JSONResponse)
    async def list_jobs_api() -> JSONResponse:
        return JSONResponse({"jobs": list_jobs(limit=20)})

    @app.post("/api/jobs", response_class=JSONResponse)
    async def create_job_api(file: UploadFile = File(...)) -> JSONResponse:
        """
        上传 SRT 字幕文件，创建编辑任务并返回全部字幕。
        """
        if not file.filename:
            raise HTTPException(status_code=400, detail="未选择要上传的文件。")
        if not file.filename.lower().endswith(".srt"):
            raise HTTPException(status_code=400, detail="仅支持 .srt 字幕文件。")

        # 每次请求前尝试清理过期任务
        registry.forget(cleanup_old_jobs())

        max_mb_env = os.getenv("SUBSTUDIO_WEB_MAX_UPLOAD_MB", "16")
        try:
            max_mb = int(max_mb_env)
        except ValueError:
            max_mb = 16
        raw_bytes = await file.read()
        if len(raw_bytes) > max_mb * 1024 * 1024:
            raise HTTPException(
                status_code=413,
                detail=f"上传文件过大，超过限制 {max_mb} MB。",
            )
        raw_text = raw_bytes.decode("utf-8", errors="replace")
        if not parse_srt(raw_text):
            raise HTTPException(status_code=400, detail="未能从文件中解析出任何字幕。")

        job_id, job_dir = create_job_dir()
        try:
            (job_dir / SOURCE_FILENAME).write_text(raw_text, encoding="utf-8")
            handle = registry.open(job_id, job_dir)
            session = handle.editor.session
            cues = session.cues if session is not None else []
            write_job_meta(job_id, job_dir, file.filename, len(cues))
        except Exception as exc:
            error("创建任务失败: %s", exc)
            shutil.rmtree(job_dir, ignore_errors=True)
            return JSONResponse({"error": str(exc), "job_id": job_id}, status_code=500)

        payload = _state_payload(handle)
        payload["input_name"] = file.filename
        payload["download_url"] = str(app.url_path_for("download_file", job_id=job_id))
        payload["subtitles"] = [_cue_payload(c) for c in cues]
        return JSONResponse(payload)

    @app.get("/api/jobs/{job_id}", response_class=JSONResponse)
    async def get_job_api(job_id: str) -> JSONResponse:
        handle = _handle_or_404(job_id)
        session = handle.editor.session
        payload = _state_payload(handle)
        payload["download_url"] = str(app.url_path_for("download_file", job_id=job_id))
        payload["subtitles"] = [_cue_payload(c) for c in (session.cues if session else [])]
        return JSONResponse(payload)

    @app.post("/api/jobs/{job_id}/position", response_class=JSONResponse)
    async def position_api(job_id: str, body: PositionUpdate) -> JSONResponse:
        """播放器的自然位置更新（timeupdate）。"""
        handle = _handle_or_404(job_id)
        handle.bridge.report(body.position, body.playing)
        handle.editor.on_position_update(body.position)
        return JSONResponse(_state_payload(handle))

    @app.put("/api/jobs/{job_id}/cues/{cue_id}", response_class=JSONResponse)
    async def translation_api(job_id: str, cue_id: int, body: TranslationUpdate) -> JSONResponse:
        handle = _handle_or_404(job_id)
        cue = handle.editor.set_translation(cue_id, body.text)
        payload = _state_payload(handle)
        payload["cue"] = _cue_payload(cue)
        return JSONResponse(payload)

    @app.post("/api/jobs/{job_id}/commit", response_class=JSONResponse)
    async def commit_api(job_id: str, body: CommitRequest) -> JSONResponse:
        """回车：保存当前字幕并前进到下一条。"""
        handle = _handle_or_404(job_id)
        result = handle.editor.commit(body.text)
        return JSONResponse(_navigation_payload(handle, result))

    @app.post("/api/jobs/{job_id}/jump/{direction}", response_class=JSONResponse)
    async def jump_api(job_id: str, direction: str) -> JSONResponse:
        handle = _handle_or_404(job_id)
        if direction == "next":
            result = handle.editor.jump_next()
        elif direction == "prev":
            result = handle.editor.jump_prev()
        else:
            raise HTTPException(status_code=404, detail="不支持的跳转方向。")
        return JSONResponse(_navigation_payload(handle, result))

    @app.post("/api/jobs/{job_id}/select/{cue_id}", response_class=JSONResponse)
    async def select_api(job_id: str, cue_id: int) -> JSONResponse:
        handle = _handle_or_404(job_id)
        result = handle.editor.select(cue_id)
        return JSONResponse(_navigation_payload(handle, result))

    @app.post("/api/jobs/{job_id}/step", response_class=JSONResponse)
    async def step_api(job_id: str, body: StepRequest) -> JSONResponse:
        handle = _handle_or_404(job_id)
        position = handle.editor.step(body.delta)
        payload = _state_payload(handle)
        payload["position"] = position
        return JSONResponse(payload)

    @app.post("/api/jobs/{job_id}/rate", response_class=JSONResponse)
    async def rate_api(job_id: str, body: RateRequest) -> JSONResponse:
        handle = _handle_or_404(job_id)
        try:
            handle.editor.set_rate(body.rate)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return JSONResponse(_state_payload(handle))

    @app.post("/api/jobs/{job_id}/reset", response_class=JSONResponse)
    async def reset_api(job_id: str) -> JSONResponse:
        """清空全部译文草稿，重新载入原始字幕。"""
        handle = _handle_or_404(job_id)
        try:
            handle.editor.reset()
            session = handle.editor.load_file(handle.job_dir / SOURCE_FILENAME)
        except (DraftStoreError, OSError) as exc:
            error("重置任务失败: %s", exc)
            return JSONResponse({"error": str(exc), "job_id": job_id}, status_code=500)
        payload = _state_payload(handle)
        payload["subtitles"] = [_cue_payload(c) for c in session.cues]
        return JSONResponse(payload)

    @app.get("/download/{job_id}", name="download_file")
    async def download_file(job_id: str, bilingual: bool = False) -> FileResponse:
        """
        导出当前译文并下载 SRT 文件。
        """
        handle = _handle_or_404(job_id)
        handle.editor.flush()
        path = handle.editor.write(
            handle.job_dir / config.export_filename,
            bilingual=bilingual or None,
        )
        return FileResponse(
            path,
            media_type="text/plain; charset=utf-8",
            filename=path.name,
        )

    return app


# 供 uvicorn 等 ASGI 服务器直接引用
app = create_app()


def main() -> None:
    """
    本地启动 Web 服务的入口。

    可通过环境变量控制监听地址与端口：
      - SUBSTUDIO_WEB_HOST（默认 127.0.0.1）
      - SUBSTUDIO_WEB_PORT（默认 8000）
    """
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - 提示信息即可
        print("启动失败：未安装 uvicorn。请使用 `pip install substudio[web]` 安装 Web 依赖。")
        raise SystemExit(1) from exc

    host = os.getenv("SUBSTUDIO_WEB_HOST", "127.0.0.1")
    port_str = os.getenv("SUBSTUDIO_WEB_PORT", "8000")
    try:
        port = int(port_str)
    except ValueError:
        port = 8000

    uvicorn.run("substudio.web.app:app", host=host, port=port, reload=False)
