"""
substudio Web 子模块

提供基于 FastAPI 的字幕翻译编辑 API。
"""

from __future__ import annotations

from .app import app, create_app, main

__all__ = ["app", "create_app", "main"]
