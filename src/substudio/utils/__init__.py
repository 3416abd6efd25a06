"""
工具模块

目前只提供日志功能。
"""
from .logger import debug, error, get_logger, info, warning

__all__ = [
    "debug",
    "error",
    "get_logger",
    "info",
    "warning",
]
