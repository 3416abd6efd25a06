from __future__ import annotations

import logging
import os
from typing import Any, Optional

_ROOT_NAME = "substudio"
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_logger(name: Optional[str] = None, log_level: Optional[str] = None) -> logging.Logger:
    """
    获取（或创建）一个已配置的 logger。

    - 所有 logger 均挂在 "substudio" 之下，处理器只挂在根 logger 上，避免重复输出；
    - 日志级别默认读取环境变量 SUBSTUDIO_LOG_LEVEL（默认 INFO）。
    """
    root = logging.getLogger(_ROOT_NAME)
    if not root.handlers:
        if log_level is None:
            log_level = os.getenv("SUBSTUDIO_LOG_LEVEL", "INFO")
        level = getattr(logging, log_level.upper(), logging.INFO)
        root.setLevel(level)
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)

    if not name or name == _ROOT_NAME:
        return root
    if name.startswith(_ROOT_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_NAME}.{name}")


def debug(msg: str, *args: Any) -> None:
    get_logger().debug(msg, *args)


def info(msg: str, *args: Any) -> None:
    get_logger().info(msg, *args)


def warning(msg: str, *args: Any) -> None:
    get_logger().warning(msg, *args)


def error(msg: str, *args: Any) -> None:
    get_logger().error(msg, *args)
