"""日志配置：流水线只在阶段边界与逐帧处输出进度。"""

from __future__ import annotations

import logging
from typing import Optional

# 第三方库的逐请求日志会淹没阶段进度，统一压到 WARNING
_NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: str = "INFO") -> None:
    """CLI 入口调用：设置 framepose 日志级别，并压低 httpx/httpcore 的请求日志。"""

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """各阶段模块以 `get_logger(__name__)` 获取 logger，缺省归到 framepose。"""

    return logging.getLogger(name or "framepose")
