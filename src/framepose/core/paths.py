"""路径工具：集中处理工作目录及各阶段的交接文件。"""

from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import unquote, urlparse


WORK_DIR_ENV_KEY = "FRAMEPOSE_WORK_DIR"
DEFAULT_VIDEO_SUFFIX = ".mp4"


def resolve_work_dir(default: Path | None = None) -> Path:
    """根据环境变量或默认值确定工作目录。"""

    env_value = os.getenv(WORK_DIR_ENV_KEY)
    if env_value:
        return Path(env_value).expanduser().resolve()
    if default is not None:
        return default.expanduser().resolve()
    # 默认回退到仓库内的 workspace 目录
    return Path(__file__).resolve().parents[3] / "workspace"


def video_filename_for_url(url: str, stem: str = "video") -> str:
    """按 URL 路径后缀生成本地视频文件名，如 `.mov` -> `video.mov`。"""

    path = unquote(urlparse(url).path)
    suffix = Path(path).suffix.lower()
    if not suffix or len(suffix) > 6:
        suffix = DEFAULT_VIDEO_SUFFIX
    return f"{stem}{suffix}"
