"""流水线异常层级，所有阶段错误都汇总到顶层 CLI 统一处理。"""

from __future__ import annotations

from typing import Optional


class FramePoseError(RuntimeError):
    """所有流水线错误的基类。"""


class FetchError(FramePoseError):
    """下载失败：非 200 状态码或网络异常。"""

    def __init__(self, message: str, *, url: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class TranscodeError(FramePoseError):
    """ffmpeg 抽帧失败。"""

    def __init__(self, message: str, *, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


class FrameDecodeError(FramePoseError):
    """帧图片无法解码。"""

    def __init__(self, message: str, *, frame: str) -> None:
        super().__init__(message)
        self.frame = frame


class InferenceError(FramePoseError):
    """姿态模型推理失败。"""

    def __init__(self, message: str, *, frame: str) -> None:
        super().__init__(message)
        self.frame = frame


class ModelLoadError(FramePoseError):
    """姿态模型初始化失败：设备名非法、权重下载失败等。"""
