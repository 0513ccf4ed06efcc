"""核心模块入口，聚合数据模型、异常与配置加载工具供各阶段复用。"""

from .datamodels import KEYPOINT_NAMES, FramePath, Keypoint, PoseResult
from .config import PipelineConfig, load_config
from .errors import FetchError, FrameDecodeError, FramePoseError, InferenceError, ModelLoadError, TranscodeError
from .logging_utils import get_logger, setup_logging
from .paths import resolve_work_dir

__all__ = [
    "KEYPOINT_NAMES",
    "FramePath",
    "Keypoint",
    "PoseResult",
    "PipelineConfig",
    "load_config",
    "FramePoseError",
    "FetchError",
    "TranscodeError",
    "FrameDecodeError",
    "InferenceError",
    "ModelLoadError",
    "get_logger",
    "setup_logging",
    "resolve_work_dir",
]
