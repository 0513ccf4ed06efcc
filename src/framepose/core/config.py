"""配置加载工具，集中管理仓内/环境参数。"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable, Dict, Literal, Mapping, MutableMapping, Optional, Sequence, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .paths import WORK_DIR_ENV_KEY, resolve_work_dir, video_filename_for_url

CONFIG_ENV_KEY = "FRAMEPOSE_CONFIG_PATH"
DEFAULT_VIDEO_URL = (
    "https://thravos.nyc3.digitaloceanspaces.com/feed/"
    "fb87d5b0-00d6-11f0-8796-b313b7f9e6d0-tony%20movie.mov"
)


class FetchConfig(BaseModel):
    """下载阶段参数；timeout 为 None 时不限时。"""

    url: str = DEFAULT_VIDEO_URL
    timeout_seconds: Optional[float] = 60.0
    chunk_size: int = Field(default=1024 * 1024, gt=0)
    video_filename: Optional[str] = None

    def resolved_filename(self) -> str:
        return self.video_filename or video_filename_for_url(self.url)


class SamplingConfig(BaseModel):
    """抽帧参数，fps 即每秒采样的帧数。"""

    fps: float = Field(default=10.0, gt=0)
    frames_dirname: str = "frames"
    frame_pattern: str = "frame-%04d.jpg"
    clear_stale_frames: bool = True


class PoseConfig(BaseModel):
    """姿态模型参数，默认值与单人 PoseNet 的调用方式一致。"""

    device: str = "cpu"
    max_detections: int = Field(default=5, ge=1)
    score_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    flip_horizontal: bool = False
    on_frame_error: Literal["abort", "skip"] = "abort"


class OutputConfig(BaseModel):
    """结果文件参数。"""

    keypoints_filename: str = "keypoints.json"
    checkpoint: bool = True

    @property
    def checkpoint_filename(self) -> str:
        return f"{Path(self.keypoints_filename).stem}.partial.jsonl"


class PipelineConfig(BaseModel):
    """聚合各阶段配置，并包含共享路径。"""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    fetch: FetchConfig = Field(default_factory=FetchConfig)
    sampling: SamplingConfig = Field(default_factory=SamplingConfig)
    pose: PoseConfig = Field(default_factory=PoseConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    work_dir: Path = Field(default_factory=resolve_work_dir)
    raw: Dict[str, Any] = Field(default_factory=dict, description="原始配置字典，便于调试。")

    @field_validator("work_dir")
    @classmethod
    def _expand_work_dir(cls, value: Path) -> Path:
        return Path(value).expanduser().resolve()

    def model_post_init(self, __context: Any) -> None:  # type: ignore[override]
        # 保留原始配置便于后续 diff/日志输出
        if not self.raw:
            self.raw = self.to_raw_dict()

    def to_raw_dict(self) -> Dict[str, Any]:
        """导出基础 dict，供日志输出使用。"""

        return {
            "fetch": self.fetch.model_dump(),
            "sampling": self.sampling.model_dump(),
            "pose": self.pose.model_dump(),
            "output": self.output.model_dump(),
            "work_dir": str(self.work_dir),
        }

    @property
    def video_path(self) -> Path:
        return self.work_dir / self.fetch.resolved_filename()

    @property
    def frames_dir(self) -> Path:
        return self.work_dir / self.sampling.frames_dirname

    @property
    def keypoints_path(self) -> Path:
        return self.work_dir / self.output.keypoints_filename

    @property
    def checkpoint_path(self) -> Optional[Path]:
        if not self.output.checkpoint:
            return None
        return self.work_dir / self.output.checkpoint_filename


def _default_config_path() -> Path:
    return Path(__file__).resolve().parents[3] / "configs" / "baseline.yaml"


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
        if not isinstance(data, dict):
            raise ValueError(f"配置文件 {path} 内容需为字典")
        return data


ENV_OVERRIDE_MAP: Dict[str, Tuple[Sequence[str], Callable[[str], Any]]] = {
    "FRAMEPOSE_VIDEO_URL": (("fetch", "url"), str),
    "FRAMEPOSE_SAMPLE_FPS": (("sampling", "fps"), float),
    "FRAMEPOSE_DEVICE": (("pose", "device"), str),
}


def _apply_env_overrides(data: MutableMapping[str, Any], env: Mapping[str, str]) -> None:
    for env_key, (path, caster) in ENV_OVERRIDE_MAP.items():
        if env_key in env:
            _set_nested_value(data, path, caster(env[env_key]))


def _set_nested_value(target: MutableMapping[str, Any], path: Sequence[str], value: Any) -> None:
    cursor: MutableMapping[str, Any] = target
    *parents, last = path
    for key in parents:
        if key not in cursor or not isinstance(cursor[key], MutableMapping):
            cursor[key] = {}
        cursor = cursor[key]  # type: ignore[assignment]
    cursor[last] = value


def load_config(path: str | Path | None = None, *, env: Mapping[str, str] | None = None) -> PipelineConfig:
    """加载配置：优先显式路径，其次环境变量，最后回退默认 baseline。"""

    env_map = os.environ if env is None else env
    config_path = path or env_map.get(CONFIG_ENV_KEY)
    target_path = Path(config_path).expanduser() if config_path else _default_config_path()
    data = _load_yaml(target_path)
    _apply_env_overrides(data, env_map)

    work_dir_override = env_map.get(WORK_DIR_ENV_KEY)
    if work_dir_override:
        data["work_dir"] = str(Path(work_dir_override).expanduser())

    return PipelineConfig.model_validate({**data, "raw": data})
