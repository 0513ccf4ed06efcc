"""核心数据结构定义，覆盖关键点、单帧姿态结果等最基本实体。"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence

# 与 COCO / PoseNet 一致的 17 点顺序
KEYPOINT_NAMES: Sequence[str] = (
    "nose",
    "leftEye",
    "rightEye",
    "leftEar",
    "rightEar",
    "leftShoulder",
    "rightShoulder",
    "leftElbow",
    "rightElbow",
    "leftWrist",
    "rightWrist",
    "leftHip",
    "rightHip",
    "leftKnee",
    "rightKnee",
    "leftAnkle",
    "rightAnkle",
)

_FRAME_INDEX_PATTERN = re.compile(r"(\d+)(?=\.[^.]+$)")


@dataclass(slots=True)
class Keypoint:
    """单个关键点：部位名、像素坐标与 [0,1] 置信度。"""

    part: str
    x: float
    y: float
    score: float

    def is_confident(self, threshold: float = 0.5) -> bool:
        """低于阈值的点仍会输出，仅由调用方决定是否使用。"""

        return self.score >= threshold

    def to_dict(self) -> Dict[str, Any]:
        return {
            "part": self.part,
            "position": {"x": self.x, "y": self.y},
            "score": self.score,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Keypoint":
        position = data["position"]
        return cls(
            part=str(data["part"]),
            x=float(position["x"]),
            y=float(position["y"]),
            score=float(data["score"]),
        )


@dataclass(slots=True)
class FramePath:
    """抽帧产物：文件路径及文件名中编码的序号。"""

    path: Path
    index: int

    @property
    def name(self) -> str:
        return self.path.name

    @classmethod
    def from_path(cls, path: str | Path) -> "FramePath":
        frame_path = Path(path)
        return cls(path=frame_path, index=frame_index_from_name(frame_path.name))


@dataclass(slots=True)
class PoseResult:
    """单帧姿态结果，关键点顺序由模型的固定 schema 决定。"""

    frame: str
    keypoints: List[Keypoint] = field(default_factory=list)

    def mean_score(self) -> float:
        if not self.keypoints:
            return 0.0
        return math.fsum(kp.score for kp in self.keypoints) / len(self.keypoints)

    def to_dict(self) -> Dict[str, Any]:
        """辅助序列化：字段与 keypoints.json 输出格式保持一致。"""

        return {
            "frame": self.frame,
            "keypoints": [kp.to_dict() for kp in self.keypoints],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PoseResult":
        return cls(
            frame=str(data["frame"]),
            keypoints=[Keypoint.from_dict(entry) for entry in data.get("keypoints", [])],
        )


def frame_index_from_name(name: str) -> int:
    """从 `frame-0012.jpg` 这类文件名中解析序号。"""

    match = _FRAME_INDEX_PATTERN.search(name)
    if match is None:
        raise ValueError(f"帧文件名缺少序号: {name}")
    return int(match.group(1))
