"""逐帧姿态提取：解码 -> 推理 -> 收集结果，单帧资源用完即释放。"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Literal, Optional

import cv2
import numpy as np
from numpy.typing import NDArray

from framepose.core import FrameDecodeError, FramePath, FramePoseError, InferenceError, PoseResult, get_logger

from .model import PoseModel

logger = get_logger(__name__)


@dataclass(slots=True)
class PoseExtraction:
    """提取阶段的产出：成功的结果及被跳过的帧名。"""

    results: List[PoseResult] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


def decode_frame(frame: FramePath) -> NDArray[np.uint8]:
    """按原始尺寸读取 BGR 像素；文件缺失或损坏时抛出 FrameDecodeError。"""

    pixels = cv2.imread(str(frame.path), cv2.IMREAD_COLOR)
    if pixels is None:
        raise FrameDecodeError(f"无法解码帧: {frame.path}", frame=frame.name)
    return pixels


class PoseExtractor:
    """对一组帧依次执行单人姿态推理。模型由调用方加载后传入。"""

    def __init__(
        self,
        model: PoseModel,
        *,
        on_result: Optional[Callable[[PoseResult], None]] = None,
        on_frame_error: Literal["abort", "skip"] = "abort",
    ) -> None:
        self.model = model
        self._on_result = on_result
        self.on_frame_error = on_frame_error

    def extract(self, frames: Iterable[FramePath]) -> PoseExtraction:
        extraction = PoseExtraction()
        for frame in sorted(frames, key=lambda item: item.index):
            try:
                result = self._process(frame)
            except (FrameDecodeError, InferenceError) as exc:
                if self.on_frame_error != "skip":
                    raise
                logger.warning("Skipping %s: %s", frame.name, exc)
                extraction.skipped.append(frame.name)
                continue
            extraction.results.append(result)
            if self._on_result is not None:
                self._on_result(result)
            logger.info("Pose extracted from %s", frame.name)
        return extraction

    def _process(self, frame: FramePath) -> PoseResult:
        pixels = decode_frame(frame)
        try:
            keypoints = self.model.infer(pixels)
        except FramePoseError:
            raise
        except RuntimeError as exc:
            raise InferenceError(f"姿态推理失败 ({frame.name}): {exc}", frame=frame.name) from exc
        finally:
            del pixels
        return PoseResult(frame=frame.name, keypoints=list(keypoints))
