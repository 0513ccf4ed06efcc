"""姿态模型后端：定义推理协议，并封装 torchvision Keypoint R-CNN。"""

from __future__ import annotations

from typing import List, Mapping, Protocol

import cv2
import numpy as np
import torch
from numpy.typing import NDArray

from framepose.core import KEYPOINT_NAMES, Keypoint, ModelLoadError, get_logger
from framepose.core.config import PoseConfig

logger = get_logger(__name__)


class PoseModel(Protocol):
    """单人姿态推理接口，保持简单便于注入假模型。"""

    model_name: str

    def infer(self, frame: NDArray[np.uint8]) -> List[Keypoint]:
        """输入 BGR 像素缓冲，返回固定顺序的关键点列表。"""


def frame_to_tensor(frame: NDArray[np.uint8], device: torch.device | str = "cpu") -> torch.Tensor:
    """BGR HxWx3 uint8 -> RGB CxHxW float32，取值 [0,1]。"""

    if frame.ndim != 3 or frame.shape[2] != 3:
        raise ValueError(f"expected HxWx3 frame, got shape {frame.shape}")
    rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
    tensor = torch.from_numpy(rgb).permute(2, 0, 1).float().div_(255.0)
    return tensor.to(device)


def empty_pose() -> List[Keypoint]:
    """未检测到人时返回全零姿态，保证每帧 schema 一致。"""

    return [Keypoint(part=name, x=0.0, y=0.0, score=0.0) for name in KEYPOINT_NAMES]


def select_single_pose(
    output: Mapping[str, torch.Tensor],
    *,
    image_width: int | None = None,
    flip_horizontal: bool = False,
) -> List[Keypoint]:
    """从检测结果中取得分最高的一个人，关键点分数经 sigmoid 映射到 [0,1]。"""

    scores = output["scores"]
    if scores.numel() == 0:
        return empty_pose()

    best = int(torch.argmax(scores).item())
    coords = output["keypoints"][best].detach().to("cpu", dtype=torch.float32)
    kp_scores = torch.sigmoid(output["keypoints_scores"][best].detach().to("cpu", dtype=torch.float32))
    coords = torch.nan_to_num(coords, nan=0.0, posinf=0.0, neginf=0.0)
    kp_scores = torch.nan_to_num(kp_scores, nan=0.0).clamp_(0.0, 1.0)

    keypoints: List[Keypoint] = []
    for idx, name in enumerate(KEYPOINT_NAMES):
        x = float(coords[idx, 0])
        if flip_horizontal and image_width is not None:
            x = float(image_width) - x
        keypoints.append(Keypoint(part=name, x=x, y=float(coords[idx, 1]), score=float(kp_scores[idx])))
    return keypoints


class KeypointRCNNPoseModel:
    """torchvision Keypoint R-CNN (COCO 17 点) 封装，构造时加载一次权重。"""

    model_name = "torchvision::keypointrcnn_resnet50_fpn"

    def __init__(self, config: PoseConfig) -> None:
        from torchvision.models.detection import KeypointRCNN_ResNet50_FPN_Weights, keypointrcnn_resnet50_fpn

        self.flip_horizontal = config.flip_horizontal
        self.score_threshold = config.score_threshold
        try:
            self.device = torch.device(config.device)
            logger.info("Loading pose model %s on %s", self.model_name, self.device)
            self.model = keypointrcnn_resnet50_fpn(
                weights=KeypointRCNN_ResNet50_FPN_Weights.DEFAULT,
                box_detections_per_img=config.max_detections,
            )
            self.model.to(self.device).eval()
        except (RuntimeError, OSError) as exc:
            raise ModelLoadError(f"无法加载姿态模型 {self.model_name} ({config.device}): {exc}") from exc

    def _forward(self, frame: NDArray[np.uint8]) -> Mapping[str, torch.Tensor]:
        # 输入张量只在本函数内持有引用，返回前释放
        tensor = frame_to_tensor(frame, self.device)
        try:
            with torch.inference_mode():
                return self.model([tensor])[0]
        finally:
            del tensor
            if self.device.type == "cuda":
                torch.cuda.empty_cache()

    def infer(self, frame: NDArray[np.uint8]) -> List[Keypoint]:
        keypoints = select_single_pose(
            self._forward(frame),
            image_width=frame.shape[1],
            flip_horizontal=self.flip_horizontal,
        )
        low = sum(1 for kp in keypoints if not kp.is_confident(self.score_threshold))
        if low:
            logger.debug("%d/%d keypoints below %.2f", low, len(keypoints), self.score_threshold)
        return keypoints


def create_pose_model(config: PoseConfig) -> PoseModel:
    """根据配置创建姿态模型；模型初始化昂贵，每次运行只应调用一次。"""

    return KeypointRCNNPoseModel(config)
