"""Step3: 姿态提取模块，聚合模型后端与逐帧推理逻辑。"""

from .extractor import PoseExtraction, PoseExtractor, decode_frame
from .model import KeypointRCNNPoseModel, PoseModel, create_pose_model, empty_pose, frame_to_tensor, select_single_pose

__all__ = [
    "PoseExtraction",
    "PoseExtractor",
    "decode_frame",
    "PoseModel",
    "KeypointRCNNPoseModel",
    "create_pose_model",
    "empty_pose",
    "frame_to_tensor",
    "select_single_pose",
]
