"""Step2: 抽帧模块入口。"""

from .sampler import FfmpegSampler, VideoSampler, build_sampling_stream, list_frames

__all__ = [
    "FfmpegSampler",
    "VideoSampler",
    "build_sampling_stream",
    "list_frames",
]
