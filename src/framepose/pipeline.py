"""流水线编排：下载 -> 抽帧 -> 姿态提取 -> 写结果，严格串行。"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List

import httpx

from framepose.core import PipelineConfig, get_logger
from framepose.core.config import PoseConfig
from framepose.fetch import download_video
from framepose.output import ResultWriter
from framepose.pose import PoseExtractor, PoseModel, create_pose_model
from framepose.sample import FfmpegSampler, VideoSampler

logger = get_logger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    DOWNLOADING = "downloading"
    EXTRACTING_FRAMES = "extracting_frames"
    DETECTING_POSES = "detecting_poses"
    WRITING_RESULTS = "writing_results"
    DONE = "done"
    FAILED = "failed"


@dataclass(slots=True)
class PipelineReport:
    """单次运行的汇总信息，供 CLI 打印。"""

    video_path: Path
    frame_count: int
    result_count: int
    output_path: Path
    skipped_frames: List[str] = field(default_factory=list)


class PosePipeline:
    """单次运行的流水线；失败后不可恢复，需要新建实例从 IDLE 重跑。"""

    def __init__(
        self,
        config: PipelineConfig,
        *,
        sampler: VideoSampler | None = None,
        model_loader: Callable[[PoseConfig], PoseModel] = create_pose_model,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.config = config
        self.sampler = sampler or FfmpegSampler(
            config.frames_dir,
            frame_pattern=config.sampling.frame_pattern,
            clear_stale=config.sampling.clear_stale_frames,
        )
        self.model_loader = model_loader
        self.http_client = http_client
        self.state = PipelineState.IDLE

    def _enter(self, state: PipelineState) -> None:
        logger.debug("Pipeline state %s -> %s", self.state.value, state.value)
        self.state = state

    def run(self) -> PipelineReport:
        if self.state is not PipelineState.IDLE:
            raise RuntimeError(f"pipeline already ran (state={self.state.value})")

        cfg = self.config
        try:
            self._enter(PipelineState.DOWNLOADING)
            logger.info("Downloading video from %s", cfg.fetch.url)
            video_path = download_video(
                cfg.fetch.url,
                cfg.video_path,
                config=cfg.fetch,
                client=self.http_client,
            )

            self._enter(PipelineState.EXTRACTING_FRAMES)
            logger.info("Extracting frames at %.3g fps into %s", cfg.sampling.fps, cfg.frames_dir)
            frames = self.sampler.sample(video_path, cfg.sampling.fps)

            self._enter(PipelineState.DETECTING_POSES)
            logger.info("Running pose detection on %d frames", len(frames))
            writer = ResultWriter(cfg.keypoints_path, checkpoint_path=cfg.checkpoint_path)
            model = self.model_loader(cfg.pose)
            extractor = PoseExtractor(
                model,
                on_result=writer.append,
                on_frame_error=cfg.pose.on_frame_error,
            )
            extraction = extractor.extract(frames)

            self._enter(PipelineState.WRITING_RESULTS)
            output_path = writer.write(extraction.results)
        except BaseException:
            failed_in = self.state
            self._enter(PipelineState.FAILED)
            logger.debug("Pipeline failed during %s", failed_in.value)
            raise

        self._enter(PipelineState.DONE)
        logger.info("Done.")
        return PipelineReport(
            video_path=video_path,
            frame_count=len(frames),
            result_count=len(extraction.results),
            output_path=output_path,
            skipped_frames=list(extraction.skipped),
        )


def run_pipeline(config: PipelineConfig, **kwargs) -> PipelineReport:
    """便捷入口：构建并执行一次流水线。"""

    return PosePipeline(config, **kwargs).run()
