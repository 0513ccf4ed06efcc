"""按固定 FPS 抽帧：调用 ffmpeg-python 将视频拆成顺序编号的 JPEG。"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Protocol

import ffmpeg

from framepose.core import FramePath, TranscodeError, get_logger

logger = get_logger(__name__)

DEFAULT_FRAME_PATTERN = "frame-%04d.jpg"
_PRINTF_INT = re.compile(r"%0?\d*d")


class VideoSampler(Protocol):
    """抽帧接口，便于在测试中注入假实现。"""

    def sample(self, video_path: Path, rate: float) -> List[FramePath]:
        """返回按序号升序排列的帧文件。"""


def build_sampling_stream(video_path: str | Path, output_pattern: str | Path, rate: float):
    """构造 `-vf fps=<rate>` 的 ffmpeg 输出流，覆盖已存在的同名帧。"""

    if rate <= 0:
        raise ValueError("rate must be positive")
    stream = ffmpeg.input(str(video_path)).output(str(output_pattern), vf=f"fps={rate:g}")
    return ffmpeg.overwrite_output(stream)


def pattern_to_glob(frame_pattern: str) -> str:
    """`frame-%04d.jpg` -> `frame-*.jpg`。"""

    if not _PRINTF_INT.search(frame_pattern):
        raise ValueError(f"帧文件模板缺少整数占位符: {frame_pattern}")
    return _PRINTF_INT.sub("*", frame_pattern, count=1)


def list_frames(frames_dir: Path, frame_pattern: str = DEFAULT_FRAME_PATTERN) -> List[FramePath]:
    """列出目录下符合模板的帧，按文件名中的数字序号排序。"""

    frames: List[FramePath] = []
    for path in frames_dir.glob(pattern_to_glob(frame_pattern)):
        if not path.is_file():
            continue
        try:
            frames.append(FramePath.from_path(path))
        except ValueError:
            continue
    frames.sort(key=lambda frame: frame.index)
    return frames


class FfmpegSampler:
    """ffmpeg 抽帧实现，每次运行只调用一次外部进程。"""

    def __init__(
        self,
        frames_dir: str | Path,
        *,
        frame_pattern: str = DEFAULT_FRAME_PATTERN,
        clear_stale: bool = True,
        ffmpeg_bin: str = "ffmpeg",
    ) -> None:
        self.frames_dir = Path(frames_dir)
        self.frame_pattern = frame_pattern
        self.clear_stale = clear_stale
        self.ffmpeg_bin = ffmpeg_bin
        pattern_to_glob(frame_pattern)

    def sample(self, video_path: Path, rate: float) -> List[FramePath]:
        stream = build_sampling_stream(video_path, self.frames_dir / self.frame_pattern, rate)
        self.frames_dir.mkdir(parents=True, exist_ok=True)
        if self.clear_stale:
            self._clear_stale_frames()

        logger.info("Started FFmpeg: %s", " ".join(ffmpeg.compile(stream, cmd=self.ffmpeg_bin)))
        try:
            ffmpeg.run(stream, cmd=self.ffmpeg_bin, capture_stdout=True, capture_stderr=True, quiet=True)
        except ffmpeg.Error as exc:
            stderr = exc.stderr.decode("utf-8", errors="replace") if exc.stderr else ""
            raise TranscodeError(f"ffmpeg 抽帧失败: {video_path}", stderr=stderr) from exc
        except FileNotFoundError as exc:
            raise TranscodeError(f"未找到 ffmpeg 可执行文件: {self.ffmpeg_bin}") from exc

        frames = list_frames(self.frames_dir, self.frame_pattern)
        logger.info("Frames extracted: %d at %.3g fps", len(frames), rate)
        return frames

    def _clear_stale_frames(self) -> None:
        stale = list_frames(self.frames_dir, self.frame_pattern)
        for frame in stale:
            frame.path.unlink(missing_ok=True)
        if stale:
            logger.debug("Removed %d stale frames from %s", len(stale), self.frames_dir)
