"""抽帧测试：不依赖真实 ffmpeg，替换 ffmpeg.run 以模拟外部进程。"""

from pathlib import Path

import ffmpeg
import pytest

from framepose.core import TranscodeError
from framepose.sample import FfmpegSampler, build_sampling_stream, list_frames
from framepose.sample.sampler import pattern_to_glob


def _fake_run_writing(count: int):
    def fake_run(stream, **kwargs):
        pattern = next(arg for arg in ffmpeg.get_args(stream) if arg.endswith(".jpg"))
        for idx in range(1, count + 1):
            Path(pattern % idx).write_bytes(b"jpeg")
        return b"", b""

    return fake_run


def test_sampling_command_uses_fps_filter(tmp_path: Path) -> None:
    stream = build_sampling_stream(tmp_path / "video.mov", tmp_path / "frames" / "frame-%04d.jpg", 10)
    args = ffmpeg.get_args(stream)

    assert args[:2] == ["-i", str(tmp_path / "video.mov")]
    assert args[args.index("-vf") + 1] == "fps=10"
    assert str(tmp_path / "frames" / "frame-%04d.jpg") in args
    assert args[-1] == "-y"


def test_doubling_rate_changes_filter(tmp_path: Path) -> None:
    low = ffmpeg.get_args(build_sampling_stream("in.mov", "out-%04d.jpg", 2.5))
    high = ffmpeg.get_args(build_sampling_stream("in.mov", "out-%04d.jpg", 5))

    assert "fps=2.5" in low
    assert "fps=5" in high


def test_rate_must_be_positive() -> None:
    with pytest.raises(ValueError):
        build_sampling_stream("in.mov", "out-%04d.jpg", 0)


def test_sample_returns_frames_in_index_order(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr("framepose.sample.sampler.ffmpeg.run", _fake_run_writing(12))
    sampler = FfmpegSampler(tmp_path / "frames")

    frames = sampler.sample(tmp_path / "video.mov", 10)

    assert len(frames) == 12
    assert [frame.index for frame in frames] == list(range(1, 13))
    assert frames[0].name == "frame-0001.jpg"
    names = [frame.name for frame in frames]
    assert names == sorted(names)


def test_stale_frames_are_cleared(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    frames_dir = tmp_path / "frames"
    frames_dir.mkdir()
    for idx in range(1, 6):
        (frames_dir / f"frame-{idx:04d}.jpg").write_bytes(b"stale")
    (frames_dir / "notes.txt").write_text("keep me")

    monkeypatch.setattr("framepose.sample.sampler.ffmpeg.run", _fake_run_writing(3))
    frames = FfmpegSampler(frames_dir).sample(tmp_path / "video.mov", 1)

    assert [frame.name for frame in frames] == ["frame-0001.jpg", "frame-0002.jpg", "frame-0003.jpg"]
    assert all(frame.path.read_bytes() == b"jpeg" for frame in frames)
    assert (frames_dir / "notes.txt").exists()


def test_stale_frames_kept_when_disabled(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    frames_dir = tmp_path / "frames"
    frames_dir.mkdir()
    (frames_dir / "frame-0009.jpg").write_bytes(b"stale")

    monkeypatch.setattr("framepose.sample.sampler.ffmpeg.run", _fake_run_writing(2))
    frames = FfmpegSampler(frames_dir, clear_stale=False).sample(tmp_path / "video.mov", 1)

    assert [frame.index for frame in frames] == [1, 2, 9]


def test_ffmpeg_failure_raises_transcode_error(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def failing_run(stream, **kwargs):
        raise ffmpeg.Error("ffmpeg", b"", b"moov atom not found")

    monkeypatch.setattr("framepose.sample.sampler.ffmpeg.run", failing_run)

    with pytest.raises(TranscodeError) as excinfo:
        FfmpegSampler(tmp_path / "frames").sample(tmp_path / "video.mov", 10)

    assert "moov atom not found" in excinfo.value.stderr


def test_missing_binary_raises_transcode_error(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def missing_run(stream, **kwargs):
        raise FileNotFoundError("ffmpeg")

    monkeypatch.setattr("framepose.sample.sampler.ffmpeg.run", missing_run)

    with pytest.raises(TranscodeError):
        FfmpegSampler(tmp_path / "frames").sample(tmp_path / "video.mov", 10)


def test_list_frames_ignores_unrelated_files(tmp_path: Path) -> None:
    (tmp_path / "frame-0002.jpg").write_bytes(b"x")
    (tmp_path / "frame-0010.jpg").write_bytes(b"x")
    (tmp_path / "frame-cover.jpg").write_bytes(b"x")
    (tmp_path / "frame-0001.png").write_bytes(b"x")

    assert [frame.index for frame in list_frames(tmp_path)] == [2, 10]


def test_pattern_to_glob() -> None:
    assert pattern_to_glob("frame-%04d.jpg") == "frame-*.jpg"
    assert pattern_to_glob("img%d.png") == "img*.png"
    with pytest.raises(ValueError):
        pattern_to_glob("frame.jpg")
