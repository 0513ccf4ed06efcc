"""核心数据模型测试，确保序列化与文件名解析稳定。"""

from pathlib import Path

import pytest

from framepose.core import KEYPOINT_NAMES, FramePath, Keypoint, PoseResult
from framepose.core.datamodels import frame_index_from_name
from framepose.core.paths import video_filename_for_url


def test_pose_result_output_shape() -> None:
    result = PoseResult(
        frame="frame-0001.jpg",
        keypoints=[Keypoint(part="nose", x=12.5, y=30.0, score=0.91)],
    )

    payload = result.to_dict()

    assert payload == {
        "frame": "frame-0001.jpg",
        "keypoints": [{"part": "nose", "position": {"x": 12.5, "y": 30.0}, "score": 0.91}],
    }
    assert PoseResult.from_dict(payload) == result


def test_keypoint_confidence_flag() -> None:
    low = Keypoint(part="leftAnkle", x=1.0, y=2.0, score=0.2)
    high = Keypoint(part="leftAnkle", x=1.0, y=2.0, score=0.5)

    assert not low.is_confident()
    assert high.is_confident()
    assert low.is_confident(threshold=0.1)


def test_keypoint_schema_is_coco_order() -> None:
    assert len(KEYPOINT_NAMES) == 17
    assert KEYPOINT_NAMES[0] == "nose"
    assert KEYPOINT_NAMES[5] == "leftShoulder"
    assert KEYPOINT_NAMES[-1] == "rightAnkle"


def test_frame_index_parsing() -> None:
    assert frame_index_from_name("frame-0001.jpg") == 1
    assert frame_index_from_name("frame-12345.jpg") == 12345
    assert FramePath.from_path(Path("/tmp/frames/frame-0042.jpg")).index == 42

    with pytest.raises(ValueError):
        frame_index_from_name("cover.jpg")


def test_mean_score() -> None:
    result = PoseResult(
        frame="frame-0002.jpg",
        keypoints=[
            Keypoint(part="nose", x=0.0, y=0.0, score=0.2),
            Keypoint(part="leftEye", x=0.0, y=0.0, score=0.6),
        ],
    )

    assert result.mean_score() == pytest.approx(0.4)
    assert PoseResult(frame="empty.jpg").mean_score() == 0.0


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://cdn.example.com/feed/tony%20movie.mov", "video.mov"),
        ("https://cdn.example.com/clip.MP4?sig=abc", "video.mp4"),
        ("https://cdn.example.com/stream", "video.mp4"),
    ],
)
def test_video_filename_for_url(url: str, expected: str) -> None:
    assert video_filename_for_url(url) == expected
