"""Step1: 视频下载模块入口。"""

from .downloader import download_video

__all__ = [
    "download_video",
]
