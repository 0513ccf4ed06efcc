"""视频下载：流式写入本地文件，完整落盘后才交给下一阶段。"""

from __future__ import annotations

from pathlib import Path

import httpx

from framepose.core import FetchError, get_logger
from framepose.core.config import FetchConfig

logger = get_logger(__name__)


def download_video(
    url: str,
    destination: str | Path,
    *,
    config: FetchConfig | None = None,
    client: httpx.Client | None = None,
) -> Path:
    """下载 `url` 并覆盖写入 `destination`。

    仅接受 200 状态码；其余状态或网络异常抛出 FetchError，不做重试。
    响应体先写入同目录的 `.part` 文件，读完后再重命名，避免半截文件被抽帧阶段消费。
    """

    cfg = config or FetchConfig(url=url)
    target = Path(destination)
    target.parent.mkdir(parents=True, exist_ok=True)
    partial = target.with_name(target.name + ".part")

    owns_client = client is None
    http = client or httpx.Client(timeout=cfg.timeout_seconds, follow_redirects=True)
    written = 0
    try:
        with http.stream("GET", url) as response:
            if response.status_code != 200:
                raise FetchError(
                    f"Download failed with code {response.status_code}",
                    url=url,
                    status_code=response.status_code,
                )
            with partial.open("wb") as handle:
                for chunk in response.iter_bytes(chunk_size=cfg.chunk_size):
                    handle.write(chunk)
                    written += len(chunk)
        partial.replace(target)
    except httpx.HTTPError as exc:
        partial.unlink(missing_ok=True)
        raise FetchError(f"Download failed: {exc}", url=url) from exc
    except FetchError:
        partial.unlink(missing_ok=True)
        raise
    except OSError as exc:
        partial.unlink(missing_ok=True)
        raise FetchError(f"Download failed while writing {target}: {exc}", url=url) from exc
    finally:
        if owns_client:
            http.close()

    logger.info("Downloaded %d bytes to %s", written, target)
    return target
