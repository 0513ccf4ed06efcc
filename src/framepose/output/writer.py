"""结果落盘：逐帧追加 JSONL checkpoint，结束时原子写入 keypoints.json。"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence

from framepose.core import PoseResult, get_logger

logger = get_logger(__name__)


class ResultWriter:
    """管理最终输出文件及可选的逐帧 checkpoint。"""

    def __init__(self, output_path: str | Path, *, checkpoint_path: str | Path | None = None) -> None:
        self.output_path = Path(output_path)
        self.checkpoint_path: Optional[Path] = Path(checkpoint_path) if checkpoint_path else None
        if self.checkpoint_path is not None:
            # 上次运行残留的 checkpoint 不能冒充本次结果
            self.checkpoint_path.unlink(missing_ok=True)

    def append(self, result: PoseResult) -> None:
        """追加单帧结果并立即 flush。"""

        if self.checkpoint_path is None:
            return
        self.checkpoint_path.parent.mkdir(parents=True, exist_ok=True)
        with self.checkpoint_path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(result.to_dict(), ensure_ascii=False))
            handle.write("\n")
            handle.flush()

    def write(self, results: Sequence[PoseResult]) -> Path:
        """整体覆盖写入，先写临时文件再 os.replace，读者不会看到半截 JSON。"""

        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        payload = [result.to_dict() for result in results]
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.output_path.name}.",
            suffix=".tmp",
            dir=str(self.output_path.parent),
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(json.dumps(payload, ensure_ascii=False, indent=2))
            os.replace(tmp_path, self.output_path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

        if self.checkpoint_path is not None:
            self.checkpoint_path.unlink(missing_ok=True)
        logger.info("Keypoints saved to %s", self.output_path)
        return self.output_path


def load_results(path: str | Path) -> List[PoseResult]:
    """读取 keypoints.json 或 checkpoint JSONL。"""

    source = Path(path)
    text = source.read_text(encoding="utf-8")
    if source.suffix == ".jsonl":
        return [PoseResult.from_dict(json.loads(line)) for line in text.splitlines() if line.strip()]
    payload = json.loads(text)
    if not isinstance(payload, list):
        raise ValueError("keypoints JSON 需为数组格式")
    return [PoseResult.from_dict(entry) for entry in payload]
