"""framepose Typer CLI，便于在命令行触发完整流水线。"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import typer
from pydantic import ValidationError

from framepose.core import FramePoseError, PipelineConfig, get_logger, load_config, setup_logging
from framepose.output import load_results
from framepose.pipeline import PipelineReport, run_pipeline

app = typer.Typer(help="framepose: 视频抽帧 + 姿态关键点提取")
logger = get_logger("framepose.cli")


@app.callback()
def main() -> None:
    """framepose 顶层 CLI，占位以展示子命令列表。"""

    return None


def _resolve_config(config_path: Optional[Path]) -> PipelineConfig:
    return load_config(config_path) if config_path else load_config()


def _apply_overrides(
    cfg: PipelineConfig,
    *,
    url: Optional[str],
    fps: Optional[float],
    work_dir: Optional[Path],
    device: Optional[str],
    on_frame_error: Optional[str],
) -> PipelineConfig:
    data: Dict[str, Any] = cfg.model_dump(exclude={"raw"})
    if url:
        data["fetch"]["url"] = url
    if fps is not None:
        data["sampling"]["fps"] = fps
    if work_dir is not None:
        data["work_dir"] = work_dir
    if device:
        data["pose"]["device"] = device
    if on_frame_error:
        data["pose"]["on_frame_error"] = on_frame_error.lower()
    try:
        return PipelineConfig.model_validate({**data, "raw": cfg.raw})
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command("run")
def run_cmd(
    url: Optional[str] = typer.Option(None, "--url", help="视频 URL，覆盖配置"),
    fps: Optional[float] = typer.Option(None, "--fps", help="每秒抽帧数"),
    work_dir: Optional[Path] = typer.Option(None, "--work-dir", "-w", help="工作目录（视频/帧/结果）"),
    device: Optional[str] = typer.Option(None, "--device", help="推理设备，如 cpu/cuda"),
    on_frame_error: Optional[str] = typer.Option(None, "--on-frame-error", help="单帧失败策略：abort 或 skip"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="自定义配置文件"),
    log_level: str = typer.Option("INFO", "--log-level", help="日志级别"),
) -> None:
    """下载视频、抽帧并逐帧提取姿态关键点。"""

    setup_logging(log_level)
    cfg = _apply_overrides(
        _resolve_config(config_path),
        url=url,
        fps=fps,
        work_dir=work_dir,
        device=device,
        on_frame_error=on_frame_error,
    )

    try:
        report: PipelineReport = run_pipeline(cfg)
    except FramePoseError as exc:
        logger.error("Error: %s", exc)
        raise typer.Exit(code=1) from exc

    typer.echo(f"{report.result_count} / {report.frame_count} 帧完成姿态提取，输出到 {report.output_path}")
    if report.skipped_frames:
        typer.echo(f"跳过 {len(report.skipped_frames)} 帧: {', '.join(report.skipped_frames)}")


@app.command("summarize")
def summarize_cmd(
    keypoints: Path = typer.Argument(..., exists=True, dir_okay=False, resolve_path=True, help="keypoints.json 路径"),
    threshold: float = typer.Option(0.5, "--threshold", help="低置信度阈值"),
) -> None:
    """统计结果文件中的帧数、关键点数量与平均置信度。"""

    try:
        results = load_results(keypoints)
    except (ValueError, KeyError) as exc:
        typer.echo(f"无法解析结果文件：{exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"frames: {len(results)}")
    if not results:
        return
    schema_sizes = sorted({len(result.keypoints) for result in results})
    total = sum(len(result.keypoints) for result in results)
    confident = sum(1 for result in results for kp in result.keypoints if kp.is_confident(threshold))
    mean = sum(result.mean_score() for result in results) / len(results)
    typer.echo(f"keypoints per frame: {', '.join(str(size) for size in schema_sizes)}")
    typer.echo(f"mean score: {mean:.3f}")
    typer.echo(f"confident (>= {threshold:.2f}): {confident} / {total}")


if __name__ == "__main__":  # pragma: no cover
    app()
