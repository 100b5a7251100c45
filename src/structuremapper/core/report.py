from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from structuremapper.core.complexity import Metrics
from structuremapper.core.config import AppConfig
from structuremapper.core.console import ConsoleLogger
from structuremapper.core.shape import ArrayShape, ObjectShape, Shape, dumps

_UNITS = ("B", "KB", "MB", "GB")


def format_file_size(size: float) -> str:
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.2f} {_UNITS[unit]}"


def compression_ratio(output_size: int, input_size: int) -> str:
    if input_size == 0:
        return "0"
    return f"{output_size / input_size * 100:.1f}"


def count_top_level_fields(shape: Shape) -> int:
    if isinstance(shape, ArrayShape):
        shape = shape.element
    if isinstance(shape, ObjectShape):
        return len(shape)
    return 0


def render_structure(shape: Shape, indent: int = 2) -> str:
    return dumps(shape, indent)


def write_output(shape: Shape, config: AppConfig, stream: TextIO | None = None) -> int:
    """按配置输出结构，返回写出的字节数。"""
    text = render_structure(shape, config.indent)
    size = len(text.encode("utf-8"))
    if config.print_output:
        out = stream or sys.stdout
        out.write(text + "\n")
        out.flush()
        return size
    if config.output_path is None:
        return 0
    config.output_path.parent.mkdir(parents=True, exist_ok=True)
    config.output_path.write_text(text, encoding="utf-8")
    return size


@dataclass
class AnalysisSummary:
    input_size: int
    output_size: int
    metrics: Metrics
    top_level_fields: int
    root_is_array: bool
    parse_seconds: float
    analysis_seconds: float
    source: str
    input_path: Path | None = None
    output_target: str | None = None
    memory_peak: int = 0

    @property
    def compression(self) -> str:
        return compression_ratio(self.output_size, self.input_size)


def build_summary(
    shape: Shape,
    metrics: Metrics,
    config: AppConfig,
    input_size: int,
    output_size: int,
    parse_seconds: float,
    analysis_seconds: float,
    source: str = "FILE",
    memory_peak: int = 0,
) -> AnalysisSummary:
    if config.print_output:
        target = "stdout"
    elif config.output_path is not None:
        target = str(config.output_path)
    else:
        target = None
    return AnalysisSummary(
        input_size=input_size,
        output_size=output_size,
        metrics=metrics,
        top_level_fields=count_top_level_fields(shape),
        root_is_array=isinstance(shape, ArrayShape),
        parse_seconds=parse_seconds,
        analysis_seconds=analysis_seconds,
        source=source,
        input_path=config.input_path,
        output_target=target,
        memory_peak=memory_peak,
    )


def render_summary(summary: AnalysisSummary, logger: ConsoleLogger) -> None:
    def row(label: str, value: str, *styles: str) -> None:
        logger.plain(logger.paint(f"   {label}: ", "dim") + logger.paint(value, *(styles or ("white",))))

    def timing(seconds: float) -> str:
        return "green" if seconds < 1 else "yellow"

    logger.info(logger.paint("\n📊 Analysis Summary", "bold"))
    logger.plain(logger.paint("─" * 40, "dim"))

    logger.info(logger.paint("\n📁 File Information:", "bold"))
    if summary.input_path is not None:
        row("Input", str(summary.input_path))
    row("Source", summary.source)
    if summary.output_target:
        row("Output", summary.output_target)

    logger.info(logger.paint("\n📈 Size Analysis:", "bold"))
    row("Input Size", format_file_size(summary.input_size))
    row("Output Size", format_file_size(summary.output_size))
    ratio = summary.compression
    row("Compression", f"{ratio}%", "green" if float(ratio) < 50 else "yellow")

    logger.info(logger.paint("\n🔍 Structure Analysis:", "bold"))
    row("Max Depth", f"{summary.metrics.max_depth} levels")
    row("Unique Fields", str(summary.metrics.unique_fields))
    row("Top-level Fields", str(summary.top_level_fields))
    if summary.root_is_array:
        row("Root", "array")

    logger.info(logger.paint("\n⚡ Performance:", "bold"))
    row("Parse Time", f"{summary.parse_seconds:.2f} seconds", timing(summary.parse_seconds))
    row("Processing Time", f"{summary.analysis_seconds:.2f} seconds", timing(summary.analysis_seconds))
    if summary.memory_peak:
        row("Memory Used", format_file_size(summary.memory_peak))
