from __future__ import annotations

import argparse
import sys
import time
import tracemalloc
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from structuremapper.core.complexity import ComplexityAnalyzer
from structuremapper.core.config import (
    AppConfig,
    build_config,
    has_input,
    load_settings,
    output_path_warning,
)
from structuremapper.core.console import ConsoleLogger
from structuremapper.core.errors import (
    ConfigError,
    InvalidInputShape,
    JsonParseError,
    StructureError,
)
from structuremapper.core.inferencer import StructureInferencer
from structuremapper.core.reader import parse_json, read_input
from structuremapper.core.report import build_summary, format_file_size, render_summary, write_output


def _package_version() -> str:
    try:
        return version("structuremapper")
    except PackageNotFoundError:
        return "0.0.0"


def _make_logger(config: AppConfig) -> ConsoleLogger:
    # --print 时 stdout 只输出结构 JSON，状态信息改走 stderr
    stream = sys.stderr if config.print_output else sys.stdout
    return ConsoleLogger(
        silent=config.silent,
        verbose=config.verbose,
        color=config.color,
        stream=stream,
    )


def cmd_analyze(config: AppConfig, logger: ConsoleLogger) -> int:
    logger.step("Reading from STDIN" if config.stdin else "Reading input file")
    raw = read_input(config)
    logger.done("Read STDIN successfully" if config.stdin else "File read successfully")

    if raw.size > config.large_input_mb * 1024 * 1024:
        logger.warn("\n⚠️  Large input detected. This might take a while...")
    logger.verbose_log(f"Total input size: {format_file_size(raw.size)}")

    logger.step("Parsing JSON")
    logger.verbose_log("Starting JSON parse...")
    data, parse_seconds = parse_json(raw.text)
    logger.verbose_log(f"JSON parsed in {parse_seconds:.2f} seconds")
    logger.done("JSON parsed successfully")

    logger.step("Analyzing JSON structure")
    logger.verbose_log("Starting structure analysis...")
    tracemalloc.start()
    inferencer = StructureInferencer(on_progress=logger.verbose_log if config.verbose else None)
    start = time.perf_counter()
    try:
        shape = inferencer.infer(data)
        analysis_seconds = time.perf_counter() - start
        _, memory_peak = tracemalloc.get_traced_memory()
    finally:
        tracemalloc.stop()

    if config.print_output:
        logger.step("Outputting results")
    else:
        logger.step("Writing results")
    output_size = write_output(shape, config)
    logger.done("Printed structure" if config.print_output else "Analysis complete")

    metrics = ComplexityAnalyzer().analyze(shape)
    summary = build_summary(
        shape,
        metrics,
        config,
        input_size=raw.size,
        output_size=output_size,
        parse_seconds=parse_seconds,
        analysis_seconds=analysis_seconds,
        source=raw.source,
        memory_peak=memory_peak,
    )
    render_summary(summary, logger)
    logger.success("\n✅ Analysis completed successfully!")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="structuremapper",
        description="分析 JSON 并输出其结构概要（合并数组元素的形状）。",
        epilog=(
            "示例:\n"
            "  structuremapper data.json\n"
            "  structuremapper -i data.json -o schema.json\n"
            "  structuremapper data.json --print\n"
            "  cat data.json | structuremapper --stdin -p\n"
            "  structuremapper data.json -v"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("input", nargs="?", help="输入 JSON 文件路径")
    parser.add_argument("-i", "--input", dest="input_opt", help="输入 JSON 文件路径（同位置参数）")
    parser.add_argument("-o", "--output", help="输出文件路径（默认 ./output/structure.json）")
    parser.add_argument("-p", "--print", action="store_true", default=None, help="输出到 stdout 而不是写文件")
    parser.add_argument("--stdin", action="store_true", default=None, help="从 STDIN 读取 JSON（忽略输入路径）")
    parser.add_argument("-v", "--verbose", action="store_true", default=None, help="显示详细进度")
    parser.add_argument("-s", "--silent", action="store_true", default=None, help="只输出错误信息")
    parser.add_argument("--no-color", action="store_true", default=None, help="禁用彩色输出")
    parser.add_argument("--config", help="可选的 JSON 设置文件")
    parser.add_argument("--version", action="version", version=_package_version())
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = {}
    if args.config:
        try:
            settings = load_settings(Path(args.config))
        except (FileNotFoundError, ConfigError) as exc:
            print(f"❌ Error: {exc}", file=sys.stderr)
            return 1

    if not has_input(args, settings):
        parser.print_help()
        return 0

    try:
        config = build_config(args, settings)
    except ConfigError as exc:
        print(f"❌ Error: {exc}", file=sys.stderr)
        return 1

    logger = _make_logger(config)
    if config.output_path is not None:
        warning = output_path_warning(config.output_path)
        if warning:
            logger.error(warning)

    try:
        return cmd_analyze(config, logger)
    except JsonParseError as exc:
        logger.error(f"\n❌ Error: Invalid JSON format in input {'(STDIN)' if config.stdin else 'file'}")
        logger.error(f"   {exc}")
        return 1
    except InvalidInputShape as exc:
        logger.error(f"\n❌ Error: unsupported value in input: {exc}")
        return 1
    except RecursionError:
        logger.error("\n❌ Error: document nested too deeply to analyze")
        return 1
    except (StructureError, OSError) as exc:
        logger.error(f"\n❌ Error: {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
