from __future__ import annotations

import json
import sys
import time
from dataclasses import dataclass
from typing import Any, TextIO, Tuple

from structuremapper.core.config import AppConfig
from structuremapper.core.errors import ConfigError, JsonParseError


@dataclass
class RawInput:
    text: str
    size: int
    source: str  # STDIN | FILE


def sanitize_stdin_json(raw: str) -> str:
    trimmed = raw.strip()
    # PowerShell 管道有时会把字面量包在单引号里
    if len(trimmed) >= 2 and trimmed.startswith("'") and trimmed.endswith("'"):
        inner = trimmed[1:-1]
        if inner.startswith("{") or inner.startswith("["):
            trimmed = inner
    return trimmed


def _read_stream(stream: TextIO) -> Tuple[str, int]:
    buffer = getattr(stream, "buffer", None)
    if buffer is None:
        text = stream.read()
        return text, len(text.encode("utf-8"))
    data = buffer.read()
    try:
        return data.decode("utf-8-sig"), len(data)
    except UnicodeDecodeError as exc:
        raise JsonParseError(f"STDIN 不是 UTF-8 编码: {exc}") from exc


def read_input(config: AppConfig, stdin: TextIO | None = None) -> RawInput:
    if config.stdin:
        text, size = _read_stream(stdin or sys.stdin)
        return RawInput(text=sanitize_stdin_json(text), size=size, source="STDIN")
    if config.input_path is not None:
        path = config.input_path
        data = path.read_bytes()
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise JsonParseError(f"输入文件不是 UTF-8 编码: {path}") from exc
        return RawInput(text=text, size=len(data), source="FILE")
    raise ConfigError("No input provided")


def _reject_constant(name: str) -> Any:
    raise JsonParseError(f"Invalid JSON format: non-standard literal {name}")


def parse_json(text: str) -> Tuple[Any, float]:
    """解析 JSON 文本，返回 (数据, 耗时秒数)。NaN / Infinity 视为非法。"""
    start = time.perf_counter()
    try:
        data = json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise JsonParseError(
            f"Invalid JSON format: {exc.msg} (line {exc.lineno} column {exc.colno})"
        ) from exc
    except RecursionError as exc:
        raise JsonParseError("Invalid JSON format: nesting too deep") from exc
    return data, time.perf_counter() - start
