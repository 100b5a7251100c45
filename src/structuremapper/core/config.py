from __future__ import annotations

import argparse
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from structuremapper.core.errors import ConfigError

SUPPORTED_EXTENSIONS = (".json",)
DEFAULT_OUTPUT = Path("output") / "structure.json"


@dataclass
class AppConfig:
    input_path: Path | None = None
    output_path: Path | None = None
    print_output: bool = False
    stdin: bool = False
    silent: bool = False
    verbose: bool = False
    color: bool = True
    large_input_mb: int = 100
    indent: int = 2


def load_settings(path: Path) -> Dict[str, Any]:
    """读取可选的 JSON 设置文件，相对路径按设置文件所在目录解析。"""
    if not path.exists():
        raise FileNotFoundError(
            f"设置文件不存在: {path}\n"
            "可用字段示例：\n"
            "   {\n"
            '     "output": "output/structure.json",\n'
            '     "verbose": false,\n'
            '     "color": true,\n'
            '     "large_input_mb": 100\n'
            "   }"
        )
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"设置文件不是合法 JSON: {path} ({exc.msg})") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"设置文件顶层必须是对象: {path}")

    output = raw.get("output")
    if output:
        out = Path(output)
        if not out.is_absolute():
            out = (path.resolve().parent / out).resolve()
        raw["output"] = str(out)
    return raw


def validate_input_path(path: Path) -> None:
    if not path.exists():
        raise ConfigError(f"Input file not found: {path}")
    if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
        raise ConfigError(
            f"Unsupported file type. Supported types: {', '.join(SUPPORTED_EXTENSIONS)}"
        )


def output_path_warning(path: Path) -> str | None:
    if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
        return "Warning: Output file should have .json extension"
    return None


def has_input(args: argparse.Namespace, settings: Dict[str, Any] | None = None) -> bool:
    settings = settings or {}
    stdin = args.stdin if args.stdin is not None else settings.get("stdin", False)
    return bool(args.input or args.input_opt or stdin)


def build_config(
    args: argparse.Namespace,
    settings: Dict[str, Any] | None = None,
    cwd: Path | None = None,
) -> AppConfig:
    """命令行参数优先，其次设置文件，最后默认值。"""
    settings = settings or {}
    cwd = cwd or Path.cwd()

    def pick(name: str, key: str, default: Any = False) -> Any:
        value = getattr(args, name, None)
        if value is not None:
            return value
        return settings.get(key, default)

    stdin = bool(pick("stdin", "stdin"))
    print_output = bool(pick("print", "print"))

    input_path = None
    if not stdin:
        supplied = args.input_opt or args.input
        if not supplied:
            raise ConfigError("input path or --stdin required")
        input_path = (cwd / supplied).resolve()
        validate_input_path(input_path)

    output_path = None
    if not print_output:
        supplied = args.output or settings.get("output")
        output_path = (cwd / supplied).resolve() if supplied else (cwd / DEFAULT_OUTPUT).resolve()

    if args.no_color is not None:
        color = not args.no_color
    else:
        color = bool(settings.get("color", True))

    return AppConfig(
        input_path=input_path,
        output_path=output_path,
        print_output=print_output,
        stdin=stdin,
        silent=bool(pick("silent", "silent")),
        verbose=bool(pick("verbose", "verbose")),
        color=color,
        large_input_mb=int(settings.get("large_input_mb", 100)),
        indent=int(settings.get("indent", 2)),
    )
