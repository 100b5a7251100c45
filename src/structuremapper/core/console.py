from __future__ import annotations

import os
import sys
import time
from typing import Callable, TextIO

_STYLES = {
    "bold": "\033[1m",
    "dim": "\033[2m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "white": "\033[37m",
}
_RESET = "\033[0m"


def supports_color(stream: TextIO, requested: bool = True) -> bool:
    if not requested or os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    if isatty is None:
        return False
    try:
        return bool(isatty())
    except ValueError:
        # 已关闭的流
        return False


class ConsoleLogger:
    """终端输出：silent 时只保留错误，verbose 时额外输出带耗时前缀的进度行。"""

    def __init__(
        self,
        silent: bool = False,
        verbose: bool = False,
        color: bool = True,
        stream: TextIO | None = None,
        err_stream: TextIO | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.silent = silent
        self.verbose = verbose
        self.stream = stream or sys.stdout
        self.err_stream = err_stream or sys.stderr
        self.color = supports_color(self.stream, color)
        self._clock = clock
        self._start = clock()

    def paint(self, text: str, *styles: str) -> str:
        if not self.color or not styles:
            return text
        prefix = "".join(_STYLES[s] for s in styles)
        return f"{prefix}{text}{_RESET}"

    def _emit(self, text: str) -> None:
        print(text, file=self.stream, flush=True)

    def info(self, message: str) -> None:
        if not self.silent:
            self._emit(self.paint(message, "blue"))

    def plain(self, message: str) -> None:
        if not self.silent:
            self._emit(message)

    def success(self, message: str) -> None:
        if not self.silent:
            self._emit(self.paint(message, "green"))

    def warn(self, message: str) -> None:
        if not self.silent:
            self._emit(self.paint(message, "yellow"))

    def error(self, message: str) -> None:
        print(self.paint(message, "red"), file=self.err_stream, flush=True)

    def step(self, message: str) -> None:
        if not self.silent:
            self._emit(self.paint(f"… {message}", "blue"))

    def done(self, message: str) -> None:
        if not self.silent:
            self._emit(self.paint(f"✔ {message}", "green"))

    def verbose_log(self, message: str) -> None:
        if self.verbose and not self.silent:
            elapsed = self._clock() - self._start
            self._emit(self.paint(f"[{elapsed:.2f}s] {message}", "dim"))
