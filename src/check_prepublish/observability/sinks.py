"""Progress sinks receiving the human-readable lines streamed during a run."""

from __future__ import annotations

import logging
import os
from typing import IO, Protocol, runtime_checkable

from rich.console import Console
from rich.markup import escape


@runtime_checkable
class ProgressLogger(Protocol):
    """Minimal sink contract: write one line."""

    def log(self, line: str) -> None: ...


class ConsoleSink:
    """Default sink writing to standard output through a rich console."""

    _STYLES: tuple[tuple[str, str], ...] = (
        ("✅", "green"),
        ("❌", "red"),
        ("Warning:", "yellow"),
    )

    def __init__(
        self,
        *,
        no_color: bool = False,
        file: IO[str] | None = None,
        console: Console | None = None,
    ) -> None:
        if console is None:
            disable_color = no_color or bool(os.environ.get("NO_COLOR", ""))
            console = Console(
                file=file,
                no_color=disable_color,
                highlight=False,
                soft_wrap=True,
            )
        self._console = console

    @property
    def console(self) -> Console:
        return self._console

    def log(self, line: str) -> None:
        style = next((style for marker, style in self._STYLES if marker in line), None)
        self._console.print(escape(line), style=style)


class LoggingSink:
    """Forwards progress lines to a stdlib logger at a fixed level."""

    def __init__(self, logger: logging.Logger, *, level: int = logging.INFO) -> None:
        self._logger = logger
        self._level = level

    def log(self, line: str) -> None:
        self._logger.log(self._level, line)


class MemorySink:
    """Collects progress lines in memory."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def log(self, line: str) -> None:
        self.lines.append(line)

    def text(self) -> str:
        return "\n".join(self.lines)


__all__ = ["ConsoleSink", "LoggingSink", "MemorySink", "ProgressLogger"]
