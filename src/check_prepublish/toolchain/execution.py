"""
check-prepublish — command execution primitives

File: src/check_prepublish/toolchain/execution.py

Purpose
- Portable command contract (``CommandSpec``/``CommandResult``) and the async
  executor used for every external toolchain invocation.

Functional requirements
- Output is either captured (decoded, newline-normalized, truncated) or
  inherited from the parent process for live streaming.
- Timeouts kill the child and are reported, never raised.
- Spawn failures are reported as ``CommandResult.error``.
"""

from __future__ import annotations

import asyncio
import os
import re
import time
from collections.abc import Mapping
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

_MAX_EXCERPT_CHARS = 2000
# "Error: ...", "TypeError: ...", "Error [ERR_MODULE_NOT_FOUND]: ..."
_ERROR_LINE = re.compile(r"^[A-Za-z_$][\w$.]*(?:Error|Exception)(?: \[[^\]]+\])?:")


@dataclass(slots=True)
class CommandSpec:
    """Portable command invocation contract."""

    argv: tuple[str, ...]
    cwd: str | None = None
    env: Mapping[str, str] = field(default_factory=dict)
    timeout_seconds: float | None = None
    inherit_env: bool = True
    inherit_output: bool = False

    def __post_init__(self) -> None:
        self.argv = tuple(self.argv)
        if not self.argv or not all(isinstance(item, str) and item for item in self.argv):
            raise ValueError("CommandSpec.argv must contain non-empty strings")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("CommandSpec.timeout_seconds must be > 0")
        self.env = dict(self.env)

    def build_env(self) -> dict[str, str] | None:
        if self.inherit_env:
            if not self.env:
                return None
            env = dict(os.environ)
            env.update(self.env)
            return env
        return dict(self.env)

    def display(self) -> str:
        return " ".join(self.argv)


@dataclass(slots=True)
class CommandResult:
    """Command execution outcome."""

    argv: tuple[str, ...]
    exit_code: int | None
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0
    timed_out: bool = False
    error: str | None = None

    def __post_init__(self) -> None:
        self.argv = tuple(self.argv)
        if self.timed_out and self.exit_code is not None:
            raise ValueError("CommandResult.exit_code must be None when timed_out is true")

    @property
    def ok(self) -> bool:
        return not self.timed_out and self.error is None and self.exit_code == 0

    def describe_failure(self) -> str:
        """One-line description suitable for an error message."""

        command = " ".join(self.argv)
        if self.error is not None:
            return f"{command}: {self.error}"
        if self.timed_out:
            return f"{command}: timed out"
        detail = _error_line(self.stderr) or _error_line(self.stdout)
        message = f"Command failed: {command} (exit code {self.exit_code})"
        return f"{message}: {detail}" if detail else message


@runtime_checkable
class CommandExecutor(Protocol):
    """Pluggable async command execution interface."""

    async def run(self, spec: CommandSpec) -> CommandResult: ...


class LocalSubprocessExecutor(CommandExecutor):
    """Async local subprocess executor with capture/inherit and timeout behavior."""

    def __init__(
        self,
        *,
        default_timeout_seconds: float | None = None,
        max_output_chars: int | None = 200_000,
    ) -> None:
        if default_timeout_seconds is not None and default_timeout_seconds <= 0:
            raise ValueError("default_timeout_seconds must be > 0")
        self._default_timeout_seconds = default_timeout_seconds
        self._max_output_chars = max_output_chars

    async def run(self, spec: CommandSpec) -> CommandResult:
        started_ns = time.monotonic_ns()
        timeout = (
            spec.timeout_seconds if spec.timeout_seconds is not None else self._default_timeout_seconds
        )
        stream = None if spec.inherit_output else asyncio.subprocess.PIPE

        try:
            process = await asyncio.create_subprocess_exec(
                *spec.argv,
                cwd=spec.cwd,
                env=spec.build_env(),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=stream,
                stderr=stream,
            )
        except OSError as exc:
            return CommandResult(
                argv=spec.argv,
                exit_code=None,
                duration_ms=_elapsed_ms(started_ns),
                error=str(exc),
            )

        try:
            stdout_bytes, stderr_bytes = await _communicate_with_timeout(
                process=process,
                timeout_seconds=timeout,
            )
        except _CommandTimeoutError as exc:
            return CommandResult(
                argv=spec.argv,
                exit_code=None,
                stdout=self._decode(exc.stdout),
                stderr=self._decode(exc.stderr),
                duration_ms=_elapsed_ms(started_ns),
                timed_out=True,
                error=f"command timed out after {timeout or 0.0:.3f}s",
            )

        return CommandResult(
            argv=spec.argv,
            exit_code=process.returncode,
            stdout=self._decode(stdout_bytes),
            stderr=self._decode(stderr_bytes),
            duration_ms=_elapsed_ms(started_ns),
        )

    def _decode(self, raw: bytes | None) -> str:
        if not raw:
            return ""
        return _truncate_text(_normalize_output_text(raw), self._max_output_chars)


@dataclass(slots=True)
class _CommandTimeoutError(Exception):
    stdout: bytes | None
    stderr: bytes | None


async def _communicate_with_timeout(
    *,
    process: asyncio.subprocess.Process,
    timeout_seconds: float | None,
) -> tuple[bytes | None, bytes | None]:
    try:
        if timeout_seconds is None:
            return await process.communicate()
        return await asyncio.wait_for(process.communicate(), timeout=timeout_seconds)
    except TimeoutError as exc:
        with suppress(ProcessLookupError):
            process.kill()
        stdout_bytes, stderr_bytes = await process.communicate()
        raise _CommandTimeoutError(stdout=stdout_bytes, stderr=stderr_bytes) from exc
    except asyncio.CancelledError:
        with suppress(ProcessLookupError):
            process.kill()
        await process.communicate()
        raise


def _elapsed_ms(started_ns: int) -> int:
    return max(0, (time.monotonic_ns() - started_ns) // 1_000_000)


def _normalize_output_text(raw: bytes) -> str:
    text = raw.decode("utf-8", errors="replace")
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _truncate_text(text: str, max_chars: int | None) -> str:
    if max_chars is None or len(text) <= max_chars:
        return text
    omitted = len(text) - max_chars
    return f"{text[:max_chars]}\n...[truncated {omitted} chars]"


def _first_line(text: str) -> str:
    for line in text.splitlines():
        stripped = line.strip()
        if stripped:
            return stripped[:_MAX_EXCERPT_CHARS]
    return ""


def _error_line(text: str) -> str:
    """Last line that names an error, else the first non-empty line."""

    found = ""
    for line in text.splitlines():
        stripped = line.strip()
        if _ERROR_LINE.match(stripped):
            found = stripped
    return found[:_MAX_EXCERPT_CHARS] if found else _first_line(text)


__all__ = [
    "CommandExecutor",
    "CommandResult",
    "CommandSpec",
    "LocalSubprocessExecutor",
]
