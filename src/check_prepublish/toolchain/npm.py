"""npm/node implementation of the packaging toolchain interface."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from check_prepublish.toolchain.execution import (
    CommandExecutor,
    CommandResult,
    CommandSpec,
    LocalSubprocessExecutor,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

# Imports the file URL passed as the first script argument; load-time
# exceptions surface as a non-zero exit with the stack on stderr.
_IMPORT_SCRIPT = "await import(process.argv[1]);"


class ToolchainError(RuntimeError):
    """An external toolchain step failed (non-zero exit, timeout, or spawn error)."""

    def __init__(self, result: CommandResult, *, message: str | None = None) -> None:
        self.result = result
        super().__init__(message if message is not None else result.describe_failure())


@runtime_checkable
class PackageToolchain(Protocol):
    """Process primitives the checker needs from the packaging ecosystem."""

    async def build(self, package_dir: Path) -> None: ...

    async def pack(self, package_dir: Path) -> Path: ...

    async def init_workspace(self, workspace: Path) -> None: ...

    async def install(self, workspace: Path, archive: Path) -> None: ...

    async def import_module(self, module_path: Path, *, cwd: Path) -> None: ...

    async def run_executable(self, executable: Path, args: Sequence[str], *, cwd: Path) -> None: ...

    def service_command(self, entry: Path) -> tuple[str, ...]: ...


class NpmToolchain(PackageToolchain):
    """Drives ``npm`` and ``node`` through a ``CommandExecutor``."""

    def __init__(
        self,
        executor: CommandExecutor | None = None,
        *,
        npm: str = "npm",
        node: str = "node",
        timeout_seconds: float | None = None,
    ) -> None:
        self._executor = executor if executor is not None else LocalSubprocessExecutor()
        self._npm = npm
        self._node = node
        self._timeout_seconds = timeout_seconds

    async def build(self, package_dir: Path) -> None:
        # Output streams straight to the user's terminal.
        await self._run(
            (self._npm, "run", "build"),
            cwd=package_dir,
            inherit_output=True,
        )

    async def pack(self, package_dir: Path) -> Path:
        result = await self._run((self._npm, "pack", "--silent"), cwd=package_dir)
        lines = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        if not lines:
            raise ToolchainError(result, message="npm pack did not report an archive name")
        return (Path(package_dir) / lines[-1]).resolve()

    async def init_workspace(self, workspace: Path) -> None:
        await self._run((self._npm, "init", "-y"), cwd=workspace)

    async def install(self, workspace: Path, archive: Path) -> None:
        await self._run(
            (self._npm, "install", str(archive), "--production", "--loglevel=error"),
            cwd=workspace,
        )

    async def import_module(self, module_path: Path, *, cwd: Path) -> None:
        await self._run(
            (
                self._node,
                "--input-type=module",
                "--eval",
                _IMPORT_SCRIPT,
                module_path.resolve().as_uri(),
            ),
            cwd=cwd,
        )

    async def run_executable(self, executable: Path, args: Sequence[str], *, cwd: Path) -> None:
        await self._run((str(executable), *args), cwd=cwd)

    def service_command(self, entry: Path) -> tuple[str, ...]:
        return (self._node, str(entry))

    async def _run(
        self,
        argv: tuple[str, ...],
        *,
        cwd: Path,
        inherit_output: bool = False,
    ) -> CommandResult:
        spec = CommandSpec(
            argv=argv,
            cwd=str(cwd),
            timeout_seconds=self._timeout_seconds,
            inherit_output=inherit_output,
        )
        logger.debug("running %s", spec.display(), extra={"cwd": str(cwd)})
        result = await self._executor.run(spec)
        if not result.ok:
            logger.debug("command failed: %s", result.describe_failure())
            raise ToolchainError(result)
        return result


__all__ = ["NpmToolchain", "PackageToolchain", "ToolchainError"]
