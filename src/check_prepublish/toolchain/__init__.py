"""External process primitives: command execution and the npm toolchain."""

from check_prepublish.toolchain.execution import (
    CommandExecutor,
    CommandResult,
    CommandSpec,
    LocalSubprocessExecutor,
)
from check_prepublish.toolchain.npm import NpmToolchain, PackageToolchain, ToolchainError

__all__ = [
    "CommandExecutor",
    "CommandResult",
    "CommandSpec",
    "LocalSubprocessExecutor",
    "NpmToolchain",
    "PackageToolchain",
    "ToolchainError",
]
