"""
check-prepublish — ephemeral install workspaces

File: src/check_prepublish/workspace.py

Purpose
- Produce the publishable archive, install it into a throwaway consumer
  project, and always clean both up afterwards.

Functional requirements
- Workspace and archive are removed independently on every exit path.
- A cleanup failure is reported as a warning line and never becomes an error.
- Installed-copy paths follow the ecosystem layout, including scoped names.
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from check_prepublish.constants import DEPENDENCY_DIR, EXECUTABLE_SHIM_DIR
from check_prepublish.observability.logging import correlation_scope
from check_prepublish.utils.fs import (
    create_workspace_dir,
    force_remove_file,
    force_remove_tree,
)

if TYPE_CHECKING:
    from check_prepublish.observability.sinks import ProgressLogger
    from check_prepublish.toolchain.npm import PackageToolchain

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InstalledPackage:
    """Locations of one installed copy of the artifact."""

    workspace: Path
    archive: Path
    package_path: Path


def installed_package_path(workspace: str | Path, name: str) -> Path:
    """
    Path of the installed copy inside ``workspace``.

    Scoped names map to a nested directory: ``@scope/pkg`` installs under
    ``node_modules/@scope/pkg``.
    """

    return Path(workspace, DEPENDENCY_DIR, *name.split("/"))


def executable_shim_path(workspace: str | Path, name: str) -> Path:
    """Path of the launcher the package manager links for executable ``name``."""

    shim = Path(workspace, DEPENDENCY_DIR, EXECUTABLE_SHIM_DIR, name)
    if os.name == "nt":
        return shim.with_name(f"{name}.cmd")
    return shim


@asynccontextmanager
async def installed_package(
    toolchain: PackageToolchain,
    package_dir: Path,
    name: str,
    *,
    progress: ProgressLogger,
    announce: bool = False,
) -> AsyncIterator[InstalledPackage]:
    """
    Pack ``package_dir`` and install the archive into a fresh workspace.

    With ``announce`` set, each step reports a progress line. Errors from
    packing or installing propagate to the caller after cleanup ran.
    """

    workspace: Path | None = None
    archive: Path | None = None
    try:
        if announce:
            progress.log("Creating tarball...")
        archive = await toolchain.pack(package_dir)
        if announce:
            progress.log(f"✅ Created: {archive.name}")

        workspace = create_workspace_dir()
        with correlation_scope(workspace=str(workspace)):
            logger.debug("created workspace %s", workspace)
            await toolchain.init_workspace(workspace)
            if announce:
                progress.log("Installing in temp directory...")
            await toolchain.install(workspace, archive)
            if announce:
                progress.log("✅ Installation successful")

            yield InstalledPackage(
                workspace=workspace,
                archive=archive,
                package_path=installed_package_path(workspace, name),
            )
    finally:
        cleanup_workspace(workspace, archive, progress=progress)


def cleanup_workspace(
    workspace: Path | None,
    archive: Path | None,
    *,
    progress: ProgressLogger,
) -> None:
    """Best-effort removal of ``workspace`` and ``archive``; each step is independent."""

    if workspace is not None:
        try:
            force_remove_tree(workspace)
        except OSError as exc:
            logger.warning("failed to remove workspace %s: %s", workspace, exc)
            progress.log(f"Warning: Failed to cleanup test directory: {exc}")

    if archive is not None:
        try:
            force_remove_file(archive)
        except OSError as exc:
            logger.warning("failed to remove archive %s: %s", archive, exc)
            progress.log(f"Warning: Failed to cleanup tarball: {exc}")


__all__ = [
    "InstalledPackage",
    "cleanup_workspace",
    "executable_shim_path",
    "installed_package",
    "installed_package_path",
]
