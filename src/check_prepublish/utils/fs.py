"""
check-prepublish — filesystem utilities

File: src/check_prepublish/utils/fs.py

Purpose
- Provide minimal helpers for ephemeral install directories and forced removal.

Functional requirements
- Workspace directories are uniquely named under one shared temp root.
- Forced removal treats an already-missing target as success.

Non-functional requirements
- Standard library only and cross-platform behavior where feasible.
"""

from __future__ import annotations

import os
import shutil
import stat
import tempfile
from pathlib import Path

from check_prepublish.constants import TMP_SUBDIR, WORKSPACE_PREFIX

PathLike = str | os.PathLike[str]

__all__ = [
    "create_workspace_dir",
    "force_remove_file",
    "force_remove_tree",
    "get_tmp_root",
]


def get_tmp_root(base: PathLike | None = None) -> Path:
    """Return (and create) the shared parent of all workspaces."""

    root = Path(base if base is not None else tempfile.gettempdir()) / TMP_SUBDIR
    root.mkdir(parents=True, exist_ok=True)
    return root


def create_workspace_dir(base: PathLike | None = None) -> Path:
    """Create a fresh, uniquely named workspace directory."""

    return Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=get_tmp_root(base)))


def force_remove_tree(path: PathLike) -> None:
    """Recursively remove ``path``; a missing path is not an error."""

    target = Path(path)
    if target.is_symlink() or target.is_file():
        target.unlink(missing_ok=True)
        return
    if not target.exists():
        return
    shutil.rmtree(target, onerror=_make_writable_and_retry)


def force_remove_file(path: PathLike) -> None:
    """Remove one file; a missing file is not an error."""

    Path(path).unlink(missing_ok=True)


def _make_writable_and_retry(function, path, _excinfo) -> None:  # type: ignore[no-untyped-def]
    # Read-only entries (common in installed dependency trees on Windows).
    os.chmod(path, stat.S_IWRITE)
    function(path)
