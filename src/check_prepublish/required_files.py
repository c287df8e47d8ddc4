"""Required and excluded file-set resolution."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from check_prepublish.constants import EXCLUDED_PATHS, MANIFEST_FILE

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from check_prepublish.domain import PackageDescriptor


def resolve_required_files(
    descriptor: PackageDescriptor,
    extra: Iterable[str] = (),
) -> tuple[str, ...]:
    """
    Return the ordered paths that must exist in the artifact.

    The manifest always comes first, then ``main``, ``module``, ``types``, the
    executable targets, and finally ``extra`` in the order supplied. Paths are
    neither normalized nor deduplicated: ``./x`` and ``x`` stay distinct.
    """

    files: list[str] = [MANIFEST_FILE]
    if descriptor.main:
        files.append(descriptor.main)
    if descriptor.module:
        files.append(descriptor.module)
    if descriptor.types:
        files.append(descriptor.types)
    files.extend(descriptor.executable_paths())
    files.extend(extra)
    return tuple(files)


def missing_files(base_dir: str | Path, files: Sequence[str]) -> tuple[str, ...]:
    """Every entry of ``files`` that does not exist under ``base_dir``."""

    base = Path(base_dir)
    return tuple(item for item in files if not (base / item).exists())


def first_missing_file(base_dir: str | Path, files: Sequence[str]) -> str | None:
    """First entry of ``files`` missing under ``base_dir``; stops at the first miss."""

    base = Path(base_dir)
    for item in files:
        if not (base / item).exists():
            return item
    return None


def find_excluded_entry(
    package_dir: str | Path,
    excluded: Sequence[str] = EXCLUDED_PATHS,
) -> str | None:
    """
    Return the first excluded entry present in ``package_dir``.

    Entries starting with ``.`` match any top-level name with that prefix
    (``.env`` catches ``.env.local``). Other entries match exact presence only,
    so ``test`` does not catch ``testing``.
    """

    root = Path(package_dir)
    for entry in excluded:
        if entry.startswith("."):
            for child in sorted(root.iterdir(), key=lambda item: item.name):
                if child.name.startswith(entry):
                    return child.name
        elif (root / entry).exists():
            return entry
    return None


__all__ = [
    "find_excluded_entry",
    "first_missing_file",
    "missing_files",
    "resolve_required_files",
]
