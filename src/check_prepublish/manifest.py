"""
check-prepublish — manifest loader

File: src/check_prepublish/manifest.py

Purpose
- Read and parse the artifact's ``package.json`` into a ``PackageDescriptor``.

Functional requirements
- A missing manifest or malformed manifest is a construction error and raises
  immediately; no partial descriptor is ever returned.
"""

from __future__ import annotations

import json
from pathlib import Path

from check_prepublish.constants import MANIFEST_FILE
from check_prepublish.domain import PackageDescriptor


class ManifestError(ValueError):
    """Base class for manifest construction failures."""


class ManifestNotFoundError(ManifestError, FileNotFoundError):
    """Raised when ``package.json`` is absent from the artifact root."""


class ManifestParseError(ManifestError):
    """Raised when ``package.json`` is not valid JSON or has invalid fields."""


def manifest_path(package_dir: str | Path) -> Path:
    return Path(package_dir) / MANIFEST_FILE


def read_manifest(package_dir: str | Path) -> dict[str, object]:
    """Return the raw manifest object."""

    path = manifest_path(package_dir)
    if not path.is_file():
        raise ManifestNotFoundError(f"{MANIFEST_FILE} not found at {path}")

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ManifestParseError(f"invalid JSON in {path}: {exc}") from exc
    except OSError as exc:
        raise ManifestParseError(f"unable to read {path}: {exc}") from exc

    if not isinstance(payload, dict):
        raise ManifestParseError(f"{MANIFEST_FILE} root must be an object: {path}")
    return payload


def load_descriptor(package_dir: str | Path) -> PackageDescriptor:
    """Load and validate the descriptor for the artifact rooted at ``package_dir``."""

    payload = read_manifest(package_dir)
    try:
        return PackageDescriptor.from_mapping(payload)
    except ValueError as exc:
        raise ManifestParseError(str(exc)) from exc


__all__ = [
    "ManifestError",
    "ManifestNotFoundError",
    "ManifestParseError",
    "load_descriptor",
    "manifest_path",
    "read_manifest",
]
