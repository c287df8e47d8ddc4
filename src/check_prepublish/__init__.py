"""
check-prepublish — pre-publish verification for npm packages

File: src/check_prepublish/__init__.py

Purpose
- Package root. Exposes version metadata and the small public API:
  ``PrepublishChecker``, ``CheckerConfig``, ``VerificationReport`` and the
  config helpers.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
- Heavy submodules load lazily on first attribute access.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

__version__ = "0.1.0"

_LAZY_EXPORTS: dict[str, str] = {
    "CheckerConfig": "check_prepublish.config",
    "ConsoleSink": "check_prepublish.observability",
    "LoggingSink": "check_prepublish.observability",
    "MemorySink": "check_prepublish.observability",
    "PackageInfo": "check_prepublish.domain",
    "PackageKind": "check_prepublish.domain",
    "PrepublishChecker": "check_prepublish.checker",
    "ProgressLogger": "check_prepublish.observability",
    "VerificationReport": "check_prepublish.domain",
    "detect": "check_prepublish.detection",
    "load_config": "check_prepublish.config",
    "load_file_config": "check_prepublish.config",
    "merge_config": "check_prepublish.config",
    "resolve_required_files": "check_prepublish.required_files",
    "run_check": "check_prepublish.checker",
}


def __getattr__(name: str) -> Any:
    module_name = _LAZY_EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    value = getattr(import_module(module_name), name)
    globals()[name] = value
    return value


__all__ = ["__version__", *sorted(_LAZY_EXPORTS)]
