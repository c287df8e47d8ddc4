"""Loading and running the caller-supplied service validation routine."""

from __future__ import annotations

import importlib.util
import inspect
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from types import ModuleType
from typing import Any

from check_prepublish.constants import SERVICE_VALIDATION_FUNCTION
from check_prepublish.service.client import ServiceClient

logger = logging.getLogger(__name__)

ValidationRoutine = Callable[[ServiceClient], Awaitable[Any] | Any]


class ValidationHookError(RuntimeError):
    """The validation module could not be loaded."""


def load_validation_module(path: str | Path) -> ModuleType:
    """Import the Python file at ``path`` under a private module name."""

    module_path = Path(path).resolve()
    if not module_path.is_file():
        raise ValidationHookError(f"validation module not found: {module_path}")

    spec = importlib.util.spec_from_file_location(
        f"_check_prepublish_hook_{module_path.stem}", module_path
    )
    if spec is None or spec.loader is None:
        raise ValidationHookError(f"cannot load validation module: {module_path}")

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        raise ValidationHookError(f"error while loading {module_path}: {exc}") from exc
    return module


def find_validation_routine(module: ModuleType) -> ValidationRoutine | None:
    routine = getattr(module, SERVICE_VALIDATION_FUNCTION, None)
    if routine is None or not callable(routine):
        return None
    return routine


async def run_validation_routine(routine: ValidationRoutine, client: ServiceClient) -> None:
    """Invoke ``routine``; coroutine results are awaited, any failure propagates."""

    outcome = routine(client)
    if inspect.isawaitable(outcome):
        await outcome


__all__ = [
    "ValidationHookError",
    "ValidationRoutine",
    "find_validation_routine",
    "load_validation_module",
    "run_validation_routine",
]
