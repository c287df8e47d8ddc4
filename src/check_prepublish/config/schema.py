"""
check-prepublish — configuration schema and validation.

File: src/check_prepublish/config/schema.py

Purpose
- Define the checker settings object, its defaults, and strict validation of
  partial configs read from ``.ncprc.*`` files or the manifest ``ncp`` field.

What should be included in this file
- ``CheckerConfig``: immutable settings for one verification run.
- Key mapping between file spellings (camelCase or snake_case) and fields.
- Deterministic merge: highest precedence wins for scalars, arrays concatenate.

Functional requirements
- Validate payloads and report structured issues (field path + message).
- Unknown keys are ignored, never stored.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, Literal

from check_prepublish.observability.sinks import ProgressLogger

SKIP_FIELDS: Final[tuple[str, ...]] = (
    "skip_build",
    "skip_check_required_files",
    "skip_package",
    "skip_check_import",
    "skip_check_bin",
    "skip_check_service",
)
ARRAY_FIELDS: Final[tuple[str, ...]] = ("required_files",)

_FieldKind = Literal["bool", "str", "str_list", "float"]

FIELD_KINDS: Final[dict[str, _FieldKind]] = {
    "required_files": "str_list",
    "test_file": "str",
    "command_timeout_seconds": "float",
    "service_request_timeout_seconds": "float",
    **{name: "bool" for name in SKIP_FIELDS},
}

# File spellings accepted for each field; the original camelCase keys come first.
FILE_CONFIG_KEYS: Final[dict[str, str]] = {
    "requiredFiles": "required_files",
    "testFile": "test_file",
    "skipBuild": "skip_build",
    "skipCheckRequiredFiles": "skip_check_required_files",
    "skipPackage": "skip_package",
    "skipCheckImport": "skip_check_import",
    "skipCheckBin": "skip_check_bin",
    "skipCheckService": "skip_check_service",
    "commandTimeoutSeconds": "command_timeout_seconds",
    "serviceRequestTimeoutSeconds": "service_request_timeout_seconds",
    **{name: name for name in FIELD_KINDS},
}

DEFAULT_CONFIG: Final[dict[str, Any]] = {
    "required_files": [],
    "test_file": None,
    "command_timeout_seconds": None,
    "service_request_timeout_seconds": 30.0,
    **{name: False for name in SKIP_FIELDS},
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    path: str
    message: str

    def render(self) -> str:
        return f"{self.path}: {self.message}"


class ConfigValidationError(ValueError):
    """Raised when a config payload has fields of the wrong type."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        details = "; ".join(issue.render() for issue in self.issues)
        super().__init__(f"invalid configuration: {details}")


@dataclass(frozen=True, slots=True)
class CheckerConfig:
    """Immutable settings for one verification run."""

    package_dir: Path = field(default_factory=Path.cwd)
    required_files: tuple[str, ...] = ()
    test_file: str | None = None
    skip_build: bool = False
    skip_check_required_files: bool = False
    skip_package: bool = False
    skip_check_import: bool = False
    skip_check_bin: bool = False
    skip_check_service: bool = False
    command_timeout_seconds: float | None = None
    service_request_timeout_seconds: float = 30.0
    logger: ProgressLogger | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "package_dir", Path(self.package_dir).resolve())
        object.__setattr__(self, "required_files", tuple(self.required_files))
        if self.command_timeout_seconds is not None and self.command_timeout_seconds <= 0:
            raise ValueError("CheckerConfig.command_timeout_seconds must be > 0")
        if self.service_request_timeout_seconds <= 0:
            raise ValueError("CheckerConfig.service_request_timeout_seconds must be > 0")

    @classmethod
    def from_mapping(
        cls,
        payload: Mapping[str, object],
        *,
        package_dir: str | Path | None = None,
        logger: ProgressLogger | None = None,
    ) -> CheckerConfig:
        """Build a config from a merged snake_case mapping."""

        values = merge_config(default_config(), validate_config(payload))
        return cls(
            package_dir=Path(package_dir) if package_dir is not None else Path.cwd(),
            required_files=tuple(values["required_files"]),
            test_file=values["test_file"],
            skip_build=values["skip_build"],
            skip_check_required_files=values["skip_check_required_files"],
            skip_package=values["skip_package"],
            skip_check_import=values["skip_check_import"],
            skip_check_bin=values["skip_check_bin"],
            skip_check_service=values["skip_check_service"],
            command_timeout_seconds=values["command_timeout_seconds"],
            service_request_timeout_seconds=values["service_request_timeout_seconds"],
            logger=logger,
        )


def default_config() -> dict[str, Any]:
    return {
        key: list(value) if isinstance(value, list) else value
        for key, value in DEFAULT_CONFIG.items()
    }


def normalize_keys(payload: Mapping[str, object]) -> dict[str, object]:
    """Map file spellings to field names, dropping unknown keys."""

    normalized: dict[str, object] = {}
    for key in payload:
        if not isinstance(key, str):
            continue
        field_name = FILE_CONFIG_KEYS.get(key)
        if field_name is None:
            continue
        normalized[field_name] = payload[key]
    return normalized


def collect_issues(payload: Mapping[str, object]) -> list[ConfigValidationIssue]:
    issues: list[ConfigValidationIssue] = []
    for name in sorted(payload):
        kind = FIELD_KINDS.get(name)
        if kind is None:
            continue
        value = payload[name]
        if value is None:
            continue
        message = _type_issue(value, kind)
        if message is not None:
            issues.append(ConfigValidationIssue(path=name, message=message))
    return issues


def validate_config(payload: Mapping[str, object]) -> dict[str, Any]:
    """Return a normalized partial config or raise ``ConfigValidationError``."""

    normalized = normalize_keys(payload)
    issues = collect_issues(normalized)
    if issues:
        raise ConfigValidationError(issues)

    validated: dict[str, Any] = {}
    for name, value in normalized.items():
        if value is None:
            continue
        if FIELD_KINDS[name] == "str_list":
            validated[name] = [item for item in value if isinstance(item, str)]  # type: ignore[union-attr]
        elif FIELD_KINDS[name] == "float":
            validated[name] = float(value)  # type: ignore[arg-type]
        else:
            validated[name] = value
    return validated


def merge_config(base: Mapping[str, object], override: Mapping[str, object]) -> dict[str, Any]:
    """
    Merge ``override`` on top of ``base``.

    Scalars from ``override`` win when explicitly set (not ``None``). Array
    fields concatenate with ``base`` entries first.
    """

    merged: dict[str, Any] = {}
    for key, value in base.items():
        merged[key] = list(value) if isinstance(value, list) else value

    for key, value in override.items():
        if value is None:
            continue
        if key in ARRAY_FIELDS:
            existing = merged.get(key)
            prefix = list(existing) if isinstance(existing, list) else []
            merged[key] = [*prefix, *value]  # type: ignore[misc]
            continue
        merged[key] = value
    return merged


def _type_issue(value: object, kind: _FieldKind) -> str | None:
    if kind == "bool":
        if not isinstance(value, bool):
            return f"expected boolean, got {type(value).__name__}"
        return None
    if kind == "str":
        if not isinstance(value, str):
            return f"expected string, got {type(value).__name__}"
        return None
    if kind == "float":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return f"expected number, got {type(value).__name__}"
        if not math.isfinite(float(value)) or value <= 0:
            return "must be a finite number > 0"
        return None
    if not isinstance(value, list):
        return f"expected array of strings, got {type(value).__name__}"
    for index, item in enumerate(value):
        if not isinstance(item, str):
            return f"item [{index}] expected string, got {type(item).__name__}"
    return None


__all__ = [
    "ARRAY_FIELDS",
    "CheckerConfig",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "DEFAULT_CONFIG",
    "FIELD_KINDS",
    "FILE_CONFIG_KEYS",
    "SKIP_FIELDS",
    "collect_issues",
    "default_config",
    "merge_config",
    "normalize_keys",
    "validate_config",
]
