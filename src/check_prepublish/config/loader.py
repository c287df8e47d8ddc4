"""
check-prepublish — runtime config loader.

File: src/check_prepublish/config/loader.py

Purpose
- Discover the partial config stored next to the artifact and layer it with
  environment and explicit overrides into one ``CheckerConfig``.

What should be included in this file
- Discovery: ``.ncprc.json``, then ``.ncprc.yaml``/``.ncprc.yml``, then the
  ``ncp`` field of ``package.json``, else empty.
- Precedence logic: explicit > env (NCP_) > file > defaults; arrays concatenate.

Functional requirements
- An unreadable or unparsable config file is skipped and discovery falls
  through to the next source.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

import yaml

from check_prepublish.config.schema import (
    FIELD_KINDS,
    CheckerConfig,
    merge_config,
    validate_config,
)
from check_prepublish.constants import (
    CONFIG_FILE_JSON,
    CONFIG_FILE_YAML,
    ENV_PREFIX,
    MANIFEST_FILE,
    MANIFEST_SETTINGS_FIELD,
)
from check_prepublish.observability.sinks import ProgressLogger

logger = logging.getLogger(__name__)

_BOOLEAN_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_BOOLEAN_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})


class ConfigLoadError(ValueError):
    """Raised when environment overrides cannot be coerced."""


def load_file_config(package_dir: str | Path) -> dict[str, Any]:
    """Return the first discovered partial config, normalized to field names."""

    root = Path(package_dir)

    json_payload = _read_json_object(root / CONFIG_FILE_JSON)
    if json_payload is not None:
        logger.debug("using config file %s", root / CONFIG_FILE_JSON)
        return validate_config(json_payload)

    for name in CONFIG_FILE_YAML:
        yaml_payload = _read_yaml_object(root / name)
        if yaml_payload is not None:
            logger.debug("using config file %s", root / name)
            return validate_config(yaml_payload)

    manifest = _read_json_object(root / MANIFEST_FILE)
    if manifest is not None:
        settings = manifest.get(MANIFEST_SETTINGS_FIELD)
        if isinstance(settings, Mapping):
            logger.debug("using %r field of %s", MANIFEST_SETTINGS_FIELD, MANIFEST_FILE)
            return validate_config(settings)

    return {}


def load_config(
    package_dir: str | Path | None = None,
    *,
    cli_overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
    progress_logger: ProgressLogger | None = None,
) -> CheckerConfig:
    """Load effective config with precedence: explicit > env > file > defaults."""

    root = Path(package_dir) if package_dir is not None else Path.cwd()
    env_map = dict(os.environ if environ is None else environ)

    merged = merge_config({}, load_file_config(root))
    merged = merge_config(merged, _collect_env_overrides(env_map))
    merged = merge_config(merged, validate_config(dict(cli_overrides or {})))

    return CheckerConfig.from_mapping(merged, package_dir=root, logger=progress_logger)


def env_name_for_field(name: str) -> str:
    return ENV_PREFIX + name.upper()


def _read_json_object(path: Path) -> dict[str, Any] | None:
    if not path.is_file():
        return None
    try:
        parsed = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("ignoring unreadable config source %s: %s", path, exc)
        return None
    if not isinstance(parsed, dict):
        logger.warning("ignoring config source %s: root must be an object", path)
        return None
    return parsed


def _read_yaml_object(path: Path) -> dict[str, Any] | None:
    if not path.is_file():
        return None
    try:
        parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("ignoring unreadable config source %s: %s", path, exc)
        return None
    if not isinstance(parsed, dict):
        logger.warning("ignoring config source %s: root must be a mapping", path)
        return None
    return parsed


def _collect_env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for name in sorted(FIELD_KINDS):
        env_name = env_name_for_field(name)
        raw = environ.get(env_name)
        if raw is None:
            continue
        overrides[name] = _coerce_env(raw, name, env_name)
    return overrides


def _coerce_env(raw: str, name: str, env_name: str) -> object:
    kind = FIELD_KINDS[name]
    value = raw.strip()
    if kind == "str":
        return value or None
    if kind == "str_list":
        return [part.strip() for part in value.split(",") if part.strip()]
    if kind == "float":
        try:
            return float(value)
        except ValueError as exc:
            raise ConfigLoadError(f"{env_name} -> {name} must be a number") from exc

    lowered = value.lower()
    if lowered in _BOOLEAN_TRUE:
        return True
    if lowered in _BOOLEAN_FALSE:
        return False
    raise ConfigLoadError(
        f"{env_name} -> {name} must be a boolean (true/false/1/0/yes/no/on/off)"
    )


__all__ = [
    "ConfigLoadError",
    "env_name_for_field",
    "load_config",
    "load_file_config",
]
