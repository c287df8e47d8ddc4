"""
check-prepublish — configuration package

File: src/check_prepublish/config/__init__.py

Purpose
- Settings object, validation, discovery and layered merging.
"""

from check_prepublish.config.loader import (
    ConfigLoadError,
    env_name_for_field,
    load_config,
    load_file_config,
)
from check_prepublish.config.schema import (
    DEFAULT_CONFIG,
    FILE_CONFIG_KEYS,
    SKIP_FIELDS,
    CheckerConfig,
    ConfigValidationError,
    ConfigValidationIssue,
    default_config,
    merge_config,
    validate_config,
)

__all__ = [
    "CheckerConfig",
    "ConfigLoadError",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "DEFAULT_CONFIG",
    "FILE_CONFIG_KEYS",
    "SKIP_FIELDS",
    "default_config",
    "env_name_for_field",
    "load_config",
    "load_file_config",
    "merge_config",
    "validate_config",
]
