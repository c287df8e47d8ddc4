"""Stable constants shared across the verification stages."""

from __future__ import annotations

from typing import Final

# Manifest and config discovery.
MANIFEST_FILE: Final[str] = "package.json"
CONFIG_FILE_JSON: Final[str] = ".ncprc.json"
CONFIG_FILE_YAML: Final[tuple[str, ...]] = (".ncprc.yaml", ".ncprc.yml")
MANIFEST_SETTINGS_FIELD: Final[str] = "ncp"
SERVICE_IDENTITY_FIELD: Final[str] = "mcpName"

# Installed-copy layout.
DEPENDENCY_DIR: Final[str] = "node_modules"
EXECUTABLE_SHIM_DIR: Final[str] = ".bin"
DEFAULT_MODULE_ENTRY: Final[str] = "./index.js"
DEFAULT_SERVICE_ENTRY: Final[str] = "bin/server.js"

# Entries that must never ship in the published archive. Dot-prefixed entries
# match every top-level name starting with them (.env, .env.local, ...).
EXCLUDED_PATHS: Final[tuple[str, ...]] = ("src", "test", ".env")

# Ephemeral workspaces.
TMP_SUBDIR: Final[str] = "package-checker"
WORKSPACE_PREFIX: Final[str] = "pkg-check-"

# Service runtime.
SERVICE_ENV: Final[dict[str, str]] = {"LOG_LEVEL": "error", "NODE_ENV": "test"}
SERVICE_REQUEST_TIMEOUT_SECONDS: Final[float] = 30.0
SERVICE_VALIDATION_FUNCTION: Final[str] = "check_service"

# Environment override prefix for config loading.
ENV_PREFIX: Final[str] = "NCP_"

__all__ = [
    "CONFIG_FILE_JSON",
    "CONFIG_FILE_YAML",
    "DEFAULT_MODULE_ENTRY",
    "DEFAULT_SERVICE_ENTRY",
    "DEPENDENCY_DIR",
    "ENV_PREFIX",
    "EXCLUDED_PATHS",
    "EXECUTABLE_SHIM_DIR",
    "MANIFEST_FILE",
    "MANIFEST_SETTINGS_FIELD",
    "SERVICE_ENV",
    "SERVICE_IDENTITY_FIELD",
    "SERVICE_REQUEST_TIMEOUT_SECONDS",
    "SERVICE_VALIDATION_FUNCTION",
    "TMP_SUBDIR",
    "WORKSPACE_PREFIX",
]
