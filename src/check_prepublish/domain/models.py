"""Frozen domain models for one verification run."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import NoReturn

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]


class PackageKind(StrEnum):
    """Primary consumption mode of the verified artifact."""

    MODULE = "module"
    EXECUTABLE = "executable"
    SERVICE = "service"

    @property
    def label(self) -> str:
        return _KIND_LABELS[self]


_KIND_LABELS: dict[PackageKind, str] = {
    PackageKind.MODULE: "Normal Module",
    PackageKind.EXECUTABLE: "CLI Tool",
    PackageKind.SERVICE: "MCP Server",
}


@dataclass(frozen=True, slots=True)
class PackageDescriptor:
    """
    Parsed manifest fields consumed by the checker.

    ``bin`` keeps the manifest shape: ``None``, a single path, or an
    insertion-ordered name -> path mapping. Fields the checker does not read are
    never stored.
    """

    name: str
    version: str = ""
    main: str | None = None
    module: str | None = None
    types: str | None = None
    bin: str | Mapping[str, str] | None = None
    has_build_script: bool = False
    service_identity: str | None = None
    settings: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            _fail("PackageDescriptor.name", "must be a non-empty string")
        if isinstance(self.bin, Mapping):
            object.__setattr__(self, "bin", dict(self.bin))
        object.__setattr__(self, "settings", dict(self.settings))

    @property
    def has_executables(self) -> bool:
        return bool(self.bin)

    def executable_paths(self) -> tuple[str, ...]:
        """Executable targets in declaration order."""

        if self.bin is None:
            return ()
        if isinstance(self.bin, str):
            return (self.bin,)
        return tuple(self.bin.values())

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> PackageDescriptor:
        """Build a descriptor by explicit field-by-field extraction."""

        name = payload.get("name")
        if not isinstance(name, str) or not name.strip():
            _fail("package.json", "field 'name' must be a non-empty string")

        scripts = payload.get("scripts")
        build_script = scripts.get("build") if isinstance(scripts, Mapping) else None

        types = _optional_str(payload.get("types"), "types")
        if types is None:
            types = _optional_str(payload.get("typings"), "typings")

        settings = payload.get("ncp")

        return cls(
            name=name,
            version=_optional_str(payload.get("version"), "version") or "",
            main=_optional_str(payload.get("main"), "main"),
            module=_optional_str(payload.get("module"), "module"),
            types=types,
            bin=_bin_field(payload.get("bin")),
            has_build_script=isinstance(build_script, str) and bool(build_script.strip()),
            service_identity=_optional_str(payload.get("mcpName"), "mcpName"),
            settings=settings if isinstance(settings, Mapping) else {},
        )


@dataclass(frozen=True, slots=True)
class PackageInfo:
    """Classification derived once from a descriptor."""

    kind: PackageKind
    name: str
    version: str
    service_name: str | None = None
    service_identity: str | None = None
    main: str | None = None

    @property
    def label(self) -> str:
        return self.kind.label

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "kind": self.kind.value,
            "name": self.name,
            "version": self.version,
            "service_name": self.service_name,
            "service_identity": self.service_identity,
            "main": self.main,
        }


@dataclass(frozen=True, slots=True)
class VerificationReport:
    """Flat user-facing result of ``PrepublishChecker.check``."""

    errors: tuple[str, ...]
    package_info: PackageInfo

    def __post_init__(self) -> None:
        object.__setattr__(self, "errors", tuple(self.errors))

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "success": self.success,
            "errors": list(self.errors),
            "package_info": self.package_info.to_dict(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _fail(path: str, message: str) -> NoReturn:
    raise ValueError(f"{path}: {message}")


def _optional_str(value: object, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        _fail("package.json", f"field {field_name!r} must be a string")
    return value or None


def _bin_field(value: object) -> str | dict[str, str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, Mapping):
        entries: dict[str, str] = {}
        for key, target in value.items():
            if not isinstance(key, str) or not isinstance(target, str):
                _fail("package.json", "field 'bin' must map names to path strings")
            entries[key] = target
        return entries or None
    _fail("package.json", "field 'bin' must be a string or an object")


__all__ = [
    "JSONScalar",
    "JSONValue",
    "PackageDescriptor",
    "PackageInfo",
    "PackageKind",
    "VerificationReport",
]
