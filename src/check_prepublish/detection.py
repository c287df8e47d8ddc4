"""Package-kind detection from manifest fields."""

from __future__ import annotations

from check_prepublish.constants import DEFAULT_SERVICE_ENTRY
from check_prepublish.domain import PackageDescriptor, PackageInfo, PackageKind


def detect(descriptor: PackageDescriptor) -> PackageInfo:
    """
    Classify ``descriptor``.

    Precedence, highest first: service identity, executable entries, module.
    Every descriptor yields exactly one kind.
    """

    if descriptor.service_identity:
        return PackageInfo(
            kind=PackageKind.SERVICE,
            name=descriptor.name,
            version=descriptor.version,
            service_name=service_name_from_identity(descriptor.service_identity),
            service_identity=descriptor.service_identity,
            main=descriptor.main,
        )

    if descriptor.has_executables:
        return PackageInfo(
            kind=PackageKind.EXECUTABLE,
            name=descriptor.name,
            version=descriptor.version,
            main=descriptor.main,
        )

    return PackageInfo(
        kind=PackageKind.MODULE,
        name=descriptor.name,
        version=descriptor.version,
        main=descriptor.main,
    )


def service_name_from_identity(identity: str) -> str:
    """``io.github.owner/mcp-pdf`` -> ``mcp-pdf``; identities without ``/`` pass through."""

    tail = identity.rsplit("/", 1)[-1]
    return tail or identity


def service_name_from_package_name(name: str) -> str:
    """``@scope/name`` -> ``name``; unscoped names pass through."""

    if name.startswith("@"):
        parts = name.split("/")
        if len(parts) > 1 and parts[1]:
            return parts[1]
    return name


def executable_name(descriptor: PackageDescriptor) -> str | None:
    """
    Name the package manager links the primary executable under.

    A single-path ``bin`` is linked under the unscoped package name; a map uses
    its first key.
    """

    if isinstance(descriptor.bin, str):
        return service_name_from_package_name(descriptor.name)
    if descriptor.bin:
        return next(iter(descriptor.bin))
    return None


def service_entry(descriptor: PackageDescriptor) -> str:
    """Relative path of the script that starts the service."""

    paths = descriptor.executable_paths()
    return paths[0] if paths else DEFAULT_SERVICE_ENTRY


__all__ = [
    "detect",
    "executable_name",
    "service_entry",
    "service_name_from_identity",
    "service_name_from_package_name",
]
