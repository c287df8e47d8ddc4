"""Shared fixtures: on-disk package trees and a filesystem-backed fake npm."""

from __future__ import annotations

import json
import shutil
import tempfile
from collections.abc import Callable, Mapping
from pathlib import Path

import pytest

from check_prepublish.toolchain import CommandResult, ToolchainError
from check_prepublish.workspace import installed_package_path

PackageFactory = Callable[..., Path]


class FakeToolchain:
    """
    Simulates npm/node on the local filesystem.

    ``pack`` writes a placeholder archive next to the package, ``install``
    copies the package tree (minus archives and ``node_modules``) into the
    workspace under the ecosystem layout, and ``import_module`` fails when the
    entry file is absent. Any operation listed in ``failures`` raises a
    ``ToolchainError`` carrying the given stderr text.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, Path]] = []
        self.failures: dict[str, str] = {}
        self.archives: list[Path] = []
        self.workspaces: list[Path] = []
        self.executed: list[tuple[Path, tuple[str, ...]]] = []

    async def build(self, package_dir: Path) -> None:
        self._step("build", package_dir)

    async def pack(self, package_dir: Path) -> Path:
        self._step("pack", package_dir)
        manifest = json.loads((package_dir / "package.json").read_text(encoding="utf-8"))
        slug = manifest["name"].lstrip("@").replace("/", "-")
        archive = package_dir / f"{slug}-{manifest.get('version', '0.0.0')}.tgz"
        archive.write_bytes(b"fake-archive")
        self.archives.append(archive)
        return archive

    async def init_workspace(self, workspace: Path) -> None:
        self._step("init", workspace)
        self.workspaces.append(workspace)
        (workspace / "package.json").write_text('{"name": "workspace"}', encoding="utf-8")

    async def install(self, workspace: Path, archive: Path) -> None:
        self._step("install", workspace)
        source = archive.parent
        manifest = json.loads((source / "package.json").read_text(encoding="utf-8"))
        target = installed_package_path(workspace, manifest["name"])
        shutil.copytree(
            source,
            target,
            ignore=shutil.ignore_patterns("*.tgz", "node_modules"),
        )

        bin_field = manifest.get("bin")
        if isinstance(bin_field, str):
            names = [manifest["name"].split("/")[-1]]
        elif isinstance(bin_field, Mapping):
            names = list(bin_field)
        else:
            names = []
        shim_dir = workspace / "node_modules" / ".bin"
        for name in names:
            shim_dir.mkdir(parents=True, exist_ok=True)
            (shim_dir / name).write_text("#!/bin/sh\n", encoding="utf-8")

    async def import_module(self, module_path: Path, *, cwd: Path) -> None:
        self._step("import", module_path)
        if not module_path.exists():
            raise ToolchainError(
                _failed_result("node", f"Cannot find module '{module_path}'")
            )

    async def run_executable(self, executable: Path, args, *, cwd: Path) -> None:  # type: ignore[no-untyped-def]
        self._step("run", executable)
        self.executed.append((executable, tuple(args)))
        if not executable.exists():
            raise ToolchainError(_failed_result(str(executable), "not found"))

    def service_command(self, entry: Path) -> tuple[str, ...]:
        return ("node", str(entry))

    def operations(self) -> list[str]:
        return [name for name, _path in self.calls]

    def _step(self, name: str, path: Path) -> None:
        self.calls.append((name, path))
        message = self.failures.get(name)
        if message is not None:
            raise ToolchainError(_failed_result(name, message))


def _failed_result(command: str, stderr: str) -> CommandResult:
    return CommandResult(argv=(command,), exit_code=1, stderr=stderr)


@pytest.fixture
def fake_toolchain() -> FakeToolchain:
    return FakeToolchain()


@pytest.fixture
def isolated_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ``tempfile`` at a private directory so workspaces can be counted."""

    root = tmp_path / "system-tmp"
    root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    return root


@pytest.fixture
def make_package(tmp_path: Path) -> PackageFactory:
    """Write ``package.json`` plus the listed files into a fresh directory."""

    counter = {"value": 0}

    def _factory(
        manifest: Mapping[str, object],
        files: Mapping[str, str] | None = None,
        *,
        directory: str | None = None,
    ) -> Path:
        counter["value"] += 1
        root = tmp_path / (directory or f"pkg-{counter['value']}")
        root.mkdir(parents=True)
        (root / "package.json").write_text(json.dumps(dict(manifest), indent=2), encoding="utf-8")
        for relative, content in (files or {}).items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return _factory
