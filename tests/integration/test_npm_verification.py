"""
check-prepublish — end-to-end verification against the real npm/node toolchain

File: tests/integration/test_npm_verification.py

Purpose
- Run ``PrepublishChecker`` on small fixture packages with real ``npm pack``,
  ``npm install`` and ``node``.

Functional requirements
- Skipped when npm or node is not on PATH.
- Fixture packages have no dependencies, so installs work offline.
"""

from __future__ import annotations

import json
import shutil
import tempfile
from pathlib import Path

import pytest

from check_prepublish import CheckerConfig, MemorySink, PackageKind, PrepublishChecker

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        shutil.which("npm") is None or shutil.which("node") is None,
        reason="npm and node are required",
    ),
]

_BUILD_SCRIPT = """\
import { mkdirSync, writeFileSync } from 'node:fs';

mkdirSync('dist', { recursive: true });
writeFileSync('dist/index.js', 'export const answer = 42;\\n');
"""

_CLI_SCRIPT = """\
#!/usr/bin/env node
if (process.argv.includes('--version')) {
  console.log('1.0.0');
  process.exit(0);
}
console.log('fixture cli');
"""

_SERVER_SCRIPT = """\
#!/usr/bin/env node
import { createInterface } from 'node:readline';

const send = (message) => process.stdout.write(JSON.stringify(message) + '\\n');

createInterface({ input: process.stdin }).on('line', (line) => {
  if (!line.trim()) return;
  const message = JSON.parse(line);
  if (message.id === undefined || !message.method) return;
  switch (message.method) {
    case 'initialize':
      send({
        jsonrpc: '2.0',
        id: message.id,
        result: {
          protocolVersion: message.params.protocolVersion,
          capabilities: { tools: {} },
          serverInfo: { name: 'echo-server', version: '1.0.0' },
        },
      });
      break;
    case 'tools/list':
      send({ jsonrpc: '2.0', id: message.id, result: { tools: [{ name: 'echo', inputSchema: { type: 'object' } }] } });
      break;
    case 'tools/call':
      send({
        jsonrpc: '2.0',
        id: message.id,
        result: { content: [{ type: 'text', text: String(message.params.arguments?.text ?? '') }] },
      });
      break;
    default:
      send({ jsonrpc: '2.0', id: message.id, error: { code: -32601, message: 'Method not found' } });
  }
});

process.on('SIGINT', () => process.exit(0));
"""

_VALIDATION_MODULE = """\
async def check_service(client):
    tools = await client.list_tools()
    assert [tool["name"] for tool in tools] == ["echo"]
    result = await client.call_tool("echo", {"text": "hello"})
    assert result["content"][0]["text"] == "hello"
"""


@pytest.fixture(autouse=True)
def _quiet_npm(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("npm_config_audit", "false")
    monkeypatch.setenv("npm_config_fund", "false")
    monkeypatch.setenv("npm_config_update_notifier", "false")


def _write_package(root: Path, manifest: dict[str, object], files: dict[str, str]) -> Path:
    root.mkdir(parents=True)
    (root / "package.json").write_text(json.dumps(manifest, indent=2), encoding="utf-8")
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


def _minimal_module(root: Path) -> Path:
    return _write_package(
        root,
        {
            "name": "test-minimal-module",
            "version": "1.0.0",
            "type": "module",
            "main": "dist/index.js",
            "files": ["dist"],
            "scripts": {"build": "node build.mjs"},
        },
        {"build.mjs": _BUILD_SCRIPT},
    )


def _workspace_count() -> int:
    root = Path(tempfile.gettempdir()) / "package-checker"
    return len(list(root.iterdir())) if root.exists() else 0


@pytest.mark.asyncio
async def test_minimal_module_passes(tmp_path: Path) -> None:
    package_dir = _minimal_module(tmp_path / "minimal-module")
    before = _workspace_count()

    report = await PrepublishChecker(
        CheckerConfig(package_dir=package_dir, logger=MemorySink(), command_timeout_seconds=120)
    ).check()

    assert report.success is True, report.errors
    assert report.package_info.name == "test-minimal-module"
    assert report.package_info.version == "1.0.0"
    assert report.package_info.kind is PackageKind.MODULE
    assert _workspace_count() == before
    assert not list(package_dir.glob("*.tgz"))


@pytest.mark.asyncio
async def test_missing_build_output_fails(tmp_path: Path) -> None:
    package_dir = _minimal_module(tmp_path / "unbuilt-module")

    report = await PrepublishChecker(
        CheckerConfig(package_dir=package_dir, logger=MemorySink(), skip_build=True)
    ).check()

    assert report.success is False
    assert "Missing required file: dist/index.js" in report.errors


@pytest.mark.asyncio
async def test_extra_required_files_are_checked(tmp_path: Path) -> None:
    package_dir = _minimal_module(tmp_path / "docs-module")
    (package_dir / "README.md").write_text("# fixture\n", encoding="utf-8")

    sink = MemorySink()
    report = await PrepublishChecker(
        CheckerConfig(
            package_dir=package_dir,
            logger=sink,
            required_files=("README.md", "LICENSE"),
            skip_package=True,
            skip_check_import=True,
        )
    ).check()

    assert report.errors == ("Missing required file: LICENSE",)
    assert any("Verifying" in line for line in sink.lines)


@pytest.mark.asyncio
async def test_cli_tool_passes(tmp_path: Path) -> None:
    package_dir = _write_package(
        tmp_path / "cli-tool",
        {
            "name": "test-cli-tool",
            "version": "1.0.0",
            "bin": {"test-cli-tool": "bin/cli.js"},
            "files": ["bin"],
        },
        {"bin/cli.js": _CLI_SCRIPT},
    )
    (package_dir / "bin" / "cli.js").chmod(0o755)

    report = await PrepublishChecker(CheckerConfig(package_dir=package_dir, logger=MemorySink())).check()

    assert report.success is True, report.errors
    assert report.package_info.kind is PackageKind.EXECUTABLE


@pytest.mark.asyncio
async def test_service_passes_with_validation_module(tmp_path: Path) -> None:
    package_dir = _write_package(
        tmp_path / "echo-server",
        {
            "name": "@fixture/echo-server",
            "version": "1.0.0",
            "type": "module",
            "mcpName": "io.github.fixture/echo-server",
            "bin": {"echo-server": "bin/server.js"},
            "files": ["bin"],
        },
        {"bin/server.js": _SERVER_SCRIPT, "checks/check_echo.py": _VALIDATION_MODULE},
    )
    sink = MemorySink()

    report = await PrepublishChecker(
        CheckerConfig(package_dir=package_dir, logger=sink, test_file="checks/check_echo.py")
    ).check()

    assert report.success is True, report.errors
    assert report.package_info.service_name == "echo-server"
    assert "✅ Custom tests passed" in sink.lines


@pytest.mark.asyncio
async def test_env_file_in_archive_is_rejected(tmp_path: Path) -> None:
    package_dir = _write_package(
        tmp_path / "leaky",
        {"name": "test-leaky", "version": "1.0.0", "main": "index.js"},
        {"index.js": "module.exports = 1;\n", ".env.local": "TOKEN=abc\n"},
    )

    report = await PrepublishChecker(
        CheckerConfig(package_dir=package_dir, logger=MemorySink(), skip_check_import=True)
    ).check()

    assert report.errors == (
        "Package verification failed: File/directory should NOT be in package: .env.local",
    )


@pytest.mark.asyncio
async def test_module_that_throws_on_load_reports_the_error(tmp_path: Path) -> None:
    package_dir = _write_package(
        tmp_path / "throws-on-load",
        {"name": "test-throws-on-load", "version": "1.0.0", "type": "module", "main": "index.js"},
        {"index.js": "throw new Error('boom-at-load');\n"},
    )

    report = await PrepublishChecker(
        CheckerConfig(package_dir=package_dir, logger=MemorySink(), command_timeout_seconds=120)
    ).check()

    assert report.success is False
    assert any(
        error.startswith("Failed to import module:") and "Error: boom-at-load" in error
        for error in report.errors
    ), report.errors
