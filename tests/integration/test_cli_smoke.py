"""
check-prepublish — CLI subprocess smoke contracts

File: tests/integration/test_cli_smoke.py

Purpose
- Enforce CLI behavior for `python -m check_prepublish` as a real subprocess.
- Verify exit codes, progress output on stdout, and diagnostics on stderr.
- No npm or node needed; every toolchain-backed stage is skipped.
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = PROJECT_ROOT / "src"

_OFFLINE_FLAGS = ("--no-build", "--no-pack", "--no-check-import", "--no-check-bin", "--no-check-service")


def _run_cli(cwd: Path, *args: str) -> subprocess.CompletedProcess[str]:
    env = {key: value for key, value in os.environ.items() if not key.startswith("NCP_")}
    existing_pythonpath = env.get("PYTHONPATH")
    src_pythonpath = str(SRC_PATH)
    env["PYTHONPATH"] = (
        src_pythonpath if not existing_pythonpath else f"{src_pythonpath}{os.pathsep}{existing_pythonpath}"
    )
    env["PYTHONIOENCODING"] = "utf-8"
    return subprocess.run(
        [sys.executable, "-m", "check_prepublish", *args],
        cwd=cwd,
        text=True,
        encoding="utf-8",
        capture_output=True,
        check=False,
        env=env,
    )


def _write(path: Path, contents: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(contents, encoding="utf-8")


def _seed_package(root: Path, manifest: dict[str, object]) -> None:
    _write(root / "package.json", json.dumps(manifest, indent=2))


def test_cli_passes_for_complete_package(tmp_path: Path) -> None:
    _seed_package(tmp_path, {"name": "smoke-ok", "version": "0.3.0", "main": "lib/index.js"})
    _write(tmp_path / "lib" / "index.js", "module.exports = {};\n")

    completed = _run_cli(tmp_path, "--no-color", *_OFFLINE_FLAGS)

    assert completed.returncode == 0, completed.stderr
    assert "Verifying smoke-ok v0.3.0" in completed.stdout
    assert "Type: Normal Module" in completed.stdout
    assert "Package is ready to publish!" in completed.stdout


def test_cli_reports_every_missing_file(tmp_path: Path) -> None:
    _seed_package(
        tmp_path,
        {"name": "smoke-bad", "version": "1.0.0", "main": "dist/index.js", "types": "dist/index.d.ts"},
    )

    completed = _run_cli(tmp_path, "--no-color", *_OFFLINE_FLAGS)

    assert completed.returncode == 1
    assert "❌ VERIFICATION FAILED" in completed.stdout
    assert "  ❌ Missing required file: dist/index.js" in completed.stdout
    assert "  ❌ Missing required file: dist/index.d.ts" in completed.stdout


def test_cli_package_dir_flag_and_json_logs(tmp_path: Path) -> None:
    package_dir = tmp_path / "nested" / "pkg"
    _seed_package(package_dir, {"name": "smoke-nested", "version": "2.0.0"})
    _write(package_dir / "index.js", "")

    completed = _run_cli(
        tmp_path,
        "--package-dir",
        str(package_dir),
        "--log-level",
        "debug",
        "--log-format",
        "json",
        *_OFFLINE_FLAGS,
    )

    assert completed.returncode == 0, completed.stderr
    assert "Verifying smoke-nested v2.0.0" in completed.stdout
    records = [json.loads(line) for line in completed.stderr.splitlines() if line.startswith("{")]
    assert records
    assert all("message" in record for record in records)


def test_cli_missing_manifest_is_config_error(tmp_path: Path) -> None:
    completed = _run_cli(tmp_path)

    assert completed.returncode == 2
    assert "Error:" in completed.stderr
    assert "package.json not found" in completed.stderr
