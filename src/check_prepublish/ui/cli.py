"""Command-line interface for check-prepublish."""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Final

from check_prepublish import __version__
from check_prepublish.checker import PrepublishChecker
from check_prepublish.config import load_config
from check_prepublish.observability import (
    ConsoleSink,
    LoggingConfig,
    setup_logging,
    shutdown_logging,
)

PROG: Final[str] = "check-prepublish"

# Flag dest -> config field. Flags left unset never override file config.
_SKIP_FLAGS: Final[tuple[tuple[str, str, str], ...]] = (
    ("--no-build", "skip_build", "Skip the build step."),
    ("--no-check-required-files", "skip_check_required_files", "Skip the required-file check."),
    ("--no-pack", "skip_package", "Skip the pack-and-install simulation."),
    ("--no-check-import", "skip_check_import", "Skip the module import check."),
    ("--no-check-bin", "skip_check_bin", "Skip the executable check."),
    ("--no-check-service", "skip_check_service", "Skip the service startup check."),
)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""

    parser = argparse.ArgumentParser(
        prog=PROG,
        description=(
            "Verify an npm package before publishing.\n\n"
            "Stages:\n"
            "  1. build          npm run build (when a build script exists)\n"
            "  2. files          required files exist in the package directory\n"
            "  3. package        pack, install into a temp project, inspect contents\n"
            "  4. runtime        import the module, run the CLI, or start the server\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"{PROG} {__version__}")
    parser.add_argument(
        "--package-dir",
        default=".",
        help="Package root containing package.json (default: current directory).",
    )
    for flag, dest, help_text in _SKIP_FLAGS:
        parser.add_argument(flag, dest=dest, action="store_true", default=None, help=help_text)
    parser.add_argument(
        "--required-file",
        dest="required_files",
        action="append",
        default=None,
        metavar="PATH",
        help="Additional file that must ship with the package (repeatable).",
    )
    parser.add_argument(
        "--test-file",
        dest="test_file",
        default=None,
        metavar="PATH",
        help="Python module exporting check_service(client), run against a started server.",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Disable colored output (also respects NO_COLOR env var).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        type=str.upper,
        help="Diagnostic log level written to stderr (default: WARNING).",
    )
    parser.add_argument(
        "--log-format",
        default="text",
        choices=("text", "json"),
        help="Diagnostic log format (default: text).",
    )
    return parser


def cli_overrides(namespace: argparse.Namespace) -> dict[str, Any]:
    """Config values given explicitly on the command line."""

    overrides: dict[str, Any] = {}
    for _flag, dest, _help in _SKIP_FLAGS:
        value = getattr(namespace, dest, None)
        if value is not None:
            overrides[dest] = value
    if namespace.required_files:
        overrides["required_files"] = list(namespace.required_files)
    if namespace.test_file:
        overrides["test_file"] = namespace.test_file
    return overrides


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, run the verification, and return the process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)

    setup_logging(LoggingConfig(level=namespace.log_level, log_format=namespace.log_format))
    try:
        sink = ConsoleSink(no_color=namespace.no_color, file=sys.stdout)
        config = load_config(
            Path(namespace.package_dir).resolve(),
            cli_overrides=cli_overrides(namespace),
            progress_logger=sink,
        )
        checker = PrepublishChecker(config)
        report = asyncio.run(checker.check())
    finally:
        shutdown_logging()
    return 0 if report.success else 1


def main(argv: Sequence[str] | None = None) -> int:
    """Compatibility wrapper for main-module wiring."""

    return run_cli(argv)


__all__ = ["build_parser", "cli_overrides", "main", "run_cli"]
