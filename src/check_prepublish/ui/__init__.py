"""Command-line surface."""

from check_prepublish.ui.cli import build_parser, run_cli

__all__ = ["build_parser", "run_cli"]
