"""Module entrypoint for ``python -m check_prepublish``."""

from __future__ import annotations

from check_prepublish.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
