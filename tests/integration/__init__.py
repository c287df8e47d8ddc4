"""Integration tests: real subprocesses, and real npm/node where available."""
