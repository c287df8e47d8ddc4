"""Observability primitives: diagnostic logging and progress sinks."""

from check_prepublish.observability.logging import (
    LoggingConfig,
    correlation_scope,
    setup_logging,
    shutdown_logging,
)
from check_prepublish.observability.sinks import (
    ConsoleSink,
    LoggingSink,
    MemorySink,
    ProgressLogger,
)

__all__ = [
    "ConsoleSink",
    "LoggingConfig",
    "LoggingSink",
    "MemorySink",
    "ProgressLogger",
    "correlation_scope",
    "setup_logging",
    "shutdown_logging",
]
