"""Diagnostic logging setup with text or JSON-lines output and correlation fields."""

from __future__ import annotations

import contextvars
import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import IO, Any, Final, Literal

LogFormat = Literal["text", "json"]

_DEFAULT_LOGGER_NAME: Final[str] = "check_prepublish"
_TEXT_FORMAT: Final[str] = "%(levelname)s %(name)s: %(message)s"

_CORRELATION_KEYS: Final[tuple[str, ...]] = ("package", "stage", "workspace")

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRIBUTES: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

_CorrelationState = tuple[tuple[str, str], ...]
_CORRELATION_CONTEXT: contextvars.ContextVar[_CorrelationState] = contextvars.ContextVar(
    "check_prepublish_correlation", default=()
)


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Configuration for the diagnostic logger."""

    level: int | str = "WARNING"
    log_format: LogFormat = "text"
    logger_name: str = _DEFAULT_LOGGER_NAME
    stream: IO[str] | None = None


class _JsonLineFormatter(logging.Formatter):
    """One JSON object per record: sorted keys, ``extra`` values under ``fields``."""

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, Any] = {
            "timestamp": _iso8601z(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_correlation_fields(record),
        }
        extras = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES
            and key not in _CORRELATION_KEYS
            and not key.startswith("_")
        }
        if extras:
            event["fields"] = extras
        if record.exc_info is not None:
            event["exception"] = self.formatException(record.exc_info)
        return json.dumps(
            event, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str
        )


class _TextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__(_TEXT_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        rendered = super().format(record)
        context = _correlation_fields(record)
        if context:
            suffix = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
            rendered = f"{rendered} [{suffix}]"
        return rendered


def setup_logging(config: LoggingConfig | None = None) -> logging.Logger:
    """Configure the ``check_prepublish`` logger hierarchy and return its root."""

    cfg = config if config is not None else LoggingConfig()
    level = _parse_log_level(cfg.level)

    formatter: logging.Formatter
    if cfg.log_format == "json":
        formatter = _JsonLineFormatter()
    elif cfg.log_format == "text":
        formatter = _TextFormatter()
    else:
        raise ValueError(f"unsupported log format {cfg.log_format!r}")

    handler = logging.StreamHandler(cfg.stream if cfg.stream is not None else sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter)

    logger = logging.getLogger(cfg.logger_name)
    logger.setLevel(level)
    logger.propagate = False

    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    logger.addHandler(handler)
    return logger


def shutdown_logging(logger_name: str = _DEFAULT_LOGGER_NAME) -> None:
    """Flush and detach handlers installed by ``setup_logging``."""

    logger = logging.getLogger(logger_name)
    for handler in list(logger.handlers):
        handler.flush()
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def get_correlation_context() -> dict[str, str]:
    return dict(_CORRELATION_CONTEXT.get())


@contextmanager
def correlation_scope(**fields: str | None) -> Iterator[None]:
    """Temporarily bind correlation fields (package, stage, ...) for records in scope."""
    state = get_correlation_context()
    for key, value in fields.items():
        if value is None:
            state.pop(key, None)
            continue
        normalized = value.strip()
        if normalized:
            state[key] = normalized
    token = _CORRELATION_CONTEXT.set(tuple(state.items()))
    try:
        yield
    finally:
        _CORRELATION_CONTEXT.reset(token)


def _parse_log_level(value: int | str) -> int:
    if isinstance(value, int):
        return value
    parsed = logging.getLevelName(value.strip().upper())
    if isinstance(parsed, int):
        return parsed
    raise ValueError(f"unsupported logging level {value!r}")


def _iso8601z(epoch_seconds: float) -> str:
    timestamp = datetime.fromtimestamp(epoch_seconds, tz=UTC)
    return timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _correlation_fields(record: logging.LogRecord) -> dict[str, str]:
    merged = get_correlation_context()
    for key in _CORRELATION_KEYS:
        value = getattr(record, key, None)
        if isinstance(value, str) and value.strip():
            merged[key] = value.strip()
    return merged


__all__ = [
    "LogFormat",
    "LoggingConfig",
    "correlation_scope",
    "get_correlation_context",
    "setup_logging",
    "shutdown_logging",
]
