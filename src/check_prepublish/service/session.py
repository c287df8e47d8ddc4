"""
check-prepublish — service session lifecycle

File: src/check_prepublish/service/session.py

Purpose
- Launch the installed service over stdio, hand out a connected client, and
  always tear both down again.

Functional requirements
- The child sees a minimal environment: the search path, the home directory
  (or the Windows system root) when present, plus the quiet/test markers.
- Teardown closes the client session, then the transport closes the child's
  stdin, waits a bounded time, and terminates the process tree.
- Each teardown step is best-effort: failures are logged and never raised.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import AsyncIterator, Callable, Mapping, Sequence
from contextlib import AbstractAsyncContextManager, AsyncExitStack, asynccontextmanager
from datetime import timedelta
from pathlib import Path
from typing import TextIO

from mcp.client.session import ClientSession
from mcp.client.stdio import StdioServerParameters, stdio_client
from mcp.shared.exceptions import McpError

from check_prepublish.constants import SERVICE_ENV, SERVICE_REQUEST_TIMEOUT_SECONDS
from check_prepublish.service.client import McpServiceClient, ServiceClient, ServiceError

logger = logging.getLogger(__name__)

ServiceSessionFactory = Callable[..., AbstractAsyncContextManager[ServiceClient]]

_PASSTHROUGH_ENV_KEYS = ("PATH", "HOME", "SYSTEMROOT")


class ServiceLaunchError(RuntimeError):
    """Raised when the service process cannot be spawned."""


def minimal_service_env(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Environment handed to the service child."""

    source = os.environ if environ is None else environ
    env = {key: source[key] for key in _PASSTHROUGH_ENV_KEYS if source.get(key)}
    env.update(SERVICE_ENV)
    return env


def server_parameters(
    argv: Sequence[str],
    *,
    cwd: str | Path,
    env: Mapping[str, str] | None = None,
) -> StdioServerParameters:
    if not argv:
        raise ValueError("service argv must not be empty")
    return StdioServerParameters(
        command=argv[0],
        args=list(argv[1:]),
        env=dict(env) if env is not None else minimal_service_env(),
        cwd=Path(cwd),
    )


@asynccontextmanager
async def service_session(
    argv: Sequence[str],
    *,
    cwd: str | Path,
    request_timeout_seconds: float = SERVICE_REQUEST_TIMEOUT_SECONDS,
    env: Mapping[str, str] | None = None,
    errlog: TextIO | None = None,
) -> AsyncIterator[ServiceClient]:
    """
    Start the service, run the MCP handshake, and yield a connected client.

    ``request_timeout_seconds`` bounds every request, the handshake included.
    The child's stderr goes to ``errlog`` (default: this process's stderr).
    """

    params = server_parameters(argv, cwd=cwd, env=env)
    stack = AsyncExitStack()
    try:
        try:
            read_stream, write_stream = await stack.enter_async_context(
                stdio_client(params, errlog=errlog if errlog is not None else sys.stderr)
            )
        except OSError as exc:
            raise ServiceLaunchError(f"failed to start {' '.join(argv)}: {exc}") from exc
        logger.debug("service started argv=%s", " ".join(argv))

        session = await stack.enter_async_context(
            ClientSession(
                read_stream,
                write_stream,
                read_timeout_seconds=timedelta(seconds=request_timeout_seconds),
            )
        )
        try:
            initialized = await session.initialize()
        except McpError as exc:
            raise ServiceError(f"initialize: {exc.error.message}", code=exc.error.code) from exc
        logger.debug(
            "service initialized: %s (protocol %s)",
            initialized.serverInfo.name,
            initialized.protocolVersion,
        )
        yield McpServiceClient(session, initialized)
    finally:
        try:
            await stack.aclose()
        except Exception as exc:  # noqa: BLE001 - teardown is best-effort.
            logger.warning("service teardown failed: %s", exc)


__all__ = [
    "ServiceLaunchError",
    "ServiceSessionFactory",
    "minimal_service_env",
    "server_parameters",
    "service_session",
]
