"""
check-prepublish — service client capability

File: src/check_prepublish/service/client.py

Purpose
- Expose a connected MCP ``ClientSession`` to validation routines through a
  narrow, transport-free interface.

What should be included in this file
- ``ServiceClient``: the capability handed to validation routines.
- ``McpServiceClient``: adapter over ``mcp.ClientSession`` returning plain
  JSON-shaped dictionaries.

Functional requirements
- Protocol errors, timeouts and a closed connection surface as
  ``ServiceError`` carrying the method name and, where known, the error code.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from mcp.client.session import ClientSession
from mcp.shared.exceptions import McpError
from mcp.types import InitializeResult

logger = logging.getLogger(__name__)


class ServiceError(RuntimeError):
    """A service request failed or the connection broke."""

    def __init__(self, message: str, *, code: int | None = None) -> None:
        self.code = code
        super().__init__(message)


@runtime_checkable
class ServiceClient(Protocol):
    """Operations a validation routine may perform against the service."""

    async def list_tools(self) -> list[dict[str, Any]]: ...

    async def call_tool(
        self,
        name: str,
        arguments: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]: ...


class McpServiceClient(ServiceClient):
    """``ServiceClient`` backed by an initialized ``mcp.ClientSession``."""

    def __init__(self, session: ClientSession, initialized: InitializeResult) -> None:
        self._session = session
        self._initialized = initialized

    @property
    def session(self) -> ClientSession:
        return self._session

    @property
    def server_info(self) -> dict[str, Any]:
        return _plain(self._initialized.serverInfo)

    @property
    def protocol_version(self) -> str:
        return str(self._initialized.protocolVersion)

    async def list_tools(self) -> list[dict[str, Any]]:
        try:
            result = await self._session.list_tools()
        except McpError as exc:
            raise _service_error("tools/list", exc) from exc
        return [_plain(tool) for tool in result.tools]

    async def call_tool(
        self,
        name: str,
        arguments: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            result = await self._session.call_tool(name, dict(arguments or {}))
        except McpError as exc:
            raise _service_error("tools/call", exc) from exc
        if result.isError:
            logger.debug("tool %s reported an error result", name)
        return _plain(result)


def _plain(model: Any) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def _service_error(method: str, exc: McpError) -> ServiceError:
    return ServiceError(f"{method}: {exc.error.message}", code=exc.error.code)


__all__ = ["McpServiceClient", "ServiceClient", "ServiceError"]
