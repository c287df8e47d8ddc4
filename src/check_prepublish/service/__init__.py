"""Service runtime support: MCP stdio session, client capability and validation hooks."""

from check_prepublish.service.client import (
    McpServiceClient,
    ServiceClient,
    ServiceError,
)
from check_prepublish.service.hooks import (
    ValidationHookError,
    find_validation_routine,
    load_validation_module,
    run_validation_routine,
)
from check_prepublish.service.session import (
    ServiceLaunchError,
    ServiceSessionFactory,
    minimal_service_env,
    server_parameters,
    service_session,
)

__all__ = [
    "McpServiceClient",
    "ServiceClient",
    "ServiceError",
    "ServiceLaunchError",
    "ServiceSessionFactory",
    "ValidationHookError",
    "find_validation_routine",
    "load_validation_module",
    "minimal_service_env",
    "run_validation_routine",
    "server_parameters",
    "service_session",
]
