"""MCP (Model Context Protocol) server for the extraction workbench.

Exposes schema authoring, card management and structured extraction to
MCP clients.

Example:
    # Start server in STDIO mode
    >>> from workbench.mcp import run_server
    >>> run_server()

    # Start server in HTTP mode
    >>> from workbench.mcp import run_server, TransportType
    >>> run_server(transport=TransportType.HTTP, port=18080)
"""

from .lib import (
    SERVER_NAME,
    ServerConfig,
    TransportType,
    get_server_capabilities,
    get_server_version,
)
from .server import create_server, mcp, run_server
from .session import WorkbenchSession, get_session, reset_session

__all__ = [
    # Server instance
    "mcp",
    "create_server",
    "run_server",
    # Session
    "WorkbenchSession",
    "get_session",
    "reset_session",
    # Configuration
    "SERVER_NAME",
    "ServerConfig",
    "TransportType",
    # Utilities
    "get_server_version",
    "get_server_capabilities",
]
