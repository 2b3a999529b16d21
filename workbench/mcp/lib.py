"""Server identity, transports and capability flags for the workbench MCP server."""

from dataclasses import dataclass
from enum import Enum

from workbench.config import EnvVar, get_available_llm_providers, get_environment

SERVER_NAME = "extraction-workbench"
SERVER_VERSION = "0.1.0"
HTTP_PATH = "/mcp"


class TransportType(str, Enum):
    """How MCP clients reach the server."""

    STDIO = "stdio"
    HTTP = "http"
    SSE = "sse"

    @property
    def is_network(self) -> bool:
        return self is not TransportType.STDIO


@dataclass
class ServerConfig:
    """Where and how the server listens.

    Attributes:
        transport: Transport clients connect with.
        host: Bind address; ignored for STDIO.
        port: Listening port; ignored for STDIO.
    """

    transport: TransportType = TransportType.STDIO
    host: str = "0.0.0.0"
    port: int = 18080

    @classmethod
    def from_env(cls, transport: TransportType | None = None) -> "ServerConfig":
        """Read MCP_HOST and MCP_PORT; transport defaults to STDIO."""
        return cls(
            transport=transport or TransportType.STDIO,
            host=get_environment(EnvVar.MCP_HOST),
            port=get_environment(EnvVar.MCP_PORT),
        )

    @property
    def url(self) -> str | None:
        if not self.transport.is_network:
            return None
        path = HTTP_PATH if self.transport == TransportType.HTTP else ""
        return f"http://{self.host}:{self.port}{path}"


def get_server_version() -> str:
    return SERVER_VERSION


def get_server_capabilities() -> dict[str, bool]:
    """What this server instance can do.

    Generation and assisted configuration need at least one provider key;
    schema and card tools always work.
    """
    has_provider = bool(get_available_llm_providers())
    return {
        "tools": True,
        "resources": True,
        "prompts": False,
        "schema_tools": True,
        "fetch_inputs": True,
        "generation": has_provider,
        "assist": has_provider,
    }


__all__ = [
    "SERVER_NAME",
    "HTTP_PATH",
    "TransportType",
    "ServerConfig",
    "get_server_version",
    "get_server_capabilities",
]
