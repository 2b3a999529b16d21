"""Unit tests for MCP server configuration and session handling."""

import pytest

from .lib import (
    HTTP_PATH,
    SERVER_NAME,
    ServerConfig,
    TransportType,
    get_server_capabilities,
    get_server_version,
)
from .server import create_server, mcp
from .session import WorkbenchSession, get_session, reset_session


class TestServerConfig:
    """Tests for ServerConfig."""

    @pytest.mark.unit
    def test_default_config(self):
        config = ServerConfig()

        assert config.transport == TransportType.STDIO
        assert config.port == 18080
        assert config.url is None

    @pytest.mark.unit
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("MCP_HOST", "127.0.0.1")
        monkeypatch.setenv("MCP_PORT", "19090")
        config = ServerConfig.from_env(transport=TransportType.HTTP)

        assert config.transport == TransportType.HTTP
        assert config.port == 19090
        assert config.url == f"http://127.0.0.1:19090{HTTP_PATH}"

    @pytest.mark.unit
    def test_sse_url_has_no_path(self):
        config = ServerConfig(transport=TransportType.SSE, host="localhost", port=8000)
        assert config.url == "http://localhost:8000"

    @pytest.mark.unit
    def test_transport_from_string(self):
        assert TransportType("stdio") == TransportType.STDIO
        assert TransportType("http").is_network
        assert not TransportType.STDIO.is_network


class TestServerInstance:
    """Tests for the FastMCP instance."""

    @pytest.mark.unit
    def test_create_server_returns_mcp(self):
        assert create_server() is mcp
        assert mcp.name == SERVER_NAME

    @pytest.mark.unit
    def test_version_and_capabilities(self, clean_llm_env):
        assert len(get_server_version().split(".")) == 3
        capabilities = get_server_capabilities()
        assert capabilities["schema_tools"] is True
        assert capabilities["generation"] is False

    @pytest.mark.unit
    def test_generation_capability_follows_keys(self, clean_llm_env, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
        assert get_server_capabilities()["generation"] is True


class TestSession:
    """Tests for the process-level session."""

    @pytest.mark.unit
    def test_reset_replaces_session(self, workspace):
        session = WorkbenchSession(workspace)
        try:
            assert reset_session(session) is session
            assert get_session() is session
            assert get_session().workspace is workspace
        finally:
            reset_session()

    @pytest.mark.unit
    def test_services_created_lazily(self, orchestrator):
        session = WorkbenchSession(orchestrator.workspace, orchestrator=orchestrator)
        assert session.orchestrator is orchestrator
        assert session.workspace is orchestrator.workspace
