"""Tests for configuration management."""

import pytest

from .lib import (
    EnvConfig,
    EnvVar,
    get_available_llm_providers,
    describe_environment,
    get_default_model,
    get_environment,
    get_environment_info,
    list_environment_variables,
)

# =============================================================================
# Tests for get_environment (main interface)
# =============================================================================


class TestGetEnvironment:
    """Tests for the unified get_environment interface."""

    @pytest.mark.unit
    def test_returns_default_when_not_set(self, monkeypatch):
        """Returns default value when env var is not set."""
        monkeypatch.delenv("WORKBENCH_GENERATION_WORKERS", raising=False)
        assert get_environment(EnvVar.WORKBENCH_GENERATION_WORKERS) == 4

    @pytest.mark.unit
    def test_override_takes_priority(self, monkeypatch):
        """Override parameter takes highest priority."""
        monkeypatch.setenv("MCP_PORT", "9999")
        assert get_environment(EnvVar.MCP_PORT, override=5000) == 5000

    @pytest.mark.unit
    def test_int_type_conversion(self, monkeypatch):
        """Integer type conversion from string."""
        monkeypatch.setenv("MCP_PORT", "8080")
        result = get_environment(EnvVar.MCP_PORT)
        assert result == 8080
        assert isinstance(result, int)

    @pytest.mark.unit
    def test_float_type_conversion(self, monkeypatch):
        """Float type conversion from string."""
        monkeypatch.setenv("WORKBENCH_COST_WARNING_USD", "0.25")
        assert get_environment(EnvVar.WORKBENCH_COST_WARNING_USD) == 0.25

    @pytest.mark.unit
    def test_invalid_number_returns_default(self, monkeypatch):
        """Unparseable numbers fall back to the default."""
        monkeypatch.setenv("WORKBENCH_FETCH_TIMEOUT_MS", "soon")
        assert get_environment(EnvVar.WORKBENCH_FETCH_TIMEOUT_MS) == 10000

    @pytest.mark.unit
    def test_string_type(self, monkeypatch):
        """String type returns as-is."""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test-key")
        assert get_environment(EnvVar.OPENAI_API_KEY) == "sk-test-key"


class TestConversion:
    """Tests for raw value conversion and display."""

    @pytest.mark.unit
    def test_blank_counts_as_unset(self, monkeypatch):
        monkeypatch.setenv("MCP_PORT", "  ")
        assert get_environment(EnvVar.MCP_PORT) == 18080

    @pytest.mark.unit
    def test_secrets_masked(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test-1234567890")
        shown = describe_environment(EnvVar.OPENAI_API_KEY)
        assert shown.startswith("sk-t")
        assert "1234567890" not in shown

    @pytest.mark.unit
    def test_plain_values_shown(self, monkeypatch):
        monkeypatch.setenv("MCP_PORT", "19000")
        assert describe_environment(EnvVar.MCP_PORT) == "19000"

    @pytest.mark.unit
    def test_unset_value(self, clean_llm_env):
        assert describe_environment(EnvVar.ANTHROPIC_API_KEY) == "(not set)"


# =============================================================================
# Introspection
# =============================================================================


class TestIntrospection:
    """Tests for metadata helpers."""

    @pytest.mark.unit
    def test_environment_info(self):
        info = get_environment_info(EnvVar.WORKBENCH_DEFAULT_MODEL)
        assert isinstance(info, EnvConfig)
        assert info.name == "WORKBENCH_DEFAULT_MODEL"
        assert info.default == "gpt-4.1-nano"

    @pytest.mark.unit
    def test_list_by_category(self):
        llm_vars = list_environment_variables("llm")
        assert EnvVar.OPENAI_API_KEY in llm_vars
        assert EnvVar.MCP_PORT not in llm_vars
        assert len(list_environment_variables()) == len(EnvVar)

    @pytest.mark.unit
    def test_enum_names_match_config_names(self):
        """Each member's name matches the variable it reads."""
        for var in EnvVar:
            assert var.name == var.value.name


class TestConvenience:
    """Tests for convenience helpers."""

    @pytest.mark.unit
    def test_available_providers(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        assert get_available_llm_providers() == ["openai"]

    @pytest.mark.unit
    def test_default_model(self, monkeypatch):
        monkeypatch.setenv("WORKBENCH_DEFAULT_MODEL", "o3-mini")
        assert get_default_model() == "o3-mini"
        assert get_default_model("gpt-4o") == "gpt-4o"
