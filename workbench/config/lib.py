"""Environment configuration for the workbench.

Every setting is an :class:`EnvVar` member carrying its default, type and
description. :func:`get_environment` resolves a value as override, then
environment, then default, converting the raw string to the declared type.

Example:
    >>> from workbench.config import EnvVar, get_environment
    >>>
    >>> workers = get_environment(EnvVar.WORKBENCH_GENERATION_WORKERS)  # int
    >>> api_key = get_environment(EnvVar.OPENAI_API_KEY)  # str | None
    >>>
    >>> # Override at runtime
    >>> model = get_environment(EnvVar.WORKBENCH_DEFAULT_MODEL, override="o3")
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, overload

# =============================================================================
# Environment Variable Configuration
# =============================================================================


@dataclass(frozen=True)
class EnvConfig:
    """Metadata for an environment variable.

    Attributes:
        name: Environment variable name (e.g., "MCP_PORT").
        default: Default value if not set in environment.
        var_type: Python type for value conversion (str, int, float).
        description: Human-readable description.
        category: Grouping category (llm, generation, service).
        secret: Value must not be printed.
    """

    name: str
    default: Any
    var_type: type
    description: str = ""
    category: str = "general"
    secret: bool = False


class EnvVar(Enum):
    """All environment variables used by the workbench.

    Categories:
        - llm: LLM provider API keys and model selection
        - generation: Generation pipeline tuning
        - service: MCP server host and port
    """

    # -------------------------------------------------------------------------
    # LLM
    # -------------------------------------------------------------------------
    OPENAI_API_KEY = EnvConfig(
        name="OPENAI_API_KEY",
        default=None,
        var_type=str,
        description="OpenAI API key for GPT and o-series models",
        category="llm",
        secret=True,
    )
    ANTHROPIC_API_KEY = EnvConfig(
        name="ANTHROPIC_API_KEY",
        default=None,
        var_type=str,
        description="Anthropic API key for Claude models",
        category="llm",
        secret=True,
    )
    WORKBENCH_DEFAULT_MODEL = EnvConfig(
        name="WORKBENCH_DEFAULT_MODEL",
        default="gpt-4.1-nano",
        var_type=str,
        description="Model assigned to newly created generator cards",
        category="llm",
    )
    WORKBENCH_ASSIST_MODEL = EnvConfig(
        name="WORKBENCH_ASSIST_MODEL",
        default="gpt-4.1-mini",
        var_type=str,
        description="Model used to draft system messages and schemas",
        category="llm",
    )

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------
    WORKBENCH_FETCH_TIMEOUT_MS = EnvConfig(
        name="WORKBENCH_FETCH_TIMEOUT_MS",
        default=10000,
        var_type=int,
        description="Default timeout for fetch input cards, in milliseconds",
        category="generation",
    )
    WORKBENCH_GENERATION_WORKERS = EnvConfig(
        name="WORKBENCH_GENERATION_WORKERS",
        default=4,
        var_type=int,
        description="Maximum number of concurrent in-flight generations",
        category="generation",
    )
    WORKBENCH_COST_WARNING_USD = EnvConfig(
        name="WORKBENCH_COST_WARNING_USD",
        default=1.0,
        var_type=float,
        description="Estimated cost (USD) above which a generation is flagged",
        category="generation",
    )

    # -------------------------------------------------------------------------
    # Service
    # -------------------------------------------------------------------------
    MCP_HOST = EnvConfig(
        name="MCP_HOST",
        default="0.0.0.0",
        var_type=str,
        description="MCP server bind address",
        category="service",
    )
    MCP_PORT = EnvConfig(
        name="MCP_PORT",
        default=18080,
        var_type=int,
        description="MCP server port (avoids 8080)",
        category="service",
    )


# =============================================================================
# Resolution
# =============================================================================


def _convert_value(value: str | None, var_type: type, default: Any) -> Any:
    """Convert a raw environment string; unparseable numbers yield ``default``."""
    if value is None or value.strip() == "":
        return default
    if var_type in (int, float):
        try:
            return var_type(value.strip())
        except ValueError:
            return default
    return value


@overload
def get_environment(env_var: EnvVar, override: int) -> int: ...
@overload
def get_environment(env_var: EnvVar, override: float) -> float: ...
@overload
def get_environment(env_var: EnvVar, override: str) -> str: ...
@overload
def get_environment(env_var: EnvVar, override: None = None) -> Any: ...


def get_environment(env_var: EnvVar, override: Any = None) -> Any:
    """Resolve a setting: ``override`` if given, else the environment, else the default.

    Blank environment values count as unset.
    """
    config: EnvConfig = env_var.value
    if override is not None:
        return override
    return _convert_value(os.environ.get(config.name), config.var_type, config.default)


def describe_environment(env_var: EnvVar) -> str:
    """Current value for display, with secrets masked."""
    value = get_environment(env_var)
    if value is None:
        return "(not set)"
    if env_var.value.secret:
        text = str(value)
        return f"{text[:4]}…" if len(text) > 8 else "****"
    return str(value)


def get_environment_info(env_var: EnvVar) -> EnvConfig:
    """Get metadata for an environment variable."""
    return env_var.value


# =============================================================================
# Convenience Functions
# =============================================================================


def get_available_llm_providers() -> list[str]:
    """Get list of LLM providers with a configured API key.

    Returns:
        List of provider names (e.g., ["openai", "anthropic"]).
    """
    providers = []
    if get_environment(EnvVar.OPENAI_API_KEY):
        providers.append("openai")
    if get_environment(EnvVar.ANTHROPIC_API_KEY):
        providers.append("anthropic")
    return providers


def get_default_model(override: str | None = None) -> str:
    """Model id given to newly created generator cards."""
    return get_environment(EnvVar.WORKBENCH_DEFAULT_MODEL, override=override)


def list_environment_variables(category: str | None = None) -> list[EnvVar]:
    """List all environment variables, optionally filtered by category.

    Args:
        category: Filter by category (llm, generation, service).
                 None returns all variables.
    """
    if category is None:
        return list(EnvVar)

    return [var for var in EnvVar if var.value.category == category]


__all__ = [
    "EnvConfig",
    "EnvVar",
    "get_environment",
    "get_environment_info",
    "describe_environment",
    "get_available_llm_providers",
    "get_default_model",
    "list_environment_variables",
]
