"""Environment configuration for the workbench.

Example:
    >>> from workbench.config import EnvVar, get_environment
    >>>
    >>> port = get_environment(EnvVar.MCP_PORT)  # Returns int: 18080
    >>> for var in list_environment_variables("llm"):
    ...     print(f"{var.value.name}: {describe_environment(var)}")

Categories:
    llm: provider API keys, default and assist models
    generation: fetch timeout, worker pool size, cost warning threshold
    service: MCP server host and port
"""

from .lib import (
    EnvConfig,
    EnvVar,
    describe_environment,
    get_available_llm_providers,
    get_default_model,
    get_environment,
    get_environment_info,
    list_environment_variables,
)

__all__ = [
    # Core types
    "EnvConfig",
    "EnvVar",
    # Main interface
    "get_environment",
    "get_environment_info",
    "describe_environment",
    # Convenience functions
    "get_available_llm_providers",
    "get_default_model",
    # Introspection
    "list_environment_variables",
]
