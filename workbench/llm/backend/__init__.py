"""LLM backend implementations.

Provides the abstract base class and the OpenAI and Anthropic backends.
"""

from .base import (
    AuthenticationError,
    ContextLengthError,
    GenerationConfig,
    GenerationResult,
    InvalidResponseError,
    LLMBackend,
    LLMError,
    RateLimitError,
    extract_json_text,
    json_config_from,
    json_instructions,
    parse_json_object,
)
from .factory import create_llm_backend
from .model_spec import (
    DEFAULT_ANTHROPIC_MODEL,
    DEFAULT_MODEL,
    DEFAULT_OPENAI_MODEL,
    LLMCapability,
    LLMModel,
    LLMProviderType,
    LLMSpec,
    find_llm_spec,
    get_llm_spec,
)

__all__ = [
    # Base classes and types
    "LLMBackend",
    "GenerationConfig",
    "GenerationResult",
    # JSON helpers
    "extract_json_text",
    "parse_json_object",
    "json_config_from",
    "json_instructions",
    # Exceptions
    "LLMError",
    "RateLimitError",
    "ContextLengthError",
    "InvalidResponseError",
    "AuthenticationError",
    # Model specification
    "LLMCapability",
    "LLMProviderType",
    "LLMSpec",
    "LLMModel",
    "get_llm_spec",
    "find_llm_spec",
    # Defaults
    "DEFAULT_MODEL",
    "DEFAULT_OPENAI_MODEL",
    "DEFAULT_ANTHROPIC_MODEL",
    # Factory
    "create_llm_backend",
]
