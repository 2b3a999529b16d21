"""LLM integration for the extraction workbench.

Submodules:
    backend: Provider backends (OpenAI, Anthropic), model registry, errors.
    extractor: Schema-constrained object extraction with JSON repair.

Example:
    >>> from workbench.llm import StructuredExtractor
    >>> extractor = StructuredExtractor()
    >>> result = extractor.invoke(text, "gpt-4.1-nano", system_message, schema)
"""

from .backend import (
    DEFAULT_MODEL,
    AuthenticationError,
    ContextLengthError,
    GenerationConfig,
    GenerationResult,
    InvalidResponseError,
    LLMBackend,
    LLMError,
    LLMModel,
    LLMProviderType,
    LLMSpec,
    RateLimitError,
    create_llm_backend,
    find_llm_spec,
    get_llm_spec,
)
from .extractor import ExtractionResult, SchemaRejectionError, StructuredExtractor

__all__ = [
    # Backends
    "LLMBackend",
    "GenerationConfig",
    "GenerationResult",
    "create_llm_backend",
    # Registry
    "LLMModel",
    "LLMProviderType",
    "LLMSpec",
    "DEFAULT_MODEL",
    "get_llm_spec",
    "find_llm_spec",
    # Extraction
    "StructuredExtractor",
    "ExtractionResult",
    "SchemaRejectionError",
    # Errors
    "LLMError",
    "RateLimitError",
    "ContextLengthError",
    "InvalidResponseError",
    "AuthenticationError",
]
