"""Model name to backend resolution."""

import logging

from .base import LLMBackend
from .model_spec import (
    DEFAULT_MODEL,
    LLMModel,
    LLMProviderType,
    LLMSpec,
    get_llm_spec,
)

logger = logging.getLogger(__name__)


def _backend_class(provider: LLMProviderType) -> type[LLMBackend]:
    # Imported on demand so only the selected provider's SDK is loaded.
    if provider == LLMProviderType.OPENAI:
        from .openai import OpenAIBackend

        return OpenAIBackend
    if provider == LLMProviderType.ANTHROPIC:
        from .anthropic import AnthropicBackend

        return AnthropicBackend
    raise ValueError(f"Unsupported provider type: {provider}")


def create_llm_backend(
    model: str | LLMModel | LLMSpec = DEFAULT_MODEL,
    *,
    api_key: str | None = None,
    base_url: str | None = None,
    **kwargs,
) -> LLMBackend:
    """Create the backend that serves ``model``.

    Args:
        model: Model name, LLMModel member or LLMSpec.
        api_key: API key. Falls back to the provider's environment variable.
        base_url: Custom API endpoint. Only OpenAI-compatible backends accept it.
        **kwargs: Extra backend arguments such as ``timeout``.

    Raises:
        ValueError: If the model is unknown, or ``base_url`` is given for a
            provider without one.
        AuthenticationError: If no API key is available.

    Example:
        >>> backend = create_llm_backend("gpt-4.1-nano")
        >>> backend = create_llm_backend(LLMModel.CLAUDE_HAIKU_4_5, timeout=30.0)
    """
    spec = get_llm_spec(model)
    backend_cls = _backend_class(spec.provider)

    if base_url is not None:
        if spec.provider != LLMProviderType.OPENAI:
            raise ValueError(f"{spec.provider.value} backends do not take a base_url")
        kwargs["base_url"] = base_url

    logger.debug(f"Creating {backend_cls.__name__} for {spec.name}")
    return backend_cls(api_key=api_key, model=spec.name, **kwargs)


__all__ = ["create_llm_backend"]
