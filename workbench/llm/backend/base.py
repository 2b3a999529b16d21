"""Abstract base class for LLM backends.

Defines the interface that all LLM provider implementations must follow.
"""

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class GenerationConfig:
    """Configuration for LLM text generation.

    Attributes:
        temperature: Sampling temperature (0.0-2.0). Ignored by reasoning models.
        max_tokens: Maximum tokens to generate in response.
        json_mode: Whether to enforce JSON output format.
        json_schema: JSON schema the response must satisfy. Backends with
            native structured output enforce it; others embed it in the prompt.
        schema_name: Name reported to the provider for ``json_schema``.
        stop_sequences: Optional sequences that stop generation.
        top_p: Nucleus sampling parameter (0.0-1.0).
        seed: Optional seed for reproducible generation.
    """

    temperature: float = 0.0
    max_tokens: int = 4096
    json_mode: bool = True
    json_schema: dict[str, Any] | None = None
    schema_name: str = "extraction"
    stop_sequences: list[str] = field(default_factory=list)
    top_p: float = 1.0
    seed: int | None = None


@dataclass
class GenerationResult:
    """Result from LLM text generation.

    Attributes:
        content: Generated text content.
        finish_reason: Why generation stopped ('stop', 'length', 'content_filter').
        usage: Token usage dict (prompt_tokens, completion_tokens, total_tokens).
        model: Model identifier that was used.
        raw_response: Provider-specific raw response for debugging.
    """

    content: str
    finish_reason: str
    usage: dict[str, int]
    model: str
    raw_response: Any = None


class LLMBackend(ABC):
    """Abstract interface for LLM text generation backends.

    Example:
        >>> backend = OpenAIBackend(model="gpt-4.1-nano")
        >>> result = backend.generate("Summarize: the meeting moved to Friday")
        >>> print(result.content)
    """

    @abstractmethod
    def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        config: GenerationConfig | None = None,
    ) -> GenerationResult:
        """Generate text from a prompt.

        Args:
            prompt: User prompt text.
            system_prompt: Optional system instruction for context.
            config: Generation configuration options.

        Returns:
            GenerationResult with generated content and metadata.

        Raises:
            LLMError: If generation fails.
            RateLimitError: If API rate limit is exceeded.
            ContextLengthError: If prompt exceeds context window.
        """

    def generate_json(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        config: GenerationConfig | None = None,
    ) -> dict[str, Any]:
        """Generate and parse a JSON object response.

        Raises:
            LLMError: If generation fails.
            InvalidResponseError: If response is not a JSON object.
        """
        return self.generate_json_with_result(
            prompt, system_prompt=system_prompt, config=config
        )[0]

    @abstractmethod
    def generate_json_with_result(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        config: GenerationConfig | None = None,
    ) -> tuple[dict[str, Any], GenerationResult]:
        """Generate JSON and return it with the raw result (for token usage).

        ``config.json_mode`` is forced on.

        Raises:
            LLMError: If generation fails.
            InvalidResponseError: If response is not a JSON object.
        """

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model identifier."""

    @property
    @abstractmethod
    def provider(self) -> str:
        """Get the provider identifier (e.g., 'openai', 'anthropic')."""

    @property
    def name(self) -> str:
        """Backend identifier for logging, in format 'provider:model'."""
        return f"{self.provider}:{self.model_name}"

    @property
    @abstractmethod
    def supports_json_mode(self) -> bool:
        """Check if backend natively supports JSON mode."""

    @property
    def supports_json_schema(self) -> bool:
        """Check if backend natively enforces a JSON schema."""
        return False

    @property
    @abstractmethod
    def context_window(self) -> int:
        """Get maximum context window size in tokens."""


class LLMError(Exception):
    """Base exception for LLM backend errors."""


class RateLimitError(LLMError):
    """Raised when API rate limit is exceeded.

    Attributes:
        retry_after: Suggested wait time in seconds before retry.
    """

    def __init__(self, message: str, retry_after: float | None = None):
        super().__init__(message)
        self.retry_after = retry_after


class ContextLengthError(LLMError):
    """Raised when prompt exceeds the model's context window."""


class InvalidResponseError(LLMError):
    """Raised when response cannot be parsed as expected format."""


class AuthenticationError(LLMError):
    """Raised when API authentication fails (invalid or missing key)."""


def json_instructions(json_schema: dict[str, Any] | None) -> str:
    """Prompt suffix asking for bare JSON, embedding ``json_schema`` if given."""
    text = (
        "IMPORTANT: Respond with valid JSON only. "
        "Do not include any text, explanation, or markdown formatting "
        "before or after the JSON object."
    )
    if json_schema:
        schema = json.dumps(json_schema, indent=2)
        text += f"\nThe JSON object must conform to this JSON schema:\n{schema}"
    return text


def extract_json_text(content: str) -> str:
    """Strip markdown code fences around a JSON payload."""
    content = content.strip()

    for match in re.findall(r"```(?:json)?\s*([\s\S]*?)```", content):
        stripped = match.strip()
        if stripped.startswith("{") or stripped.startswith("["):
            return stripped

    if content.startswith("```json"):
        content = content[7:]
    elif content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


def parse_json_object(content: str) -> dict[str, Any]:
    """Parse model output as a JSON object.

    Raises:
        InvalidResponseError: If the content is not a JSON object.
    """
    try:
        value = json.loads(extract_json_text(content))
    except json.JSONDecodeError as e:
        raise InvalidResponseError(
            f"Failed to parse JSON response: {e}\nContent: {content[:500]}"
        ) from e
    if not isinstance(value, dict):
        raise InvalidResponseError(
            f"Expected a JSON object, got {type(value).__name__}"
        )
    return value


def json_config_from(config: GenerationConfig | None) -> GenerationConfig:
    """Copy of ``config`` with JSON mode forced on."""
    config = config or GenerationConfig()
    return GenerationConfig(
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        json_mode=True,
        json_schema=config.json_schema,
        schema_name=config.schema_name,
        stop_sequences=config.stop_sequences,
        top_p=config.top_p,
        seed=config.seed,
    )


__all__ = [
    "LLMBackend",
    "GenerationConfig",
    "GenerationResult",
    "LLMError",
    "RateLimitError",
    "ContextLengthError",
    "InvalidResponseError",
    "AuthenticationError",
    "json_config_from",
    "json_instructions",
    "extract_json_text",
    "parse_json_object",
]
