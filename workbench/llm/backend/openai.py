"""OpenAI backend implementation.

Supports the GPT-4.1, GPT-4o, GPT-4.5 and o-series models via the OpenAI
chat completions API, including native JSON schema structured output.
"""

import logging
from typing import Any

from workbench.config import EnvVar, get_environment

from .base import (
    AuthenticationError,
    ContextLengthError,
    GenerationConfig,
    GenerationResult,
    LLMBackend,
    LLMError,
    RateLimitError,
    json_config_from,
    json_instructions,
    parse_json_object,
)
from .model_spec import DEFAULT_OPENAI_MODEL, LLMCapability, get_llm_spec

logger = logging.getLogger(__name__)


class OpenAIBackend(LLMBackend):
    """OpenAI backend.

    Environment:
        OPENAI_API_KEY: API key (required if not passed to constructor).

    Example:
        >>> backend = OpenAIBackend(model="gpt-4.1-mini")
        >>> data = backend.generate_json("Extract the city: I live in Oslo")
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_OPENAI_MODEL.spec.name,
        base_url: str | None = None,
        timeout: float = 60.0,
        max_retries: int = 0,
    ):
        """Initialize OpenAI backend.

        Args:
            api_key: OpenAI API key. Falls back to OPENAI_API_KEY env var.
            model: Model name (gpt-4.1-nano, o3-mini, etc.).
            base_url: Optional custom API endpoint.
            timeout: Request timeout in seconds.
            max_retries: Client-level retries for transient errors. Defaults to
                none; retrying is left to the caller.

        Raises:
            AuthenticationError: If no API key available.
        """
        self._api_key = api_key or get_environment(EnvVar.OPENAI_API_KEY)
        if not self._api_key:
            raise AuthenticationError(
                "OpenAI API key required. Set OPENAI_API_KEY environment "
                "variable or pass api_key parameter."
            )

        self._spec = get_llm_spec(model)
        self._base_url = base_url
        self._timeout = timeout
        self._max_retries = max_retries
        self._client: Any = None

    def _get_client(self) -> Any:
        """Lazily initialize OpenAI client."""
        if self._client is None:
            from openai import OpenAI

            self._client = OpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                timeout=self._timeout,
                max_retries=self._max_retries,
            )
        return self._client

    @property
    def model_name(self) -> str:
        return self._spec.name

    @property
    def provider(self) -> str:
        return "openai"

    @property
    def supports_json_mode(self) -> bool:
        return self._spec.supports(LLMCapability.JSON_MODE)

    @property
    def supports_json_schema(self) -> bool:
        return self._spec.supports(LLMCapability.STRUCTURED_OUTPUT)

    @property
    def context_window(self) -> int:
        return self._spec.context_window

    def _response_format(self, config: GenerationConfig) -> dict[str, Any] | None:
        if not config.json_mode:
            return None
        if config.json_schema and self.supports_json_schema:
            return {
                "type": "json_schema",
                "json_schema": {
                    "name": config.schema_name,
                    "schema": config.json_schema,
                    "strict": False,
                },
            }
        if self.supports_json_mode:
            return {"type": "json_object"}
        return None

    def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        config: GenerationConfig | None = None,
    ) -> GenerationResult:
        """Generate text using the chat completions API.

        Raises:
            LLMError: If generation fails.
            RateLimitError: If rate limit exceeded.
            ContextLengthError: If prompt too long.
        """
        config = config or GenerationConfig()
        client = self._get_client()

        response_format = self._response_format(config)
        effective_prompt = prompt
        if config.json_mode and (
            response_format is None or response_format["type"] == "json_object"
        ):
            # json_object mode still needs the word JSON and the schema in the prompt
            effective_prompt = f"{prompt}\n\n{json_instructions(config.json_schema)}"

        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": effective_prompt})

        kwargs: dict[str, Any] = {
            "model": self._spec.name,
            "messages": messages,
            "max_completion_tokens": min(config.max_tokens, self._spec.max_output_tokens),
        }

        if self._spec.supports(LLMCapability.SAMPLING):
            kwargs["temperature"] = config.temperature
            kwargs["top_p"] = config.top_p

        if response_format is not None:
            kwargs["response_format"] = response_format

        if config.stop_sequences:
            kwargs["stop"] = config.stop_sequences

        if config.seed is not None and self._spec.supports(LLMCapability.SEED):
            kwargs["seed"] = config.seed

        logger.debug(f"Calling {self.name} ({len(effective_prompt)} prompt chars)")
        try:
            response = client.chat.completions.create(**kwargs)
        except Exception as e:
            self._handle_error(e)
            raise

        choice = response.choices[0]
        usage = response.usage
        return GenerationResult(
            content=choice.message.content or "",
            finish_reason=choice.finish_reason or "unknown",
            usage={
                "prompt_tokens": usage.prompt_tokens if usage else 0,
                "completion_tokens": usage.completion_tokens if usage else 0,
                "total_tokens": usage.total_tokens if usage else 0,
            },
            model=response.model,
            raw_response=response,
        )

    def generate_json_with_result(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        config: GenerationConfig | None = None,
    ) -> tuple[dict[str, Any], GenerationResult]:
        """Generate and parse a JSON object response.

        Raises:
            InvalidResponseError: If response is not a JSON object.
        """
        result = self.generate(
            prompt, system_prompt=system_prompt, config=json_config_from(config)
        )
        return parse_json_object(result.content), result

    def _handle_error(self, error: Exception) -> None:
        """Convert provider errors to standard exceptions."""
        error_str = str(error).lower()

        if "rate limit" in error_str or "rate_limit" in error_str:
            raise RateLimitError(str(error)) from error
        elif "context length" in error_str or "maximum context" in error_str:
            raise ContextLengthError(str(error)) from error
        elif "authentication" in error_str or "invalid api key" in error_str:
            raise AuthenticationError(str(error)) from error
        else:
            raise LLMError(str(error)) from error


__all__ = ["OpenAIBackend"]
