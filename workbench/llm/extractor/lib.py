"""Structured extraction: prompt an LLM for an object matching schema text.

Schema text is treated as data. When it parses into a field list the list
is compiled into a pydantic model whose JSON schema is requested from the
provider and whose validator checks the reply locally. Text the parser
cannot read is forwarded verbatim inside the system prompt.
"""

import json
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from workbench.schema import build_model, check_object, parse_schema

from ..backend import (
    GenerationConfig,
    InvalidResponseError,
    LLMBackend,
    LLMError,
    create_llm_backend,
)
from .repair import parse_or_repair

logger = logging.getLogger(__name__)

SCHEMA_PROMPT_HEADER = (
    "Return a single JSON object that satisfies the following schema. "
    "The schema is written in zod notation; treat it as a description only."
)


@dataclass
class ExtractionResult:
    """Outcome of a successful extraction.

    Attributes:
        object: The generated object, as returned by the model.
        usage: Token usage (prompt_tokens, completion_tokens, total_tokens).
        model: Model identifier reported by the provider.
        repaired: Whether the reply needed JSON repair before parsing.
        raw_response: Raw text content of the reply.
    """

    object: dict[str, Any]
    usage: dict[str, int] = field(default_factory=dict)
    model: str = ""
    repaired: bool = False
    raw_response: str = ""


class SchemaRejectionError(LLMError):
    """Raised when the model's reply does not satisfy the schema.

    Attributes:
        violations: (path, message) pairs describing each failure.
        generated_value: Pretty-printed JSON of the rejected object.
    """

    def __init__(self, violations: list[tuple[str, str]], generated_value: str):
        self.violations = violations
        self.generated_value = generated_value
        lines = ["Schema validation failed:"]
        for path, message in violations:
            lines.append(f"- {path or '(root)'}: {message}")
        lines.append("Generated value:")
        lines.append(generated_value)
        super().__init__("\n".join(lines))


BackendFactory = Callable[[str], LLMBackend]


class StructuredExtractor:
    """Turns (input text, model, system message, schema text) into an object.

    Backends are created lazily per model id and reused. The extractor never
    retries; a failed call raises and the caller decides what to do.

    Example:
        >>> extractor = StructuredExtractor()
        >>> result = extractor.invoke(
        ...     "Ship the beta on Friday. Ana owns the release notes.",
        ...     "gpt-4.1-nano",
        ...     "You are a helpful assistant.",
        ...     'z.object({\\n  summary: z.string()\\n})',
        ... )
        >>> result.object["summary"]
    """

    def __init__(
        self,
        backend_factory: BackendFactory | None = None,
        *,
        temperature: float = 0.0,
        max_tokens: int = 4096,
    ):
        """Initialize StructuredExtractor.

        Args:
            backend_factory: Callable returning a backend for a model id.
                Defaults to :func:`create_llm_backend`.
            temperature: Sampling temperature passed to every call.
            max_tokens: Output token ceiling passed to every call.
        """
        self._backend_factory = backend_factory or create_llm_backend
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._backends: dict[str, LLMBackend] = {}
        self._lock = threading.Lock()

    def backend_for(self, model_id: str) -> LLMBackend:
        """Cached backend for ``model_id``.

        Raises:
            LLMError: If the model id is unknown or the backend cannot be built.
        """
        with self._lock:
            backend = self._backends.get(model_id)
            if backend is None:
                try:
                    backend = self._backend_factory(model_id)
                except ValueError as e:
                    raise LLMError(f"Model '{model_id}' is not available: {e}") from e
                self._backends[model_id] = backend
                logger.debug(f"Created backend {backend.name} for {model_id}")
            return backend

    def invoke(
        self,
        prompt_text: str,
        model_id: str,
        system_instruction: str,
        schema_text: str,
    ) -> ExtractionResult:
        """Generate an object for ``prompt_text`` constrained by ``schema_text``.

        Args:
            prompt_text: The input data, sent as the user prompt.
            model_id: Model identifier from the registry.
            system_instruction: Generator system message.
            schema_text: Schema in zod notation.

        Returns:
            ExtractionResult with the generated object and token usage.

        Raises:
            SchemaRejectionError: If the reply fails validation against the
                compiled schema.
            InvalidResponseError: If the reply contains no JSON object.
            LLMError: On transport, authentication or rate-limit failures.
        """
        backend = self.backend_for(model_id)
        fields = parse_schema(schema_text)

        model = build_model(fields) if fields else None
        if model is not None:
            config = GenerationConfig(
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                json_mode=True,
                json_schema=model.model_json_schema(by_alias=True),
            )
            system_prompt = system_instruction
        else:
            logger.info("Schema text not compiled, sending it as prompt data")
            config = GenerationConfig(
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                json_mode=True,
            )
            system_prompt = self._schema_prompt(system_instruction, schema_text)

        result = backend.generate(
            prompt_text,
            system_prompt=system_prompt,
            config=config,
        )

        value, repaired = parse_or_repair(result.content)
        if value is None:
            raise InvalidResponseError(
                f"The model did not return a valid object: {result.content[:500]}"
            )
        if repaired:
            logger.debug("Reply needed JSON repair")

        if model is not None:
            violations = check_object(model, value)
            if violations:
                logger.warning(
                    f"Reply from {backend.name} failed schema validation: "
                    f"{len(violations)} violation(s)"
                )
                raise SchemaRejectionError(violations, json.dumps(value, indent=2))

        logger.info(
            f"Extracted object with {backend.name} "
            f"({result.usage.get('total_tokens', 0)} tokens)"
        )
        return ExtractionResult(
            object=value,
            usage=dict(result.usage),
            model=result.model,
            repaired=repaired,
            raw_response=result.content,
        )

    def _schema_prompt(self, system_instruction: str, schema_text: str) -> str:
        parts = [system_instruction.strip()] if system_instruction.strip() else []
        parts.append(f"{SCHEMA_PROMPT_HEADER}\n\n{schema_text}")
        return "\n\n".join(parts)


__all__ = [
    "StructuredExtractor",
    "ExtractionResult",
    "SchemaRejectionError",
    "SCHEMA_PROMPT_HEADER",
]
