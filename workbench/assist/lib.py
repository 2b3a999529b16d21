"""LLM-assisted authoring of generator configurations.

Turns a short description of an extraction task into a system message, a
schema text, or both. Generated schema text is cleaned of code fences and
must pass the structural validator before it is returned; it is never
evaluated.
"""

import logging
import re
from dataclasses import dataclass

from workbench.cards import GeneratorCard
from workbench.config import EnvVar, get_environment
from workbench.llm.backend import (
    GenerationConfig,
    LLMBackend,
    LLMError,
    create_llm_backend,
)
from workbench.validation import validate_schema_text
from workbench.workspace import Workspace

logger = logging.getLogger(__name__)

SYSTEM_MESSAGE_PROMPT = """You are an expert at writing system messages for AI assistants. \
Create concise, effective system messages that clearly define the AI's role and behavior. \
Focus on being specific about the task, output format, and any constraints. \
Keep it under 200 words."""

SCHEMA_PROMPT = """You are an expert at creating Zod schemas. Generate valid Zod schema code that matches the user's requirements.

CRITICAL RULES:
- Always return ONLY the Zod schema code, nothing else
- Start with z.object({ and end with })
- Use proper Zod syntax: z.string(), z.number(), z.boolean(), z.array(), z.enum(), z.object()
- Add .describe() to fields when helpful
- Use camelCase for field names
- Do NOT include any explanations, markdown, or extra text
- Do NOT wrap in code blocks or backticks

VALID EXAMPLE:
z.object({
  name: z.string().describe("Full name"),
  age: z.number().describe("Age in years"),
  tags: z.array(z.string()).describe("List of tags")
})"""

FULL_CONFIG_PROMPT = """You are an expert at creating AI data extraction configurations. \
Given a user's description, generate both a system message and Zod schema.

SYSTEM MESSAGE RULES:
- Be concise but specific (under 200 words)
- Clearly define the AI's role and task
- Mention output format and constraints
- Be professional and focused

SCHEMA RULES:
- Return valid Zod schema code starting with z.object({})
- Use appropriate types: z.string(), z.number(), z.boolean(), z.array(), z.enum(), z.object()
- Add .describe() for clarity
- Use camelCase field names
- Make it comprehensive but not overly complex"""

FULL_CONFIG_JSON_SCHEMA = {
    "type": "object",
    "properties": {
        "systemMessage": {
            "type": "string",
            "description": "The system message for the AI assistant",
        },
        "schema": {
            "type": "string",
            "description": "The Zod schema code starting with z.object",
        },
    },
    "required": ["systemMessage", "schema"],
    "additionalProperties": False,
}

CODE_FENCE = re.compile(r"```[a-zA-Z]*\n?")
SCHEMA_PREFIX = "z.object"


class AssistError(Exception):
    """Assisted generation failed or produced unusable output."""


@dataclass(frozen=True)
class AssistedConfig:
    """System message and schema text generated together."""

    system_message: str
    schema: str


def clean_schema_text(text: str) -> str:
    """Strip code fences and surrounding whitespace from generated schema text."""
    return CODE_FENCE.sub("", text.strip()).replace("```", "").strip()


def check_generated_schema(text: str) -> str:
    """Clean ``text`` and reject it unless it passes the schema validator.

    Raises:
        AssistError: If the text does not start with ``z.object`` or fails
            validation.
    """
    cleaned = clean_schema_text(text)
    if not cleaned.startswith(SCHEMA_PREFIX):
        raise AssistError("Generated schema does not start with z.object")
    check = validate_schema_text(cleaned)
    if not check.valid:
        raise AssistError(f"Generated schema is invalid: {check.error}")
    return cleaned


class ConfigAssistant:
    """Generates generator configuration from a task description.

    Example:
        >>> assistant = ConfigAssistant()
        >>> config = assistant.generate_full_config("extract invoice totals")
        >>> config.schema
        'z.object({...})'
    """

    def __init__(
        self,
        backend: LLMBackend | None = None,
        model: str | None = None,
        temperature: float = 0.7,
    ):
        """Initialize ConfigAssistant.

        Args:
            backend: LLM backend. Created lazily from ``model`` if None.
            model: Model id; defaults to WORKBENCH_ASSIST_MODEL.
            temperature: Sampling temperature for assisted text.
        """
        self._backend = backend
        self._model = model
        self._temperature = temperature

    @property
    def backend(self) -> LLMBackend:
        if self._backend is None:
            model = get_environment(EnvVar.WORKBENCH_ASSIST_MODEL, override=self._model)
            try:
                self._backend = create_llm_backend(model)
            except ValueError as e:
                raise AssistError(f"Assist model '{model}' is not available: {e}") from e
        return self._backend

    def _config(self, json_mode: bool = False, json_schema: dict | None = None) -> GenerationConfig:
        return GenerationConfig(
            temperature=self._temperature,
            max_tokens=2048,
            json_mode=json_mode,
            json_schema=json_schema,
            schema_name="generator_config",
        )

    def generate_system_message(self, prompt: str) -> str:
        """Write a system message for the described task.

        Raises:
            AssistError: If the model call fails.
        """
        try:
            result = self.backend.generate(
                f"Create a system message for an AI that should: {prompt}",
                system_prompt=SYSTEM_MESSAGE_PROMPT,
                config=self._config(),
            )
        except LLMError as e:
            logger.error(f"System message generation error: {e}")
            raise AssistError(f"Failed to generate system message: {e}") from e
        return result.content.strip()

    def generate_schema(self, prompt: str) -> str:
        """Write schema text for the described task.

        Raises:
            AssistError: If the model call fails or the text is not a valid schema.
        """
        try:
            result = self.backend.generate(
                f"Create a Zod schema for: {prompt}\n\n"
                "Return ONLY the schema code, no explanations.",
                system_prompt=SCHEMA_PROMPT,
                config=self._config(),
            )
            return check_generated_schema(result.content)
        except (LLMError, AssistError) as e:
            logger.error(f"Schema generation error: {e}")
            raise AssistError(f"Failed to generate schema: {e}") from e

    def generate_full_config(self, prompt: str) -> AssistedConfig:
        """Write a system message and a matching schema in one call.

        Raises:
            AssistError: If the model call fails or the schema is not valid.
        """
        try:
            value = self.backend.generate_json(
                f"Create a complete AI configuration for: {prompt}\n\n"
                "Generate both a system message and Zod schema that work together.",
                system_prompt=FULL_CONFIG_PROMPT,
                config=self._config(json_mode=True, json_schema=FULL_CONFIG_JSON_SCHEMA),
            )
            system_message = value.get("systemMessage")
            schema = value.get("schema")
            if not isinstance(system_message, str) or not isinstance(schema, str):
                raise AssistError("Response is missing systemMessage or schema")
            return AssistedConfig(system_message.strip(), check_generated_schema(schema))
        except (LLMError, AssistError) as e:
            logger.error(f"System and schema generation error: {e}")
            raise AssistError(f"Failed to generate configuration: {e}") from e


# =============================================================================
# Workspace helpers
# =============================================================================


def apply_system_message(workspace: Workspace, card_id: str, text: str) -> GeneratorCard:
    """Set a generator's system message from assisted text."""
    return workspace.update_generator_card(card_id, system_message=text)


def apply_schema(workspace: Workspace, card_id: str, text: str) -> GeneratorCard:
    """Import assisted schema text as the generator's raw schema.

    Raises:
        SchemaTextInvalidError: If the text fails validation.
    """
    return workspace.import_schema(card_id, text)


def apply_config(workspace: Workspace, card_id: str, config: AssistedConfig) -> GeneratorCard:
    """Apply both parts of an :class:`AssistedConfig` to a generator draft."""
    apply_schema(workspace, card_id, config.schema)
    return apply_system_message(workspace, card_id, config.system_message)


__all__ = [
    "AssistError",
    "AssistedConfig",
    "ConfigAssistant",
    "clean_schema_text",
    "check_generated_schema",
    "apply_system_message",
    "apply_schema",
    "apply_config",
    "SYSTEM_MESSAGE_PROMPT",
    "SCHEMA_PROMPT",
    "FULL_CONFIG_PROMPT",
]
