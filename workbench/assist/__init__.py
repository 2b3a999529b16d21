"""LLM-assisted system message and schema authoring."""

from workbench.assist.lib import (
    FULL_CONFIG_PROMPT,
    SCHEMA_PROMPT,
    SYSTEM_MESSAGE_PROMPT,
    AssistedConfig,
    AssistError,
    ConfigAssistant,
    apply_config,
    apply_schema,
    apply_system_message,
    check_generated_schema,
    clean_schema_text,
)

__all__ = [
    "ConfigAssistant",
    "AssistedConfig",
    "AssistError",
    # Schema text
    "clean_schema_text",
    "check_generated_schema",
    # Workspace helpers
    "apply_system_message",
    "apply_schema",
    "apply_config",
    # Prompts
    "SYSTEM_MESSAGE_PROMPT",
    "SCHEMA_PROMPT",
    "FULL_CONFIG_PROMPT",
]
