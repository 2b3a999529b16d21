"""Tests for assisted configuration authoring."""

import json

import pytest

from workbench.llm.backend import AuthenticationError
from workbench.workspace import SchemaTextInvalidError

from .lib import (
    SCHEMA_PROMPT,
    SYSTEM_MESSAGE_PROMPT,
    AssistedConfig,
    AssistError,
    ConfigAssistant,
    apply_config,
    apply_schema,
    clean_schema_text,
)

INVOICE_SCHEMA = 'z.object({\n  total: z.number().describe("Invoice total")\n})'


@pytest.fixture
def assistant(mock_llm_backend):
    return ConfigAssistant(mock_llm_backend)


class TestCleanSchemaText:
    """Tests for code fence cleanup."""

    @pytest.mark.unit
    def test_strips_fences(self):
        assert clean_schema_text(f"```typescript\n{INVOICE_SCHEMA}\n```") == INVOICE_SCHEMA

    @pytest.mark.unit
    def test_plain_text_unchanged(self):
        assert clean_schema_text(f"  {INVOICE_SCHEMA}\n") == INVOICE_SCHEMA


class TestConfigAssistant:
    """Tests for ConfigAssistant with a scripted backend."""

    @pytest.mark.unit
    def test_system_message(self, assistant, mock_llm_backend):
        mock_llm_backend.replies = ["  You extract invoice totals.  "]

        assert assistant.generate_system_message("read invoices") == "You extract invoice totals."
        prompt, system_prompt, _ = mock_llm_backend.calls[0]
        assert prompt == "Create a system message for an AI that should: read invoices"
        assert system_prompt == SYSTEM_MESSAGE_PROMPT

    @pytest.mark.unit
    def test_schema_cleaned(self, assistant, mock_llm_backend):
        mock_llm_backend.replies = [f"```\n{INVOICE_SCHEMA}\n```"]

        assert assistant.generate_schema("invoice totals") == INVOICE_SCHEMA
        prompt, system_prompt, _ = mock_llm_backend.calls[0]
        assert prompt.startswith("Create a Zod schema for: invoice totals")
        assert system_prompt == SCHEMA_PROMPT

    @pytest.mark.unit
    def test_schema_must_start_with_object(self, assistant, mock_llm_backend):
        mock_llm_backend.replies = ["Here is your schema: z.object({ a: z.string() })"]

        with pytest.raises(AssistError, match="does not start with z.object"):
            assistant.generate_schema("anything")

    @pytest.mark.unit
    def test_schema_must_pass_validator(self, assistant, mock_llm_backend):
        mock_llm_backend.replies = ["z.object({ a: z.string().max(10) })"]

        with pytest.raises(AssistError, match="Failed to generate schema"):
            assistant.generate_schema("anything")

    @pytest.mark.unit
    def test_remote_failure_wrapped(self, assistant, mock_llm_backend):
        mock_llm_backend.replies = [AuthenticationError("bad key")]

        with pytest.raises(AssistError, match="Failed to generate system message: bad key"):
            assistant.generate_system_message("anything")

    @pytest.mark.unit
    def test_full_config(self, assistant, mock_llm_backend):
        mock_llm_backend.replies = [
            json.dumps({"systemMessage": "Extract invoice totals.", "schema": INVOICE_SCHEMA})
        ]

        config = assistant.generate_full_config("invoices")

        assert config == AssistedConfig("Extract invoice totals.", INVOICE_SCHEMA)
        _, _, generation_config = mock_llm_backend.calls[0]
        assert generation_config.json_mode is True
        assert generation_config.json_schema["required"] == ["systemMessage", "schema"]

    @pytest.mark.unit
    def test_full_config_missing_keys(self, assistant, mock_llm_backend):
        mock_llm_backend.replies = ['{"systemMessage": "only this"}']

        with pytest.raises(AssistError, match="Failed to generate configuration"):
            assistant.generate_full_config("invoices")

    @pytest.mark.unit
    def test_unknown_assist_model(self):
        assistant = ConfigAssistant(model="no-such-model")

        with pytest.raises(AssistError, match="not available"):
            assistant.generate_system_message("anything")


class TestWorkspaceHelpers:
    """Applying assisted output to generator drafts."""

    @pytest.mark.unit
    def test_apply_config(self, workspace):
        card = workspace.generator_cards[0]

        apply_config(workspace, card.id, AssistedConfig("Extract totals.", INVOICE_SCHEMA))

        assert card.draft.system_message == "Extract totals."
        assert card.draft.raw_schema == INVOICE_SCHEMA
        assert card.draft.schema_fields == []
        assert card.has_unsaved_changes

    @pytest.mark.unit
    def test_apply_invalid_schema(self, workspace):
        card = workspace.generator_cards[0]
        with pytest.raises(SchemaTextInvalidError):
            apply_schema(workspace, card.id, "z.object({ a: z.string()")
