"""Tests for structured extraction.

Covers:
- JSON repair of fenced, chatty and trailing-comma output
- StructuredExtractor with the scripted backend
"""

import json

import pytest

from workbench.schema import default_schema_fields, render_schema

from ..backend.base import InvalidResponseError, LLMError, RateLimitError
from .lib import SCHEMA_PROMPT_HEADER, SchemaRejectionError, StructuredExtractor
from .repair import load_object, parse_or_repair, repair_json

DEFAULT_SCHEMA = render_schema(default_schema_fields())

# =============================================================================
# JSON repair
# =============================================================================


class TestRepairJson:
    """Tests for JSON repair functionality."""

    @pytest.mark.unit
    def test_repair_markdown_code_blocks(self):
        result = repair_json('```json\n{"summary": "short"}\n```')
        assert result == {"summary": "short"}

    @pytest.mark.unit
    def test_repair_trailing_commas(self):
        result = repair_json('{"tags": ["a", "b",], "done": true,}')
        assert result == {"tags": ["a", "b"], "done": True}

    @pytest.mark.unit
    def test_repair_unquoted_keys(self):
        assert repair_json("{summary: 1, count: 2}") == {"summary": 1, "count": 2}

    @pytest.mark.unit
    def test_repair_extracts_from_mixed_content(self):
        content = 'Sure! {"summary": "x"} Let me know if you need more.'
        assert repair_json(content) == {"summary": "x"}

    @pytest.mark.unit
    def test_repair_ignores_braces_in_strings(self):
        content = 'Result follows {"note": "use } carefully"} trailing'
        assert repair_json(content) == {"note": "use } carefully"}

    @pytest.mark.unit
    def test_repair_with_prefix(self):
        assert repair_json('Result: {"a": 1}') == {"a": 1}

    @pytest.mark.unit
    def test_repair_gives_up(self):
        assert repair_json("no json here") is None
        assert repair_json("[1, 2, 3]") is None

    @pytest.mark.unit
    def test_load_object_rejects_non_objects(self):
        assert load_object('"text"') is None
        assert load_object(' {"a": 1} ') == {"a": 1}

    @pytest.mark.unit
    def test_parse_or_repair_flags_repair(self):
        assert parse_or_repair('{"a": 1}') == ({"a": 1}, False)
        assert parse_or_repair('```\n{"a": 1}\n```') == ({"a": 1}, True)
        assert parse_or_repair("nothing") == (None, True)


# =============================================================================
# StructuredExtractor
# =============================================================================


class TestStructuredExtractor:
    """Tests for StructuredExtractor with a scripted backend."""

    @pytest.mark.unit
    def test_invoke_returns_object_and_usage(self, extractor, mock_llm_backend):
        result = extractor.invoke(
            "input text", "gpt-4.1-nano", "Be concise.", DEFAULT_SCHEMA
        )

        assert result.object["summary"].startswith("Vercel")
        assert result.usage["total_tokens"] == 160
        assert result.model == "mock-model-v1"
        assert result.repaired is False

    @pytest.mark.unit
    def test_compiled_schema_sent_as_json_schema(self, extractor, mock_llm_backend):
        extractor.invoke("input text", "gpt-4.1-nano", "Be concise.", DEFAULT_SCHEMA)

        prompt, system_prompt, config = mock_llm_backend.calls[0]
        assert prompt == "input text"
        assert system_prompt == "Be concise."
        assert config.json_mode is True
        assert set(config.json_schema["properties"]) == {"summary", "actionItems"}

    @pytest.mark.unit
    def test_unparseable_schema_sent_as_prompt_data(self, mock_llm_backend, extractor):
        mock_llm_backend.replies = ['{"anything": 1}']
        schema = "z.union([z.string(), z.number()])"

        result = extractor.invoke("input", "gpt-4.1-nano", "Be concise.", schema)

        _, system_prompt, config = mock_llm_backend.calls[0]
        assert config.json_schema is None
        assert system_prompt.startswith("Be concise.")
        assert SCHEMA_PROMPT_HEADER in system_prompt
        assert schema in system_prompt
        assert result.object == {"anything": 1}

    @pytest.mark.unit
    def test_schema_violation_raises_rejection(self, mock_llm_backend, extractor):
        mock_llm_backend.replies = [
            '{"summary": "ok", "actionItems": [{"task": "Write notes"}]}'
        ]

        with pytest.raises(SchemaRejectionError) as exc_info:
            extractor.invoke("input", "gpt-4.1-nano", "", DEFAULT_SCHEMA)

        error = exc_info.value
        assert error.violations == [("actionItems.0.assignee", "Field required")]
        assert json.loads(error.generated_value)["summary"] == "ok"
        assert "Schema validation failed" in str(error)
        assert "Generated value:" in str(error)

    @pytest.mark.unit
    def test_no_object_raises_invalid_response(self, mock_llm_backend, extractor):
        mock_llm_backend.replies = ["I cannot help with that."]

        with pytest.raises(InvalidResponseError, match="did not return a valid object"):
            extractor.invoke("input", "gpt-4.1-nano", "", DEFAULT_SCHEMA)

    @pytest.mark.unit
    def test_fenced_reply_is_repaired(self, mock_llm_backend, extractor):
        mock_llm_backend.replies = [
            '```json\n{"summary": "s", "actionItems": [],}\n```'
        ]

        result = extractor.invoke("input", "gpt-4.1-nano", "", DEFAULT_SCHEMA)

        assert result.object == {"summary": "s", "actionItems": []}
        assert result.repaired is True

    @pytest.mark.unit
    def test_backend_errors_propagate(self, mock_llm_backend, extractor):
        mock_llm_backend.replies = [RateLimitError("Rate limit exceeded")]

        with pytest.raises(RateLimitError):
            extractor.invoke("input", "gpt-4.1-nano", "", DEFAULT_SCHEMA)

    @pytest.mark.unit
    def test_backend_cached_per_model(self, mock_llm_backend):
        created = []

        def factory(model_id):
            created.append(model_id)
            return mock_llm_backend

        extractor = StructuredExtractor(factory)
        extractor.invoke("a", "gpt-4.1-nano", "", DEFAULT_SCHEMA)
        extractor.invoke("b", "gpt-4.1-nano", "", DEFAULT_SCHEMA)
        extractor.invoke("c", "gpt-4o", "", DEFAULT_SCHEMA)

        assert created == ["gpt-4.1-nano", "gpt-4o"]

    @pytest.mark.unit
    def test_unknown_model_raises_llm_error(self):
        def factory(model_id):
            raise ValueError(f"Unknown model: {model_id}")

        extractor = StructuredExtractor(factory)
        with pytest.raises(LLMError, match="not available"):
            extractor.invoke("a", "no-such-model", "", DEFAULT_SCHEMA)
