"""Unit tests for MCP tools, run against an explicit session."""

import json

import pytest

from workbench.assist import ConfigAssistant
from workbench.cards import DEFAULT_SYSTEM_MESSAGE
from workbench.workspace import CardNotFoundError, LastInputCardError, SchemaTextInvalidError

from ..session import WorkbenchSession
from .cards import (
    add_fetch_card,
    add_generator,
    add_input_card,
    commit_card,
    delete_input_card,
    get_version,
    list_cards,
    revert_card,
    set_generator_schema,
    switch_version,
    update_generator,
    update_input_card,
)
from .generate import (
    assist_config,
    estimate_generation,
    generate_output,
    get_record,
    list_models,
    list_records,
)
from .schema import parse_schema_text, render_schema_text, validate_schema

SUMMARY_SCHEMA = 'z.object({\n  summary: z.string().describe("desc")\n})'


@pytest.fixture
def session(orchestrator, mock_llm_backend):
    return WorkbenchSession(
        orchestrator.workspace,
        orchestrator=orchestrator,
        assistant=ConfigAssistant(mock_llm_backend),
    )


def _generator_id(session: WorkbenchSession) -> str:
    return session.workspace.generator_cards[0].id


class TestSchemaTools:
    """Tests for render, parse and validate."""

    @pytest.mark.unit
    def test_render(self):
        result = render_schema_text(
            [{"name": "summary", "type": "string", "description": "desc"}]
        )
        assert result["schema"] == SUMMARY_SCHEMA
        assert "summary" in result["json_schema"]["properties"]

    @pytest.mark.unit
    def test_render_rejects_bad_fields(self):
        with pytest.raises(ValueError, match="Invalid schema fields"):
            render_schema_text([{"name": "x", "type": "date"}])

    @pytest.mark.unit
    def test_parse(self):
        result = parse_schema_text(SUMMARY_SCHEMA)
        assert result["parseable"] is True
        assert result["fields"] == [
            {"name": "summary", "description": "desc", "type": "string"}
        ]

    @pytest.mark.unit
    def test_parse_never_fails(self):
        assert parse_schema_text("not a schema") == {"fields": [], "parseable": False}

    @pytest.mark.unit
    def test_validate(self):
        assert validate_schema(SUMMARY_SCHEMA)["valid"] is True
        result = validate_schema("z.object({ a: z.string().max(5) })")
        assert result["valid"] is False
        assert result["error_type"] == "forbidden_constraint"


class TestCardTools:
    """Tests for card and version tools."""

    @pytest.mark.unit
    def test_list_cards(self, session):
        result = list_cards(session)

        [card] = result["input_cards"]
        assert card["is_active"] is True
        assert result["active_input_id"] == card["id"]
        [generator] = result["generator_cards"]
        assert generator["system_message"] == DEFAULT_SYSTEM_MESSAGE
        assert generator["schema"].startswith("z.object({")

    @pytest.mark.unit
    def test_add_and_update_input(self, session):
        card = add_input_card("first", session=session)
        assert card["label"] == "input 2"

        updated = update_input_card(card["id"], data="second", session=session)
        assert updated["draft"]["data"] == "second"
        assert updated["has_unsaved_changes"] is True

    @pytest.mark.unit
    def test_fetch_options_only_for_fetch_cards(self, session):
        card_id = session.workspace.active_input_id
        with pytest.raises(ValueError, match="not a fetch card"):
            update_input_card(card_id, url="https://example.com", session=session)

    @pytest.mark.unit
    def test_add_and_update_fetch_card(self, session):
        card = add_fetch_card("https://example.com/a", method="post", body="{}", session=session)
        assert card["kind"] == "fetch"
        assert card["draft"]["fetch_config"]["method"] == "POST"

        updated = update_input_card(card["id"], timeout_ms=2000, session=session)
        config = updated["draft"]["fetch_config"]
        assert config["timeout_ms"] == 2000
        assert config["url"] == "https://example.com/a"
        assert config["body"] == "{}"

    @pytest.mark.unit
    def test_invalid_fetch_method(self, session):
        with pytest.raises(ValueError, match="Invalid fetch request"):
            add_fetch_card("https://example.com", method="TRACE", session=session)

    @pytest.mark.unit
    def test_last_input_card_kept(self, session):
        with pytest.raises(LastInputCardError):
            delete_input_card(session.workspace.active_input_id, session=session)

    @pytest.mark.unit
    def test_generator_schema(self, session):
        generator_id = _generator_id(session)

        result = set_generator_schema(generator_id, schema=SUMMARY_SCHEMA, session=session)
        assert result["uses_raw_schema"] is True
        assert result["schema"] == SUMMARY_SCHEMA

        result = set_generator_schema(
            generator_id, fields=[{"name": "title", "type": "string"}], session=session
        )
        assert result["uses_raw_schema"] is False
        assert result["schema"] == "z.object({\n  title: z.string()\n})"

        result = set_generator_schema(generator_id, session=session)
        assert result["schema"] == "z.object({})"

    @pytest.mark.unit
    def test_invalid_schema_rejected(self, session):
        with pytest.raises(SchemaTextInvalidError):
            set_generator_schema(
                _generator_id(session), schema="z.object({ a: z.string()", session=session
            )

    @pytest.mark.unit
    def test_versions(self, session):
        generator_id = _generator_id(session)
        update_generator(generator_id, system_message="v2", session=session)

        committed = commit_card(generator_id, session=session)
        assert committed["current_version"] == 2
        assert [v["version"] for v in committed["versions"]] == [1, 2]

        switched = switch_version(generator_id, 1, session=session)
        assert switched["system_message"] == DEFAULT_SYSTEM_MESSAGE

        reverted = revert_card(generator_id, session=session)
        assert reverted["system_message"] == "v2"

        version = get_version(generator_id, 1, session=session)
        assert version["content"]["system_message"] == DEFAULT_SYSTEM_MESSAGE

    @pytest.mark.unit
    def test_add_generator(self, session):
        result = add_generator("Invoices", model="gpt-4.1-mini", session=session)
        assert result["label"] == "Invoices"
        assert result["model"] == "gpt-4.1-mini"
        assert len(list_cards(session)["generator_cards"]) == 2


class TestGenerationTools:
    """Tests for generation, records and estimates."""

    @pytest.mark.unit
    def test_generate_and_list(self, session):
        generator_id = _generator_id(session)

        record = generate_output(generator_id, session=session)

        assert record["is_loading"] is False
        assert record["error"] is None
        assert record["result"]["summary"].startswith("Vercel")
        assert record["orphaned"] is False
        assert get_record(record["id"], session=session)["id"] == record["id"]

        listed = list_records(generator_id, session=session)
        assert listed["total_count"] == 1
        assert listed["has_more"] is False

    @pytest.mark.unit
    def test_generation_failure_reported(self, session):
        add_input_card("   ", session=session)

        record = generate_output(_generator_id(session), session=session)

        assert record["error"]["kind"] == "empty_input"

    @pytest.mark.unit
    def test_unknown_generator(self, session):
        with pytest.raises(CardNotFoundError):
            generate_output("missing", session=session)

    @pytest.mark.unit
    def test_estimate(self, session):
        generator_id = _generator_id(session)
        update_generator(generator_id, model="gpt-4.1-nano", session=session)

        result = estimate_generation(generator_id, session=session)

        assert result["model"] == "gpt-4.1-nano"
        assert result["tokens"]["total"] > 0
        assert result["total_estimated_cost"] > 0
        assert result["exceeds_max_tokens"] is False

    @pytest.mark.unit
    def test_list_models_sorted_by_input_cost(self):
        models = list_models()["models"]
        costs = [m["input_cost"] for m in models]
        assert costs == sorted(costs)
        assert any(m["id"] == "gpt-4.1-nano" for m in models)

    @pytest.mark.unit
    def test_assist_config_applied(self, session, mock_llm_backend):
        mock_llm_backend.replies = [
            json.dumps({"systemMessage": "Summarize.", "schema": SUMMARY_SCHEMA})
        ]
        generator_id = _generator_id(session)

        result = assist_config("summaries", generator_id, session=session)

        assert result["schema"] == SUMMARY_SCHEMA
        assert result["generator"]["system_message"] == "Summarize."
        assert result["generator"]["uses_raw_schema"] is True
