"""Unit tests for input and generator cards."""

import pytest
from pydantic import ValidationError

from workbench.cards import (
    DEFAULT_SYSTEM_MESSAGE,
    FetchInput,
    FetchRequestConfig,
    GeneratorConfig,
    HttpMethod,
    InputKind,
    StringInput,
    create_fetch_input_card,
    create_generator_card,
    create_string_input_card,
)
from workbench.schema import EMPTY_SCHEMA, StringField, default_schema_fields, render_schema


class TestFetchRequestConfig:
    """Defaults mirror the sample request offered to new fetch cards."""

    @pytest.mark.unit
    def test_defaults(self):
        config = FetchRequestConfig()
        assert config.method == HttpMethod.GET
        assert config.url == "https://pokeapi.co/api/v2/pokemon/pikachu"
        assert config.headers == {"Accept": "application/json"}
        assert config.timeout_ms == 10000
        assert config.body is None

    @pytest.mark.unit
    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            FetchRequestConfig(timeout_ms=0)


class TestGeneratorConfig:
    """Schema source exclusivity."""

    @pytest.fixture
    def config(self):
        return GeneratorConfig(
            label="g", model="gpt-4.1-nano", schema_fields=default_schema_fields()
        )

    @pytest.mark.unit
    def test_both_sources_rejected(self):
        with pytest.raises(ValidationError):
            GeneratorConfig(
                label="g",
                model="m",
                schema_fields=[StringField(name="a")],
                raw_schema="z.object({})",
            )

    @pytest.mark.unit
    def test_raw_schema_clears_fields(self, config):
        updated = config.with_raw_schema("z.object({ a: z.string() })")
        assert updated.schema_fields == []
        assert updated.schema_text() == "z.object({ a: z.string() })"
        assert updated.uses_raw_schema

    @pytest.mark.unit
    def test_fields_clear_raw_schema(self, config):
        raw = config.with_raw_schema("z.object({ a: z.string() })")
        updated = raw.with_fields([StringField(name="b")])
        assert updated.raw_schema is None
        assert "b: z.string()" in updated.schema_text()

    @pytest.mark.unit
    def test_empty_fields_keep_raw_schema(self, config):
        raw = config.with_raw_schema("z.object({ a: z.string() })")
        assert raw.with_fields([]).raw_schema == "z.object({ a: z.string() })"

    @pytest.mark.unit
    def test_cleared_schema(self, config):
        cleared = config.cleared_schema()
        assert not cleared.has_schema
        assert cleared.schema_text() == EMPTY_SCHEMA

    @pytest.mark.unit
    def test_schema_text_renders_fields(self, config):
        assert config.schema_text() == render_schema(config.schema_fields)


class TestFactories:
    """Card factories."""

    @pytest.mark.unit
    def test_string_card(self):
        card = create_string_input_card("input", "hello")
        assert card.kind == InputKind.STRING
        assert card.draft.data == "hello"
        assert card.current_version == 1
        assert not card.has_unsaved_changes

    @pytest.mark.unit
    def test_fetch_card(self):
        card = create_fetch_input_card("fetch 1")
        assert card.kind == InputKind.FETCH
        assert isinstance(card.draft, FetchInput)
        assert card.draft.fetch_config.url.startswith("https://")

    @pytest.mark.unit
    def test_input_variant_cannot_change(self):
        card = create_fetch_input_card("fetch 1")
        with pytest.raises(TypeError):
            card.replace_draft(StringInput(label="x"))

    @pytest.mark.unit
    def test_generator_card_defaults(self, monkeypatch):
        monkeypatch.delenv("WORKBENCH_DEFAULT_MODEL", raising=False)
        card = create_generator_card("Default Extractor")
        assert card.draft.model == "gpt-4.1-nano"
        assert card.draft.system_message == DEFAULT_SYSTEM_MESSAGE
        assert [f.name for f in card.draft.schema_fields] == ["summary", "actionItems"]

    @pytest.mark.unit
    def test_generator_card_raw_schema(self):
        card = create_generator_card("g", raw_schema="z.object({ a: z.string() })")
        assert card.draft.schema_fields == []
        assert card.draft.uses_raw_schema

    @pytest.mark.unit
    def test_card_ids_unique(self):
        assert create_generator_card("a").id != create_generator_card("b").id

    @pytest.mark.unit
    def test_generator_edit_is_tracked(self):
        card = create_generator_card("g")
        card.edit(system_message="Be brief.")
        assert card.has_unsaved_changes
        card.replace_draft(card.get_version(1).content)
        assert not card.has_unsaved_changes
