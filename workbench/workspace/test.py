"""Tests for workspace state management."""

import threading

import pytest

from workbench.cards import (
    DEFAULT_SYSTEM_MESSAGE,
    NEW_GENERATOR_SYSTEM_MESSAGE,
    SAMPLE_INPUT_TEXT,
    FetchRequestConfig,
    InputKind,
)
from workbench.generation.models import (
    ErrorKind,
    GenerationError,
    GenerationRecord,
    GenerationReference,
)
from workbench.schema import StringField, default_schema_fields
from workbench.versioning import VersionNotFoundError

from .lib import (
    CardNotFoundError,
    InputKindError,
    LastInputCardError,
    RecordAlreadyResolvedError,
    SchemaTextInvalidError,
    Workspace,
)


def _record(workspace: Workspace, generator_id: str | None = None) -> GenerationRecord:
    generator = (
        workspace.get_generator_card(generator_id)
        if generator_id
        else workspace.generator_cards[0]
    )
    reference = GenerationReference(
        input_card_id=workspace.active_input_id,
        input_card_version=1,
        generator_card_id=generator.id,
        generator_card_version=1,
        input_text=workspace.active_input_text(),
        generator_config=generator.draft,
    )
    return workspace.add_record(
        GenerationRecord(generator_id=generator.id, generation_reference=reference)
    )


class TestInitialState:
    """A fresh workspace mirrors the starting dashboard."""

    @pytest.mark.unit
    def test_seeded_cards(self, workspace):
        [card] = workspace.input_cards
        assert card.label == "input"
        assert card.draft.data == SAMPLE_INPUT_TEXT
        assert workspace.active_input_id == card.id
        assert card.current_version == 1
        assert not card.has_unsaved_changes

        [generator] = workspace.generator_cards
        assert generator.label == "Default Extractor"
        assert generator.draft.system_message == DEFAULT_SYSTEM_MESSAGE
        assert len(generator.draft.schema_fields) == 2

    @pytest.mark.unit
    def test_unseeded(self):
        workspace = Workspace(seed=False)
        assert workspace.input_cards == []
        assert workspace.active_input is None
        assert workspace.active_input_text() == ""


class TestInputCards:
    """Tests for input card operations."""

    @pytest.mark.unit
    def test_add_string_card_is_first_and_active(self, workspace):
        card = workspace.add_string_input_card("hello")
        assert workspace.input_cards[0] is card
        assert card.label == "input 2"
        assert workspace.active_input_id == card.id
        assert workspace.active_input_text() == "hello"

    @pytest.mark.unit
    def test_fetch_labels_count_fetch_cards(self, workspace):
        workspace.add_string_input_card()
        first = workspace.add_fetch_input_card()
        second = workspace.add_fetch_input_card()
        assert first.label == "fetch 1"
        assert second.label == "fetch 2"
        assert second.kind == InputKind.FETCH
        assert workspace.active_input_text() == ""

    @pytest.mark.unit
    def test_cannot_delete_last_card(self, workspace):
        with pytest.raises(LastInputCardError):
            workspace.delete_input_card(workspace.active_input_id)
        assert len(workspace.input_cards) == 1

    @pytest.mark.unit
    def test_delete_active_activates_first_remaining(self, workspace):
        original = workspace.input_cards[0]
        newest = workspace.add_string_input_card("x")
        workspace.add_string_input_card("y", activate=False)
        workspace.set_active_input(newest.id)

        workspace.delete_input_card(newest.id)

        assert workspace.active_input_id == workspace.input_cards[0].id
        assert original in workspace.input_cards

    @pytest.mark.unit
    def test_delete_inactive_keeps_active(self, workspace):
        active_id = workspace.active_input_id
        other = workspace.add_string_input_card("x", activate=False)
        workspace.delete_input_card(other.id)
        assert workspace.active_input_id == active_id

    @pytest.mark.unit
    def test_update_marks_dirty(self, workspace):
        card = workspace.input_cards[0]
        workspace.update_input_card(card.id, data="changed")
        assert card.has_unsaved_changes
        assert workspace.active_input_text() == "changed"

    @pytest.mark.unit
    def test_kind_is_fixed(self, workspace):
        card = workspace.input_cards[0]
        with pytest.raises(InputKindError):
            workspace.update_input_card(card.id, kind="fetch")

    @pytest.mark.unit
    def test_field_of_other_kind_rejected(self, workspace):
        card = workspace.input_cards[0]
        with pytest.raises(ValueError, match="fetch_config"):
            workspace.update_input_card(card.id, fetch_config=FetchRequestConfig())
        assert not card.has_unsaved_changes

    @pytest.mark.unit
    def test_unknown_card(self, workspace):
        with pytest.raises(CardNotFoundError, match="not found"):
            workspace.get_input_card("missing")
        with pytest.raises(CardNotFoundError):
            workspace.set_active_input("missing")


class TestExecuteFetch:
    """Tests for fetch resolution into a new string card."""

    @pytest.mark.unit
    def test_response_card_created_and_active(self, workspace, fake_fetch_client):
        fetch = workspace.add_fetch_input_card(
            FetchRequestConfig(url="https://example.com/data")
        )

        response = workspace.execute_fetch(fetch.id, fake_fetch_client)

        assert response.label == "fetch 1 response"
        assert response.kind == InputKind.STRING
        assert workspace.active_input_id == response.id
        assert workspace.active_input_text() == '{"name": "pikachu", "id": 25}'
        fake_fetch_client.request.assert_called_once_with(fetch.draft.fetch_config)

    @pytest.mark.unit
    def test_string_card_rejected(self, workspace, fake_fetch_client):
        with pytest.raises(InputKindError):
            workspace.execute_fetch(workspace.active_input_id, fake_fetch_client)
        fake_fetch_client.request.assert_not_called()


class TestGeneratorCards:
    """Tests for generator card operations."""

    @pytest.mark.unit
    def test_add_generator(self, workspace, clean_llm_env):
        card = workspace.add_generator_card()
        assert workspace.generator_cards[0] is card
        assert card.label == "Generator 2"
        assert card.draft.system_message == NEW_GENERATOR_SYSTEM_MESSAGE
        assert card.draft.model == "gpt-4.1-nano"

    @pytest.mark.unit
    def test_delete_generator_removes_records(self, workspace):
        kept = workspace.add_generator_card()
        doomed = workspace.generator_cards[1]
        _record(workspace, kept.id)
        _record(workspace, doomed.id)

        workspace.delete_generator_card(doomed.id)

        assert [r.generator_id for r in workspace.records] == [kept.id]

    @pytest.mark.unit
    def test_schema_sources(self, workspace):
        card = workspace.generator_cards[0]

        workspace.set_raw_schema(card.id, "z.object({ a: z.string() })")
        assert card.draft.schema_fields == []
        assert card.draft.uses_raw_schema

        workspace.set_schema_fields(card.id, [StringField(name="b")])
        assert card.draft.raw_schema is None
        assert [f.name for f in card.draft.schema_fields] == ["b"]

        workspace.clear_schema(card.id)
        assert not card.draft.has_schema

    @pytest.mark.unit
    def test_empty_fields_keep_raw_schema(self, workspace):
        card = workspace.generator_cards[0]
        workspace.set_raw_schema(card.id, "z.object({ a: z.string() })")
        workspace.set_schema_fields(card.id, [])
        assert card.draft.raw_schema == "z.object({ a: z.string() })"

    @pytest.mark.unit
    def test_import_schema_validated(self, workspace):
        card = workspace.generator_cards[0]

        with pytest.raises(SchemaTextInvalidError) as exc_info:
            workspace.import_schema(card.id, "z.object({ a: z.string().max(5) })")
        assert exc_info.value.check.error_type == "forbidden_constraint"
        assert card.draft.raw_schema is None

        workspace.import_schema(card.id, "  z.object({ a: z.number() })\n")
        assert card.draft.raw_schema == "z.object({ a: z.number() })"


class TestVersions:
    """Version operations route to the right card."""

    @pytest.mark.unit
    def test_commit_and_switch(self, workspace):
        card = workspace.generator_cards[0]
        workspace.update_generator_card(card.id, system_message="v2")
        assert workspace.commit(card.id) == 2

        workspace.switch_version(card.id, 1)
        assert card.draft.system_message == DEFAULT_SYSTEM_MESSAGE
        assert not card.has_unsaved_changes

        workspace.switch_version(card.id, None)
        assert card.is_working
        assert card.has_unsaved_changes

        workspace.revert(card.id)
        assert card.current_version == 2
        assert card.draft.system_message == "v2"

    @pytest.mark.unit
    def test_switch_unknown_version(self, workspace):
        with pytest.raises(VersionNotFoundError):
            workspace.switch_version(workspace.active_input_id, 7)

    @pytest.mark.unit
    def test_input_card_commit(self, workspace):
        card_id = workspace.active_input_id
        workspace.update_input_card(card_id, data="new")
        assert workspace.commit(card_id) == 2
        assert [s.version for s in workspace.get_input_card(card_id).versions] == [1, 2]


class TestRecords:
    """Tests for record storage and resolution."""

    @pytest.mark.unit
    def test_resolve_once(self, workspace):
        record = _record(workspace)
        assert record.is_loading

        workspace.resolve_record(record.id, result={"summary": "s"}, generation_time_ms=12)

        assert not record.is_loading
        assert record.result == {"summary": "s"}
        assert record.generation_time_ms == 12
        with pytest.raises(RecordAlreadyResolvedError):
            workspace.resolve_record(record.id, result={})

    @pytest.mark.unit
    def test_resolve_with_error_drops_result(self, workspace):
        record = _record(workspace)
        error = GenerationError(ErrorKind.REMOTE_CALL_FAILURE, "boom")
        workspace.resolve_record(record.id, result={"x": 1}, error=error)
        assert record.result is None
        assert record.error is error

    @pytest.mark.unit
    def test_concurrent_resolution_single_winner(self, workspace):
        record = _record(workspace)
        outcomes = []

        def resolve(value):
            try:
                workspace.resolve_record(record.id, result={"v": value})
                outcomes.append(value)
            except RecordAlreadyResolvedError:
                pass

        threads = [threading.Thread(target=resolve, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(outcomes) == 1
        assert record.result == {"v": outcomes[0]}

    @pytest.mark.unit
    def test_orphaned_records(self, workspace):
        extra_input = workspace.add_string_input_card("text")
        record = _record(workspace)
        assert not workspace.is_orphaned(record)

        workspace.delete_input_card(extra_input.id)
        assert workspace.is_orphaned(record)

    @pytest.mark.unit
    def test_records_newest_first(self, workspace):
        first = _record(workspace)
        second = _record(workspace)
        assert workspace.records == [second, first]
        generator_id = workspace.generator_cards[0].id
        assert workspace.records_for(generator_id) == [second, first]

    @pytest.mark.unit
    def test_default_schema_seeded(self, workspace):
        fields = workspace.generator_cards[0].draft.schema_fields
        assert [f.name for f in fields] == [f.name for f in default_schema_fields()]
