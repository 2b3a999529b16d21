"""Tests for the generation orchestrator.

Covers:
- Successful generation with usage and cost attached
- Reference immutability and version commit-or-reuse
- Pre-flight failures (no input, empty input, fetch, schema text, context)
- Remote failures and schema rejections captured on the record
- Worker bookkeeping and client ownership
"""

import threading
from unittest.mock import MagicMock

import httpx
import pytest

from workbench.cards import (
    DEFAULT_SYSTEM_MESSAGE,
    SAMPLE_INPUT_TEXT,
    FetchRequestConfig,
    InputKind,
)
from workbench.fetch import FetchClient, FetchError
from workbench.llm.backend import RateLimitError
from workbench.pricing import ModelPricing, PricingTable
from workbench.workspace import CardNotFoundError, Workspace

from .models import ErrorKind, FieldViolation
from .orchestrator import MSG_EMPTY_INPUT, MSG_NO_ACTIVE_INPUT, GenerationOrchestrator

WAIT_SECONDS = 10


def _generate(orchestrator: GenerationOrchestrator, generator_id: str | None = None):
    generator_id = generator_id or orchestrator.workspace.generator_cards[0].id
    record = orchestrator.generate(generator_id)
    return orchestrator.wait(record.id, timeout=WAIT_SECONDS)


class TestSuccessfulGeneration:
    """Tests for the happy path."""

    @pytest.mark.unit
    def test_result_and_usage(self, orchestrator, mock_llm_backend):
        record = _generate(orchestrator)

        assert record.succeeded
        assert record.result["summary"].startswith("Vercel")
        assert record.error is None
        assert record.token_usage.actual_input_tokens == 120
        assert record.token_usage.output_tokens == 40
        assert record.token_usage.total_tokens == 160
        assert record.token_usage.expected_input_tokens == record.token_breakdown.total
        assert record.generation_time_ms is not None
        assert len(mock_llm_backend.calls) == 1

    @pytest.mark.unit
    def test_call_arguments(self, orchestrator, workspace, mock_llm_backend):
        _generate(orchestrator)

        prompt, system_prompt, config = mock_llm_backend.calls[0]
        assert prompt == workspace.active_input_text()
        assert system_prompt == DEFAULT_SYSTEM_MESSAGE
        assert set(config.json_schema["properties"]) == {"summary", "actionItems"}

    @pytest.mark.unit
    def test_record_surfaced_first(self, orchestrator, workspace):
        record = orchestrator.generate(workspace.generator_cards[0].id)
        assert workspace.records[0] is record
        orchestrator.wait(record.id, timeout=WAIT_SECONDS)
        assert not record.is_loading

    @pytest.mark.unit
    def test_actual_cost_for_priced_model(self, orchestrator, workspace):
        generator = workspace.generator_cards[0]
        workspace.update_generator_card(generator.id, model="gpt-4.1-nano")

        record = _generate(orchestrator)

        assert record.cost_info.estimated_cost > 0
        assert record.cost_info.actual_cost > 0
        assert record.cost_info.output_cost > 0
        assert not record.cost_info.exceeds_max_tokens

    @pytest.mark.unit
    def test_unknown_generator_raises(self, orchestrator, workspace):
        with pytest.raises(CardNotFoundError):
            orchestrator.generate("missing")
        assert workspace.records == []


class TestGenerationReference:
    """The reference pins exactly what was consumed."""

    @pytest.mark.unit
    def test_reference_survives_later_edits(self, orchestrator, workspace):
        generator = workspace.generator_cards[0]
        record = _generate(orchestrator)

        workspace.update_generator_card(generator.id, system_message="Changed")
        workspace.update_input_card(workspace.active_input_id, data="Changed too")

        reference = record.generation_reference
        assert reference.generator_config.system_message == DEFAULT_SYSTEM_MESSAGE
        assert reference.input_text == SAMPLE_INPUT_TEXT
        assert generator.draft.system_message == "Changed"

    @pytest.mark.unit
    def test_dirty_cards_committed_clean_cards_reused(self, orchestrator, workspace):
        generator = workspace.generator_cards[0]
        input_id = workspace.active_input_id
        workspace.update_input_card(input_id, data="New meeting notes")

        record = _generate(orchestrator)

        reference = record.generation_reference
        assert reference.input_card_version == 2
        assert reference.generator_card_version == 1
        assert not workspace.get_input_card(input_id).has_unsaved_changes
        assert len(generator.versions) == 1

    @pytest.mark.unit
    def test_repeat_generation_reuses_versions(self, orchestrator, workspace):
        first = _generate(orchestrator)
        second = _generate(orchestrator)

        assert first.id != second.id
        assert (
            first.generation_reference.input_card_version
            == second.generation_reference.input_card_version
            == 1
        )


class TestPreconditionFailures:
    """Failures caught before any collaborator is contacted."""

    @pytest.mark.unit
    def test_no_active_input(self, extractor, fake_fetch_client, mock_llm_backend):
        workspace = Workspace(seed=False)
        generator = workspace.add_generator_card(model="gpt-4.1-nano")
        orchestrator = GenerationOrchestrator(workspace, extractor, fake_fetch_client)
        try:
            record = orchestrator.generate(generator.id)
        finally:
            orchestrator.shutdown()

        assert not record.is_loading
        assert record.error.kind == ErrorKind.NO_ACTIVE_INPUT
        assert record.error.message == MSG_NO_ACTIVE_INPUT
        assert record.generation_reference is None
        assert mock_llm_backend.calls == []

    @pytest.mark.unit
    def test_empty_input(self, orchestrator, workspace, mock_llm_backend):
        workspace.add_string_input_card("   \n")

        record = orchestrator.generate(workspace.generator_cards[0].id)

        assert record.error.kind == ErrorKind.EMPTY_INPUT
        assert record.error.message == MSG_EMPTY_INPUT
        assert mock_llm_backend.calls == []

    @pytest.mark.unit
    def test_invalid_schema_text(self, orchestrator, workspace, mock_llm_backend):
        generator = workspace.generator_cards[0]
        workspace.set_raw_schema(generator.id, "z.object({ a: z.string().max(5) })")

        record = orchestrator.generate(generator.id)

        assert record.error.kind == ErrorKind.SCHEMA_TEXT_INVALID
        assert ".max()" in record.error.message
        assert record.generation_reference is not None
        assert record.result is None
        assert mock_llm_backend.calls == []


class TestFetchResolution:
    """Fetch cards are resolved before generation."""

    @pytest.mark.unit
    def test_fetch_card_resolved(self, orchestrator, workspace, fake_fetch_client, mock_llm_backend):
        fetch = workspace.add_fetch_input_card(
            FetchRequestConfig(url="https://pokeapi.co/api/v2/pokemon/pikachu")
        )

        record = _generate(orchestrator)

        active = workspace.active_input
        assert active.id != fetch.id
        assert active.kind == InputKind.STRING
        assert active.label == "fetch 1 response"
        assert record.generation_reference.input_card_id == active.id
        assert record.generation_reference.input_text == '{"name": "pikachu", "id": 25}'
        assert mock_llm_backend.calls[0][0] == '{"name": "pikachu", "id": 25}'
        fake_fetch_client.request.assert_called_once()

    @pytest.mark.unit
    def test_fetch_failure(self, orchestrator, workspace, fake_fetch_client, mock_llm_backend):
        fake_fetch_client.request.side_effect = FetchError(
            "Request timed out after 50 ms", timed_out=True
        )
        fetch = workspace.add_fetch_input_card(FetchRequestConfig(timeout_ms=50))

        record = orchestrator.generate(workspace.generator_cards[0].id)

        assert record.error.kind == ErrorKind.FETCH_RESOLUTION_FAILED
        assert "timed out" in record.error.message
        assert workspace.active_input_id == fetch.id
        assert mock_llm_backend.calls == []

    @pytest.mark.unit
    def test_unencodable_header_captured(self, workspace, extractor, mock_llm_backend):
        client = FetchClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, text="ok"))
        )
        orchestrator = GenerationOrchestrator(workspace, extractor, client, max_workers=1)
        workspace.add_fetch_input_card(
            FetchRequestConfig(url="https://example.com/x", headers={"X-Name": "José"})
        )
        try:
            record = orchestrator.generate(workspace.generator_cards[0].id)
        finally:
            orchestrator.shutdown()
            client.close()

        assert record.error.kind == ErrorKind.FETCH_RESOLUTION_FAILED
        assert mock_llm_backend.calls == []


class TestCostGuard:
    """Inputs larger than the model context are refused."""

    @pytest.mark.unit
    def test_context_limit_refuses_call(self, workspace, extractor, fake_fetch_client, mock_llm_backend):
        pricing = PricingTable(
            [
                ModelPricing("tiny-model", 0.1, 0.4, max_tokens=1000, max_output_tokens=512),
                ModelPricing("roomy-model", 0.5, 2.0, max_tokens=100_000, max_output_tokens=4096),
                ModelPricing("huge-model", 2.0, 8.0, max_tokens=1_000_000, max_output_tokens=8192),
            ]
        )
        generator = workspace.generator_cards[0]
        workspace.update_generator_card(generator.id, model="tiny-model")
        workspace.add_string_input_card("word " * 1200)
        orchestrator = GenerationOrchestrator(
            workspace, extractor, fake_fetch_client, pricing=pricing
        )
        try:
            record = orchestrator.generate(generator.id)
        finally:
            orchestrator.shutdown()

        assert record.token_breakdown.total > 1000
        assert record.error.kind == ErrorKind.CONTEXT_LIMIT_EXCEEDED
        assert record.cost_info.exceeds_max_tokens is True
        assert record.cost_info.suggested_alternatives == ["roomy-model", "huge-model"]
        assert "roomy-model" in record.error.message
        assert mock_llm_backend.calls == []


class TestRemoteFailures:
    """Failures from the LLM call are captured on the record."""

    @pytest.mark.unit
    def test_remote_call_failure(self, orchestrator, mock_llm_backend):
        mock_llm_backend.replies = [RateLimitError("Rate limit exceeded")]

        record = _generate(orchestrator)

        assert record.error.kind == ErrorKind.REMOTE_CALL_FAILURE
        assert "Rate limit exceeded" in record.error.message
        assert record.result is None
        assert record.generation_reference is not None

    @pytest.mark.unit
    def test_schema_rejection(self, orchestrator, mock_llm_backend):
        mock_llm_backend.replies = [
            '{"summary": "ok", "actionItems": [{"task": "Write notes"}]}'
        ]

        record = _generate(orchestrator)

        error = record.error
        assert error.kind == ErrorKind.SCHEMA_SEMANTIC_REJECTION
        assert error.violations == (FieldViolation("actionItems.0.assignee", "Field required"),)
        assert '"summary": "ok"' in error.generated_value
        assert record.result is None

    @pytest.mark.unit
    def test_failure_does_not_affect_next_generation(self, orchestrator, mock_llm_backend):
        mock_llm_backend.replies = [RateLimitError("Rate limit exceeded")]

        failed = _generate(orchestrator)
        succeeded = _generate(orchestrator)

        assert failed.error is not None
        assert succeeded.succeeded

    @pytest.mark.unit
    def test_record_to_dict(self, orchestrator, mock_llm_backend):
        mock_llm_backend.replies = [RateLimitError("Rate limit exceeded")]

        data = _generate(orchestrator).to_dict()

        assert data["error"]["kind"] == "remote_call_failure"
        assert data["is_loading"] is False
        assert data["generation_reference"]["generator_card_version"] == 1


class TestConcurrency:
    """Concurrent generations produce independent records."""

    @pytest.mark.unit
    def test_concurrent_generations(self, orchestrator, workspace, mock_llm_backend):
        second = workspace.add_generator_card()
        first = workspace.generator_cards[1]

        records = [
            orchestrator.generate(first.id),
            orchestrator.generate(second.id),
            orchestrator.generate(first.id),
        ]
        resolved = [orchestrator.wait(r.id, timeout=WAIT_SECONDS) for r in records]

        assert len({r.id for r in resolved}) == 3
        assert all(r.succeeded for r in resolved)
        assert len(mock_llm_backend.calls) == 3
        assert len(workspace.records_for(first.id)) == 2
        assert len(workspace.records_for(second.id)) == 1


class TestWorkerLifecycle:
    """Bookkeeping of in-flight calls and owned resources."""

    @pytest.mark.unit
    def test_finished_futures_pruned(self, orchestrator):
        record = _generate(orchestrator)

        assert record.succeeded
        assert record.id not in orchestrator._futures

    @pytest.mark.unit
    def test_generator_deleted_mid_flight(
        self, orchestrator, workspace, mock_llm_backend, monkeypatch
    ):
        release = threading.Event()
        reply = mock_llm_backend.generate

        def blocked_generate(*args, **kwargs):
            release.wait(WAIT_SECONDS)
            return reply(*args, **kwargs)

        monkeypatch.setattr(mock_llm_backend, "generate", blocked_generate)
        generator = workspace.add_generator_card()
        record = orchestrator.generate(generator.id)
        future = orchestrator._futures[record.id]

        workspace.delete_generator_card(generator.id)
        release.set()

        assert future.exception(timeout=WAIT_SECONDS) is None
        with pytest.raises(CardNotFoundError):
            workspace.get_record(record.id)

    @pytest.mark.unit
    def test_shutdown_closes_default_fetch_client(self, workspace, extractor):
        orchestrator = GenerationOrchestrator(workspace, extractor, max_workers=1)
        client = orchestrator._fetch_client

        orchestrator.shutdown()

        assert client._client.is_closed

    @pytest.mark.unit
    def test_shutdown_leaves_injected_client_open(self, workspace, extractor):
        client = MagicMock()
        orchestrator = GenerationOrchestrator(workspace, extractor, client, max_workers=1)

        orchestrator.shutdown()

        client.close.assert_not_called()


@pytest.mark.integration
class TestGenerationIntegration:
    """Integration tests with the real OpenAI API."""

    def test_real_extraction(self):
        workspace = Workspace()
        orchestrator = GenerationOrchestrator(workspace, max_workers=1)
        try:
            record = _generate(orchestrator)
        finally:
            orchestrator.shutdown()

        assert record.error is None, record.error
        assert record.result["summary"]
        assert record.token_usage.output_tokens > 0
        assert record.cost_info.actual_cost is not None
