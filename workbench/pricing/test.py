"""Tests for token and cost estimation."""

import pytest

from .lib import (
    MESSAGE_OVERHEAD_TOKENS,
    ModelPricing,
    PricingTable,
    TokenBreakdown,
    calculate_actual_cost,
    count_tokens,
    estimate_cost,
    estimate_output_tokens,
    format_cost,
    lookup_model,
    should_warn_about_cost,
)


def _model(model_id: str, input_cost: float, max_tokens: int) -> ModelPricing:
    return ModelPricing(
        id=model_id,
        input_cost=input_cost,
        output_cost=input_cost * 4,
        max_tokens=max_tokens,
        max_output_tokens=4096,
    )


class TestCountTokens:
    """Tests for the token heuristic."""

    @pytest.mark.unit
    @pytest.mark.parametrize("text", ["", "   \n\t", None])
    def test_blank_text_is_zero(self, text):
        assert count_tokens(text) == 0

    @pytest.mark.unit
    def test_character_estimate_wins_for_long_words(self):
        assert count_tokens("x" * 400) == 100

    @pytest.mark.unit
    def test_word_estimate_wins_for_short_words(self):
        # 5 chars -> 2 tokens, 3 words -> 4 tokens
        assert count_tokens("a b c") == 4

    @pytest.mark.unit
    def test_breakdown_adds_overhead(self):
        breakdown = TokenBreakdown.from_texts("hello world", "", "x" * 40)
        assert breakdown.input == 3
        assert breakdown.system_message == 0
        assert breakdown.schema == 10
        assert breakdown.total == 13 + MESSAGE_OVERHEAD_TOKENS


class TestEstimateOutputTokens:
    """Tests for the output size heuristic."""

    @pytest.mark.unit
    def test_schema_minimum(self):
        assert estimate_output_tokens(10, has_schema=True) == 50

    @pytest.mark.unit
    def test_schema_maximum(self):
        assert estimate_output_tokens(20000, has_schema=True) == 4000

    @pytest.mark.unit
    def test_without_schema_cap(self):
        assert estimate_output_tokens(50000, has_schema=False) == 8000
        assert estimate_output_tokens(0, has_schema=False) == 0


class TestPricingTable:
    """Tests for lookup and cost estimates."""

    @pytest.mark.unit
    def test_registry_lookup(self):
        pricing = lookup_model("gpt-4.1-nano")
        assert pricing is not None
        assert pricing.input_cost == 0.1
        assert pricing.output_cost == 0.4
        assert pricing.max_tokens == 1047576

    @pytest.mark.unit
    def test_reasoning_flag(self):
        assert lookup_model("o3-mini").supports_reasoning is True
        assert lookup_model("gpt-4o").supports_reasoning is False

    @pytest.mark.unit
    def test_unknown_model(self):
        assert lookup_model("no-such-model") is None
        estimate = estimate_cost(1000, 100, "no-such-model")
        assert estimate.total_estimated_cost == 0.0
        assert estimate.exceeds_max_tokens is False

    @pytest.mark.unit
    def test_estimate_cost(self):
        estimate = estimate_cost(1_000_000, 1_000_000, "gpt-4.1-nano")
        assert estimate.input_cost == pytest.approx(0.1)
        assert estimate.estimated_output_cost == pytest.approx(0.4)
        assert estimate.total_estimated_cost == pytest.approx(0.5)
        assert estimate.exceeds_max_tokens is False
        assert estimate.suggested_alternatives == []

    @pytest.mark.unit
    def test_context_guard_suggests_alternatives(self):
        table = PricingTable(
            [
                _model("tiny", 1.0, 1000),
                _model("huge", 3.0, 1_000_000),
                _model("big", 2.0, 200_000),
                _model("small", 0.1, 1200),
                _model("big-cheap", 0.5, 200_000),
                _model("also-big", 2.5, 200_000),
            ]
        )

        estimate = table.estimate_cost(1500, 100, "tiny")

        assert estimate.exceeds_max_tokens is True
        assert [m.id for m in estimate.suggested_alternatives] == [
            "big-cheap",
            "big",
            "also-big",
        ]

    @pytest.mark.unit
    def test_actual_cost(self):
        cost = calculate_actual_cost(1000, 500, "gpt-4o")
        assert cost.input_cost == pytest.approx(0.0025)
        assert cost.output_cost == pytest.approx(0.005)
        assert cost.total_cost == pytest.approx(0.0075)

    @pytest.mark.unit
    def test_actual_cost_needs_usage(self):
        assert calculate_actual_cost(None, 500, "gpt-4o") is None
        assert calculate_actual_cost(1000, 0, "gpt-4o") is None
        assert calculate_actual_cost(1000, 500, "no-such-model") is None


class TestCostFormatting:
    """Tests for display helpers."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "cost,expected",
        [(0.0, "<$0.001"), (0.0005, "<$0.001"), (0.0123, "$0.012"), (1.5, "$1.500")],
    )
    def test_format_cost(self, cost, expected):
        assert format_cost(cost) == expected

    @pytest.mark.unit
    def test_warning_threshold(self, monkeypatch):
        monkeypatch.delenv("WORKBENCH_COST_WARNING_USD", raising=False)
        assert should_warn_about_cost(1.0) is True
        assert should_warn_about_cost(0.99) is False

    @pytest.mark.unit
    def test_warning_threshold_configurable(self, monkeypatch):
        monkeypatch.setenv("WORKBENCH_COST_WARNING_USD", "0.25")
        assert should_warn_about_cost(0.3) is True
        assert should_warn_about_cost(0.3, threshold=0.5) is False
