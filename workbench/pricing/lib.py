"""Token and cost estimation for generations.

Token counts are a heuristic (no tokenizer dependency): the larger of a
character-based estimate (4 characters per token) and a word-based estimate
(1.3 tokens per word). Prices come from the model registry in
:mod:`workbench.llm.backend.model_spec`.
"""

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field

from workbench.config import EnvVar, get_environment
from workbench.llm.backend.model_spec import LLMCapability, LLMModel, LLMSpec

logger = logging.getLogger(__name__)

# Approximate chat formatting overhead added to every request
MESSAGE_OVERHEAD_TOKENS = 10
MAX_ALTERNATIVES = 3


# =============================================================================
# Tokens
# =============================================================================


def count_tokens(text: str | None) -> int:
    """Estimate the token count of ``text``. Blank text counts as zero."""
    if not text or not text.strip():
        return 0
    words = len(text.split())
    return max(math.ceil(len(text) / 4), math.ceil(words * 1.3))


@dataclass(frozen=True)
class TokenBreakdown:
    """Estimated prompt tokens per component.

    Attributes:
        input: Tokens of the input text.
        system_message: Tokens of the generator system message.
        schema: Tokens of the rendered schema text.
        total: Sum of the above plus message overhead.
    """

    input: int
    system_message: int
    schema: int
    total: int

    @classmethod
    def from_texts(
        cls, input_text: str, system_message: str, schema_text: str
    ) -> "TokenBreakdown":
        input_tokens = count_tokens(input_text)
        system_tokens = count_tokens(system_message)
        schema_tokens = count_tokens(schema_text)
        return cls(
            input=input_tokens,
            system_message=system_tokens,
            schema=schema_tokens,
            total=input_tokens + system_tokens + schema_tokens + MESSAGE_OVERHEAD_TOKENS,
        )


def estimate_output_tokens(input_tokens: int, has_schema: bool) -> int:
    """Rough output size: structured output tends to be shorter than its input.

    With a schema: 30% of the input, clamped to 50..4000.
    Without: 80% of the input, capped at 8000.
    """
    if has_schema:
        return math.ceil(min(max(input_tokens * 0.3, 50), 4000))
    return math.ceil(min(input_tokens * 0.8, 8000))


# =============================================================================
# Pricing
# =============================================================================


@dataclass(frozen=True)
class ModelPricing:
    """Pricing and limits of one model.

    Attributes:
        id: Model identifier.
        input_cost: USD per million input tokens.
        output_cost: USD per million output tokens.
        max_tokens: Context window in tokens.
        max_output_tokens: Maximum generated tokens.
        knowledge_cutoff: Training data cutoff (ISO date), if known.
        supports_reasoning: Whether the model spends hidden reasoning tokens.
    """

    id: str
    input_cost: float
    output_cost: float
    max_tokens: int
    max_output_tokens: int
    knowledge_cutoff: str | None = None
    supports_reasoning: bool = False

    @classmethod
    def from_spec(cls, spec: LLMSpec) -> "ModelPricing":
        return cls(
            id=spec.name,
            input_cost=spec.cost_per_1m_input or 0.0,
            output_cost=spec.cost_per_1m_output or 0.0,
            max_tokens=spec.context_window,
            max_output_tokens=spec.max_output_tokens,
            knowledge_cutoff=spec.knowledge_cutoff,
            supports_reasoning=spec.supports(LLMCapability.REASONING),
        )


@dataclass(frozen=True)
class CostEstimate:
    """Pre-flight cost estimate.

    Attributes:
        input_cost: Estimated USD for the prompt.
        estimated_output_cost: Estimated USD for the reply.
        total_estimated_cost: Sum of both.
        exceeds_max_tokens: Whether the prompt exceeds the model's context.
        suggested_alternatives: Up to three models with enough context,
            cheapest input first. Only filled when the context is exceeded.
    """

    input_cost: float
    estimated_output_cost: float
    total_estimated_cost: float
    exceeds_max_tokens: bool
    suggested_alternatives: list[ModelPricing] = field(default_factory=list)


@dataclass(frozen=True)
class ActualCost:
    """Cost computed from reported token usage."""

    input_cost: float
    output_cost: float
    total_cost: float


def _cost(tokens: int, cost_per_million: float) -> float:
    return (tokens / 1_000_000) * cost_per_million


class PricingTable:
    """Lookup and cost arithmetic over a fixed set of priced models.

    Example:
        >>> table = PricingTable.from_registry()
        >>> table.lookup("gpt-4.1-nano").input_cost
        0.1
    """

    def __init__(self, models: Iterable[ModelPricing]):
        self._models = list(models)
        self._by_id = {model.id: model for model in self._models}

    @classmethod
    def from_registry(cls) -> "PricingTable":
        """Table of every priced model in :class:`LLMModel`."""
        return cls(
            ModelPricing.from_spec(model.spec) for model in LLMModel if model.spec.is_priced
        )

    @property
    def models(self) -> list[ModelPricing]:
        return list(self._models)

    def lookup(self, model_id: str) -> ModelPricing | None:
        return self._by_id.get(model_id)

    def alternatives(
        self, input_tokens: int, exclude: str, limit: int = MAX_ALTERNATIVES
    ) -> list[ModelPricing]:
        """Models whose context fits ``input_tokens``, cheapest input first."""
        fitting = [
            model
            for model in self._models
            if model.max_tokens > input_tokens and model.id != exclude
        ]
        fitting.sort(key=lambda model: model.input_cost)
        return fitting[:limit]

    def estimate_cost(
        self, input_tokens: int, output_tokens: int, model_id: str
    ) -> CostEstimate:
        """Estimate the cost of a call; unknown models cost nothing."""
        model = self.lookup(model_id)
        if model is None:
            logger.debug(f"No pricing for model {model_id!r}")
            return CostEstimate(0.0, 0.0, 0.0, False)

        input_cost = _cost(input_tokens, model.input_cost)
        output_cost = _cost(output_tokens, model.output_cost)
        exceeds = input_tokens > model.max_tokens
        return CostEstimate(
            input_cost=input_cost,
            estimated_output_cost=output_cost,
            total_estimated_cost=input_cost + output_cost,
            exceeds_max_tokens=exceeds,
            suggested_alternatives=self.alternatives(input_tokens, model_id)
            if exceeds
            else [],
        )

    def calculate_actual_cost(
        self,
        input_tokens: int | None,
        output_tokens: int | None,
        model_id: str,
    ) -> ActualCost | None:
        """Cost from reported usage; None if the model or usage is unknown."""
        model = self.lookup(model_id)
        if model is None or not input_tokens or not output_tokens:
            return None
        input_cost = _cost(input_tokens, model.input_cost)
        output_cost = _cost(output_tokens, model.output_cost)
        return ActualCost(input_cost, output_cost, input_cost + output_cost)


_DEFAULT_TABLE: PricingTable | None = None


def default_pricing_table() -> PricingTable:
    """Registry-backed table, built on first use."""
    global _DEFAULT_TABLE
    if _DEFAULT_TABLE is None:
        _DEFAULT_TABLE = PricingTable.from_registry()
    return _DEFAULT_TABLE


def lookup_model(model_id: str) -> ModelPricing | None:
    """Pricing and limits for ``model_id``, or None if it is not registered."""
    return default_pricing_table().lookup(model_id)


def estimate_cost(input_tokens: int, output_tokens: int, model_id: str) -> CostEstimate:
    """Estimate cost against the registry. See :meth:`PricingTable.estimate_cost`."""
    return default_pricing_table().estimate_cost(input_tokens, output_tokens, model_id)


def calculate_actual_cost(
    input_tokens: int | None, output_tokens: int | None, model_id: str
) -> ActualCost | None:
    return default_pricing_table().calculate_actual_cost(
        input_tokens, output_tokens, model_id
    )


def format_cost(cost: float) -> str:
    """Dollar amount to three decimals; tiny amounts show as ``<$0.001``."""
    if cost < 0.001:
        return "<$0.001"
    return f"${cost:.3f}"


def should_warn_about_cost(cost: float, threshold: float | None = None) -> bool:
    """True when ``cost`` reaches the warning threshold (default $1.00)."""
    limit = get_environment(EnvVar.WORKBENCH_COST_WARNING_USD, override=threshold)
    return cost >= limit


__all__ = [
    "MESSAGE_OVERHEAD_TOKENS",
    "count_tokens",
    "TokenBreakdown",
    "estimate_output_tokens",
    "ModelPricing",
    "CostEstimate",
    "ActualCost",
    "PricingTable",
    "default_pricing_table",
    "lookup_model",
    "estimate_cost",
    "calculate_actual_cost",
    "format_cost",
    "should_warn_about_cost",
]
