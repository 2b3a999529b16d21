"""Token heuristics and model pricing for generation estimates."""

from .lib import (
    MESSAGE_OVERHEAD_TOKENS,
    ActualCost,
    CostEstimate,
    ModelPricing,
    PricingTable,
    TokenBreakdown,
    calculate_actual_cost,
    count_tokens,
    default_pricing_table,
    estimate_cost,
    estimate_output_tokens,
    format_cost,
    lookup_model,
    should_warn_about_cost,
)

__all__ = [
    # Tokens
    "MESSAGE_OVERHEAD_TOKENS",
    "count_tokens",
    "TokenBreakdown",
    "estimate_output_tokens",
    # Pricing
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
