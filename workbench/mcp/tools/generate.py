"""Generation tools for the MCP server.

Launch generations, inspect records, estimate cost up front and use the
config assistant to draft system messages and schemas.
"""

import logging
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import asdict
from typing import Any

from workbench.assist import apply_config, apply_schema, apply_system_message
from workbench.generation import GenerationRecord
from workbench.pricing import (
    TokenBreakdown,
    default_pricing_table,
    estimate_cost,
    estimate_output_tokens,
    format_cost,
    should_warn_about_cost,
)

from ..session import WorkbenchSession, get_session
from .cards import generator_card_to_dict

logger = logging.getLogger(__name__)

DEFAULT_WAIT_SECONDS = 120.0


def _record_to_dict(record: GenerationRecord, session: WorkbenchSession) -> dict[str, Any]:
    data = record.to_dict()
    data["orphaned"] = session.workspace.is_orphaned(record)
    return data


def generate_output(
    generator_id: str,
    wait: bool = True,
    timeout: float = DEFAULT_WAIT_SECONDS,
    session: WorkbenchSession | None = None,
) -> dict[str, Any]:
    """Run a generator against the active input.

    Args:
        generator_id: Generator card to run.
        wait: Block until the model replies. Otherwise return the loading
            record immediately and poll with ``get_record``.
        timeout: Seconds to wait when ``wait`` is set.

    Returns:
        The generation record. Failures are reported in ``error`` rather
        than raised.
    """
    session = session or get_session()
    record = session.orchestrator.generate(generator_id)
    if wait and record.is_loading:
        try:
            record = session.orchestrator.wait(record.id, timeout=timeout)
        except FutureTimeoutError:
            logger.warning(f"Generation {record.id} still running after {timeout}s")
    return _record_to_dict(record, session)


def get_record(record_id: str, session: WorkbenchSession | None = None) -> dict[str, Any]:
    """Fetch one generation record by id."""
    session = session or get_session()
    return _record_to_dict(session.workspace.get_record(record_id), session)


def list_records(
    generator_id: str | None = None,
    limit: int = 20,
    session: WorkbenchSession | None = None,
) -> dict[str, Any]:
    """List generation records, newest first.

    Args:
        generator_id: Only records of this generator (optional).
        limit: Maximum records (1-100). Default: 20
    """
    session = session or get_session()
    limit = max(1, min(100, limit))
    workspace = session.workspace
    records = workspace.records_for(generator_id) if generator_id else workspace.records
    return {
        "records": [_record_to_dict(r, session) for r in records[:limit]],
        "total_count": len(records),
        "has_more": len(records) > limit,
    }


def estimate_generation(
    generator_id: str, session: WorkbenchSession | None = None
) -> dict[str, Any]:
    """Estimate tokens and cost of running a generator on the active input.

    Fetch cards have no text until they run, so their input counts as zero.
    """
    session = session or get_session()
    workspace = session.workspace
    config = workspace.get_generator_card(generator_id).draft
    breakdown = TokenBreakdown.from_texts(
        workspace.active_input_text(), config.system_message, config.schema_text()
    )
    output_tokens = estimate_output_tokens(breakdown.total, config.has_schema)
    estimate = estimate_cost(breakdown.total, output_tokens, config.model)
    return {
        "model": config.model,
        "tokens": asdict(breakdown),
        "estimated_output_tokens": output_tokens,
        "input_cost": estimate.input_cost,
        "estimated_output_cost": estimate.estimated_output_cost,
        "total_estimated_cost": estimate.total_estimated_cost,
        "formatted_cost": format_cost(estimate.total_estimated_cost),
        "cost_warning": should_warn_about_cost(estimate.total_estimated_cost),
        "exceeds_max_tokens": estimate.exceeds_max_tokens,
        "suggested_alternatives": [m.id for m in estimate.suggested_alternatives],
    }


def list_models() -> dict[str, Any]:
    """Priced models with their limits, cheapest input first."""
    models = sorted(default_pricing_table().models, key=lambda m: m.input_cost)
    return {"models": [asdict(m) for m in models]}


# =============================================================================
# Assisted configuration
# =============================================================================


def assist_system_message(
    prompt: str,
    generator_id: str | None = None,
    session: WorkbenchSession | None = None,
) -> dict[str, Any]:
    """Draft a system message; apply it to ``generator_id`` when given."""
    session = session or get_session()
    text = session.assistant.generate_system_message(prompt)
    result: dict[str, Any] = {"system_message": text}
    if generator_id:
        card = apply_system_message(session.workspace, generator_id, text)
        result["generator"] = generator_card_to_dict(card)
    return result


def assist_schema(
    prompt: str,
    generator_id: str | None = None,
    session: WorkbenchSession | None = None,
) -> dict[str, Any]:
    """Draft schema text; apply it to ``generator_id`` when given."""
    session = session or get_session()
    schema = session.assistant.generate_schema(prompt)
    result: dict[str, Any] = {"schema": schema}
    if generator_id:
        card = apply_schema(session.workspace, generator_id, schema)
        result["generator"] = generator_card_to_dict(card)
    return result


def assist_config(
    prompt: str,
    generator_id: str | None = None,
    session: WorkbenchSession | None = None,
) -> dict[str, Any]:
    """Draft a system message and schema together; apply when given a generator."""
    session = session or get_session()
    config = session.assistant.generate_full_config(prompt)
    result: dict[str, Any] = {
        "system_message": config.system_message,
        "schema": config.schema,
    }
    if generator_id:
        card = apply_config(session.workspace, generator_id, config)
        result["generator"] = generator_card_to_dict(card)
    return result


__all__ = [
    "generate_output",
    "get_record",
    "list_records",
    "estimate_generation",
    "list_models",
    "assist_system_message",
    "assist_schema",
    "assist_config",
]
