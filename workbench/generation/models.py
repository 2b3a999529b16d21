"""Generation records and the values they carry.

A :class:`GenerationRecord` is created in the loading state when a
generation is launched and resolved exactly once, either with a result or
with a :class:`GenerationError`. Its :class:`GenerationReference` pins the
exact input and generator versions consumed and never changes.
"""

import uuid
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from workbench.cards import GeneratorConfig
from workbench.pricing import CostEstimate, TokenBreakdown


class ErrorKind(str, Enum):
    """Why a generation failed."""

    SCHEMA_TEXT_INVALID = "schema_text_invalid"
    SCHEMA_SEMANTIC_REJECTION = "schema_semantic_rejection"
    REMOTE_CALL_FAILURE = "remote_call_failure"
    FETCH_RESOLUTION_FAILED = "fetch_resolution_failed"
    NO_ACTIVE_INPUT = "no_active_input"
    EMPTY_INPUT = "empty_input"
    CONTEXT_LIMIT_EXCEEDED = "context_limit_exceeded"


@dataclass(frozen=True)
class FieldViolation:
    """One schema violation in a generated value."""

    path: str
    message: str


@dataclass(frozen=True)
class GenerationError:
    """Failure captured on a record.

    Attributes:
        kind: Error category.
        message: User-facing description.
        violations: Per-field violations (schema rejections only).
        generated_value: Pretty-printed rejected value (schema rejections only).
    """

    kind: ErrorKind
    message: str
    violations: tuple[FieldViolation, ...] = ()
    generated_value: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "violations": [
                {"path": v.path, "message": v.message} for v in self.violations
            ],
            "generated_value": self.generated_value,
        }


class GenerationReference(BaseModel):
    """Immutable audit record of what a generation consumed.

    ``generator_config`` and ``input_text`` are copies taken at launch time,
    unaffected by later edits to the source cards.
    """

    model_config = ConfigDict(frozen=True)

    input_card_id: str
    input_card_version: int
    generator_card_id: str
    generator_card_version: int
    input_text: str
    generator_config: GeneratorConfig


@dataclass
class TokenUsage:
    """Expected prompt size and, once resolved, the reported usage."""

    expected_input_tokens: int
    actual_input_tokens: int | None = None
    output_tokens: int | None = None
    total_tokens: int | None = None


@dataclass
class CostInfo:
    """Estimated cost at launch and actual cost once resolved.

    Attributes:
        estimated_cost: Estimated total USD.
        input_cost: Estimated prompt USD.
        exceeds_max_tokens: Whether the prompt exceeded the model context.
        suggested_alternatives: Model ids with enough context, cheapest first.
        actual_cost: Total USD from reported usage.
        output_cost: Output USD from reported usage.
    """

    estimated_cost: float
    input_cost: float
    exceeds_max_tokens: bool = False
    suggested_alternatives: list[str] = field(default_factory=list)
    actual_cost: float | None = None
    output_cost: float | None = None

    @classmethod
    def from_estimate(cls, estimate: CostEstimate) -> "CostInfo":
        return cls(
            estimated_cost=estimate.total_estimated_cost,
            input_cost=estimate.input_cost,
            exceeds_max_tokens=estimate.exceeds_max_tokens,
            suggested_alternatives=[m.id for m in estimate.suggested_alternatives],
        )


def new_record_id() -> str:
    return uuid.uuid4().hex


@dataclass
class GenerationRecord:
    """Output of one generation attempt.

    Created with ``is_loading=True``; resolved exactly once through
    :meth:`workbench.workspace.Workspace.resolve_record`.
    """

    generator_id: str
    generation_reference: GenerationReference | None = None
    id: str = field(default_factory=new_record_id)
    result: dict[str, Any] | None = None
    error: GenerationError | None = None
    is_loading: bool = True
    token_breakdown: TokenBreakdown | None = None
    token_usage: TokenUsage | None = None
    cost_info: CostInfo | None = None
    generation_time_ms: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def succeeded(self) -> bool:
        return not self.is_loading and self.error is None

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible view of the record."""
        reference = self.generation_reference
        return {
            "id": self.id,
            "generator_id": self.generator_id,
            "is_loading": self.is_loading,
            "result": self.result,
            "error": self.error.to_dict() if self.error else None,
            "generation_reference": reference.model_dump(mode="json")
            if reference
            else None,
            "token_breakdown": asdict(self.token_breakdown)
            if self.token_breakdown
            else None,
            "token_usage": asdict(self.token_usage) if self.token_usage else None,
            "cost_info": asdict(self.cost_info) if self.cost_info else None,
            "generation_time_ms": self.generation_time_ms,
            "created_at": self.created_at.isoformat(),
        }


__all__ = [
    "ErrorKind",
    "FieldViolation",
    "GenerationError",
    "GenerationReference",
    "TokenUsage",
    "CostInfo",
    "GenerationRecord",
    "new_record_id",
]
