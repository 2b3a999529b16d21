"""Generation pipeline: records, references and the orchestrator."""

from workbench.generation.models import (
    CostInfo,
    ErrorKind,
    FieldViolation,
    GenerationError,
    GenerationRecord,
    GenerationReference,
    TokenUsage,
    new_record_id,
)
from workbench.generation.orchestrator import (
    MSG_EMPTY_INPUT,
    MSG_NO_ACTIVE_INPUT,
    GenerationOrchestrator,
)

__all__ = [
    # Records
    "ErrorKind",
    "FieldViolation",
    "GenerationError",
    "GenerationReference",
    "TokenUsage",
    "CostInfo",
    "GenerationRecord",
    "new_record_id",
    # Orchestration
    "GenerationOrchestrator",
    "MSG_NO_ACTIVE_INPUT",
    "MSG_EMPTY_INPUT",
]
