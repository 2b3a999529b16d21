"""Structured extraction on top of the LLM backends."""

from .lib import (
    SCHEMA_PROMPT_HEADER,
    ExtractionResult,
    SchemaRejectionError,
    StructuredExtractor,
)
from .repair import REPAIR_PATTERNS, load_object, parse_or_repair, repair_json

__all__ = [
    "StructuredExtractor",
    "ExtractionResult",
    "SchemaRejectionError",
    "SCHEMA_PROMPT_HEADER",
    # JSON repair
    "REPAIR_PATTERNS",
    "load_object",
    "repair_json",
    "parse_or_repair",
]
