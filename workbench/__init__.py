"""extraction-workbench: schema-driven structured extraction from text."""

from workbench.generation import GenerationOrchestrator, GenerationRecord
from workbench.schema import SchemaField, parse_schema, render_schema
from workbench.validation import validate_schema_text
from workbench.workspace import Workspace

__all__ = [
    # Schema
    "SchemaField",
    "render_schema",
    "parse_schema",
    "validate_schema_text",
    # State
    "Workspace",
    # Generation
    "GenerationOrchestrator",
    "GenerationRecord",
]
