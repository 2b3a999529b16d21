"""Schema text validation utilities."""

from workbench.validation.lib import (
    SchemaCheck,
    is_valid_schema_text,
    validate_schema_text,
)

__all__ = [
    "SchemaCheck",
    "validate_schema_text",
    "is_valid_schema_text",
]
