"""Schema text tools for the MCP server.

Render a field list to schema text, parse schema text back to fields and
run the structural validator. None of these touch the workspace.
"""

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from workbench.schema import (
    build_model,
    dump_fields,
    load_fields,
    parse_schema,
    render_schema,
)
from workbench.validation import validate_schema_text

logger = logging.getLogger(__name__)


def render_schema_text(fields: list[dict[str, Any]]) -> dict[str, Any]:
    """Render field dicts to schema text.

    Args:
        fields: Field dicts, e.g. ``{"name": "summary", "type": "string"}``.
            Object fields carry ``fields``; arrays carry ``element_type`` and,
            for object elements, ``element_fields``.

    Returns:
        Dictionary with:
        - schema: The rendered schema text
        - json_schema: JSON schema of the compiled output model

    Raises:
        ValueError: If a field dict is malformed.
    """
    try:
        parsed = load_fields(fields)
    except PydanticValidationError as e:
        raise ValueError(f"Invalid schema fields: {e}") from e

    return {
        "schema": render_schema(parsed),
        "json_schema": build_model(parsed).model_json_schema(by_alias=True),
    }


def parse_schema_text(schema: str) -> dict[str, Any]:
    """Parse schema text into field dicts.

    Never fails: text outside the supported subset yields no fields.

    Returns:
        Dictionary with:
        - fields: Parsed field dicts (without ids)
        - parseable: Whether the text produced any fields
    """
    fields = parse_schema(schema)
    return {
        "fields": dump_fields(fields, include_ids=False),
        "parseable": bool(fields),
    }


def validate_schema(schema: str) -> dict[str, Any]:
    """Run the structural schema checks.

    Returns:
        Dictionary with:
        - valid: True if the text passes every check
        - error: Reason for the first failed check, or None
        - error_type: Machine-readable check name, or None
    """
    check = validate_schema_text(schema)
    if not check.valid:
        logger.debug(f"Schema rejected ({check.error_type}): {check.error}")
    return {"valid": check.valid, "error": check.error, "error_type": check.error_type}


__all__ = ["render_schema_text", "parse_schema_text", "validate_schema"]
