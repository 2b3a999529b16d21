"""Compile a field list into a pydantic model.

The model gives the LLM layer a JSON schema to request structured output
with, and a validator for the object that comes back. Construction is
purely data-driven through :func:`pydantic.create_model`; schema text is
parsed, never executed.
"""

import logging
import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, create_model

from .lib import (
    ArrayElementType,
    ArrayField,
    BooleanField,
    EnumField,
    NumberField,
    ObjectField,
    SchemaField,
)

logger = logging.getLogger(__name__)

_NON_WORD = re.compile(r"\W")

_PRIMITIVES: dict[str, type] = {
    "string": str,
    "number": float,
    "boolean": bool,
}


def _annotation(field: SchemaField, model_name: str) -> Any:
    if isinstance(field, NumberField):
        return float
    if isinstance(field, BooleanField):
        return bool
    if isinstance(field, EnumField):
        values = tuple(value.strip() for value in field.values)
        return Literal[values] if values else str
    if isinstance(field, ObjectField):
        return build_model(field.fields, model_name)
    if isinstance(field, ArrayField):
        if field.element_type == ArrayElementType.OBJECT:
            return list[build_model(field.element_fields, model_name)]
        return list[_PRIMITIVES[field.element_type.value]]
    return str


def build_model(fields: list[SchemaField], name: str = "Extraction") -> type[BaseModel]:
    """Build a strict pydantic model mirroring ``fields``.

    Every named field is required and extra keys are rejected. Blank names
    are skipped; of duplicate sibling names only the first is kept.

    Args:
        fields: Field list to compile.
        name: Model (and JSON schema title) name.

    Returns:
        A pydantic model class. Keys use the original field names as aliases.
    """
    definitions: dict[str, Any] = {}
    seen: set[str] = set()
    for index, field in enumerate(fields):
        key = field.name.strip()
        if not key:
            continue
        if key in seen:
            logger.warning(f"Duplicate field name {key!r} in {name}, keeping first")
            continue
        seen.add(key)

        annotation = _annotation(field, f"{name}_{_NON_WORD.sub('_', key)}")
        info = Field(..., alias=key, description=field.description.strip() or None)
        definitions[f"field_{index}"] = (annotation, info)

    return create_model(
        name,
        __config__=ConfigDict(extra="forbid", populate_by_name=True),
        **definitions,
    )


def json_schema_for(fields: list[SchemaField], name: str = "Extraction") -> dict:
    """JSON schema of the compiled model, keyed by the original field names."""
    return build_model(fields, name).model_json_schema(by_alias=True)


def format_violations(error: ValidationError) -> list[tuple[str, str]]:
    """(path, message) pairs from a pydantic validation error."""
    violations = []
    for item in error.errors():
        path = ".".join(str(part) for part in item["loc"])
        violations.append((path, item["msg"]))
    return violations


def check_object(model: type[BaseModel], value: Any) -> list[tuple[str, str]]:
    """Validate ``value`` against ``model``; returns violations, empty when valid."""
    try:
        model.model_validate(value)
    except ValidationError as e:
        return format_violations(e)
    return []


__all__ = ["build_model", "json_schema_for", "check_object", "format_violations"]
