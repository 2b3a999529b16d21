"""Schema field model for extraction output schemas.

A schema is an ordered list of fields. Each field is one variant of a
tagged union keyed on ``type``; a variant carries only the payload that
belongs to its type, so a type change can never leave stale data behind
(an ``enum`` turned ``string`` has no ``values`` to forget about).

Example:
    >>> fields = default_schema_fields()
    >>> [f.name for f in fields]
    ['summary', 'actionItems']
    >>> update_field(fields[0], type="enum").values
    []
"""

import uuid
from enum import Enum
from typing import Annotated, Any, Iterable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator


class FieldType(str, Enum):
    """Supported field types."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    ENUM = "enum"
    OBJECT = "object"


class ArrayElementType(str, Enum):
    """Element types an array field may hold."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"


PRIMITIVE_TYPES = frozenset({FieldType.STRING, FieldType.NUMBER, FieldType.BOOLEAN})


def new_field_id() -> str:
    """Opaque unique token for a field."""
    return uuid.uuid4().hex


class _FieldBase(BaseModel):
    """Attributes shared by every field variant."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_field_id, description="Opaque unique id")
    name: str = Field(default="", description="Key in the extracted object")
    description: str = Field(default="", description="Hint passed to the model")


class StringField(_FieldBase):
    type: Literal["string"] = "string"


class NumberField(_FieldBase):
    type: Literal["number"] = "number"


class BooleanField(_FieldBase):
    type: Literal["boolean"] = "boolean"


class EnumField(_FieldBase):
    """Closed set of literal values. An empty list renders a placeholder."""

    type: Literal["enum"] = "enum"
    values: list[str] = Field(default_factory=list)


class ArrayField(_FieldBase):
    """Homogeneous list; ``element_fields`` is only used for object elements."""

    type: Literal["array"] = "array"
    element_type: ArrayElementType = ArrayElementType.STRING
    element_fields: list["SchemaField"] = Field(default_factory=list)

    @model_validator(mode="after")
    def _element_fields_need_object(self) -> "ArrayField":
        if self.element_fields and self.element_type != ArrayElementType.OBJECT:
            raise ValueError("element_fields require element_type 'object'")
        return self


class ObjectField(_FieldBase):
    """Nested object with its own ordered fields."""

    type: Literal["object"] = "object"
    fields: list["SchemaField"] = Field(default_factory=list)


SchemaField = Annotated[
    Union[StringField, NumberField, BooleanField, EnumField, ArrayField, ObjectField],
    Field(discriminator="type"),
]

ArrayField.model_rebuild()
ObjectField.model_rebuild()

_FIELD_ADAPTER: TypeAdapter = TypeAdapter(SchemaField)
_FIELD_LIST_ADAPTER: TypeAdapter = TypeAdapter(list[SchemaField])

_VARIANTS: dict[FieldType, type[_FieldBase]] = {
    FieldType.STRING: StringField,
    FieldType.NUMBER: NumberField,
    FieldType.BOOLEAN: BooleanField,
    FieldType.ENUM: EnumField,
    FieldType.ARRAY: ArrayField,
    FieldType.OBJECT: ObjectField,
}


# =============================================================================
# Construction and updates
# =============================================================================


def new_field(
    type: FieldType | str = FieldType.STRING,
    name: str = "",
    description: str = "",
    **payload: Any,
) -> "SchemaField":
    """Create a field of the given type with a fresh id.

    Args:
        type: Field type tag.
        name: Field name; blank names are allowed for placeholder rows.
        description: Optional hint text.
        **payload: Variant payload (``values``, ``element_type``,
            ``element_fields`` or ``fields``).
    """
    data = {"type": FieldType(type).value, "name": name, "description": description}
    data.update(payload)
    return _FIELD_ADAPTER.validate_python(data)


def update_field(field: "SchemaField", **changes: Any) -> "SchemaField":
    """Return a copy of ``field`` with ``changes`` applied.

    When ``type`` changes, the field is rebuilt as the new variant and any
    payload that does not belong to it is dropped. Switching an array's
    element type away from ``object`` drops its element fields.

    Raises:
        pydantic.ValidationError: If a change does not fit the variant.
    """
    target = FieldType(changes.get("type", field.type))
    variant = _VARIANTS[target]

    data = {key: getattr(field, key) for key in ("id", "name", "description")}
    if target == FieldType(field.type):
        data.update(
            {key: getattr(field, key) for key in variant.model_fields if key != "type"}
        )
    data.update(changes)
    data["type"] = target.value

    data = {key: value for key, value in data.items() if key in variant.model_fields}
    if target == FieldType.ARRAY and ArrayElementType(
        data.get("element_type", ArrayElementType.STRING)
    ) != ArrayElementType.OBJECT:
        data["element_fields"] = []

    return _FIELD_ADAPTER.validate_python(data)


def child_fields(field: "SchemaField") -> list["SchemaField"]:
    """Nested fields of an object field or an array-of-object field."""
    if isinstance(field, ObjectField):
        return field.fields
    if isinstance(field, ArrayField) and field.element_type == ArrayElementType.OBJECT:
        return field.element_fields
    return []


def _holds_children(field: "SchemaField") -> bool:
    return isinstance(field, ObjectField) or (
        isinstance(field, ArrayField)
        and field.element_type == ArrayElementType.OBJECT
    )


def _with_children(field: "SchemaField", children: list["SchemaField"]) -> "SchemaField":
    if isinstance(field, ObjectField):
        return field.model_copy(update={"fields": children})
    return field.model_copy(update={"element_fields": children})


def find_field(fields: Iterable["SchemaField"], field_id: str) -> "SchemaField | None":
    """Depth-first lookup of a field by id."""
    for field in fields:
        if field.id == field_id:
            return field
        found = find_field(child_fields(field), field_id)
        if found is not None:
            return found
    return None


def update_field_in(
    fields: list["SchemaField"], field_id: str, **changes: Any
) -> list["SchemaField"]:
    """Apply :func:`update_field` to the field with ``field_id``, at any depth."""
    result = []
    for field in fields:
        if field.id == field_id:
            field = update_field(field, **changes)
        elif child_fields(field):
            field = _with_children(
                field, update_field_in(child_fields(field), field_id, **changes)
            )
        result.append(field)
    return result


def remove_field(fields: list["SchemaField"], field_id: str) -> list["SchemaField"]:
    """Remove the field with ``field_id`` (and its subtree), at any depth."""
    result = []
    for field in fields:
        if field.id == field_id:
            continue
        if child_fields(field):
            field = _with_children(field, remove_field(child_fields(field), field_id))
        result.append(field)
    return result


def add_field(
    fields: list["SchemaField"],
    parent_id: str | None = None,
    field: "SchemaField | None" = None,
) -> list["SchemaField"]:
    """Append ``field`` (a blank string field by default).

    With ``parent_id`` the field is appended to that object (or
    array-of-object) field's children instead of the top level.
    """
    field = field if field is not None else new_field()
    if parent_id is None:
        return [*fields, field]

    result = []
    for existing in fields:
        if existing.id == parent_id and _holds_children(existing):
            existing = _with_children(existing, [*child_fields(existing), field])
        elif child_fields(existing):
            existing = _with_children(
                existing, add_field(child_fields(existing), parent_id, field)
            )
        result.append(existing)
    return result


# =============================================================================
# Comparison and serialization
# =============================================================================


def _strip_ids(data: Any) -> Any:
    if isinstance(data, dict):
        return {k: _strip_ids(v) for k, v in data.items() if k != "id"}
    if isinstance(data, list):
        return [_strip_ids(item) for item in data]
    return data


def dump_fields(fields: Iterable["SchemaField"], include_ids: bool = True) -> list[dict]:
    """Serialize fields to JSON-compatible dicts."""
    data = _FIELD_LIST_ADAPTER.dump_python(list(fields), mode="json")
    return data if include_ids else _strip_ids(data)


def load_fields(data: list[dict]) -> list["SchemaField"]:
    """Validate JSON-compatible dicts into fields. Missing ids are generated."""
    return _FIELD_LIST_ADAPTER.validate_python(data)


def fields_equal(
    left: Iterable["SchemaField"],
    right: Iterable["SchemaField"],
    ignore_ids: bool = False,
) -> bool:
    """Structural equality of two field lists."""
    include_ids = not ignore_ids
    return dump_fields(left, include_ids) == dump_fields(right, include_ids)


# =============================================================================
# Defaults
# =============================================================================


def default_schema_fields() -> list["SchemaField"]:
    """Seed schema for new generator cards, with fresh ids on every call."""
    return [
        StringField(name="summary", description="A brief summary of the text."),
        ArrayField(
            name="actionItems",
            description="A list of action items from the text.",
            element_type=ArrayElementType.OBJECT,
            element_fields=[
                StringField(name="task", description="The action to be taken."),
                StringField(
                    name="assignee", description="Who is responsible for the task."
                ),
            ],
        ),
    ]


__all__ = [
    "FieldType",
    "ArrayElementType",
    "PRIMITIVE_TYPES",
    "SchemaField",
    "StringField",
    "NumberField",
    "BooleanField",
    "EnumField",
    "ArrayField",
    "ObjectField",
    "new_field_id",
    "new_field",
    "update_field",
    "update_field_in",
    "remove_field",
    "add_field",
    "find_field",
    "child_fields",
    "dump_fields",
    "load_fields",
    "fields_equal",
    "default_schema_fields",
]
