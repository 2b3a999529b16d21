"""Schema field model, schema text codec and model compilation."""

from workbench.schema.codec import (
    EMPTY_SCHEMA,
    ENUM_PLACEHOLDER,
    can_parse_schema,
    parse_schema,
    render_schema,
    schema_text,
    tokenize,
)
from workbench.schema.compile import (
    build_model,
    check_object,
    format_violations,
    json_schema_for,
)
from workbench.schema.lib import (
    PRIMITIVE_TYPES,
    ArrayElementType,
    ArrayField,
    BooleanField,
    EnumField,
    FieldType,
    NumberField,
    ObjectField,
    SchemaField,
    StringField,
    add_field,
    child_fields,
    default_schema_fields,
    dump_fields,
    fields_equal,
    find_field,
    load_fields,
    new_field,
    new_field_id,
    remove_field,
    update_field,
    update_field_in,
)

__all__ = [
    # Field model
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
    # Codec
    "EMPTY_SCHEMA",
    "ENUM_PLACEHOLDER",
    "tokenize",
    "render_schema",
    "schema_text",
    "parse_schema",
    "can_parse_schema",
    # Compilation
    "build_model",
    "json_schema_for",
    "check_object",
    "format_violations",
]
