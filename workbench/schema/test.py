"""Unit tests for the schema module."""

import pytest
from pydantic import ValidationError

from workbench.schema import (
    EMPTY_SCHEMA,
    ArrayElementType,
    ArrayField,
    BooleanField,
    EnumField,
    FieldType,
    NumberField,
    ObjectField,
    StringField,
    add_field,
    build_model,
    can_parse_schema,
    check_object,
    default_schema_fields,
    dump_fields,
    fields_equal,
    find_field,
    json_schema_for,
    load_fields,
    new_field,
    parse_schema,
    remove_field,
    render_schema,
    schema_text,
    tokenize,
    update_field,
    update_field_in,
)


def _mixed_fields():
    """One field of every supported shape, nested two levels deep."""
    return [
        StringField(name="title", description='The "headline"'),
        NumberField(name="score"),
        BooleanField(name="urgent", description="Needs attention"),
        EnumField(name="tone", values=["calm", "angry, loud"]),
        ArrayField(name="tags", element_type=ArrayElementType.NUMBER),
        ArrayField(
            name="people",
            element_type=ArrayElementType.OBJECT,
            element_fields=[StringField(name="who"), BooleanField(name="present")],
        ),
        ObjectField(
            name="meta",
            description="Extra data",
            fields=[
                StringField(name="source"),
                ObjectField(name="inner", fields=[NumberField(name="depth")]),
            ],
        ),
    ]


# =============================================================================
# Field model
# =============================================================================


class TestFieldModel:
    """Tests for the tagged field union."""

    @pytest.mark.unit
    def test_new_field_defaults(self):
        field = new_field()
        assert isinstance(field, StringField)
        assert field.name == ""
        assert field.id

    @pytest.mark.unit
    def test_ids_are_unique(self):
        assert new_field().id != new_field().id

    @pytest.mark.unit
    def test_load_dispatches_on_type(self):
        fields = load_fields(
            [
                {"type": "enum", "name": "a", "values": ["x"]},
                {"type": "object", "name": "b", "fields": [{"type": "number", "name": "c"}]},
            ]
        )
        assert isinstance(fields[0], EnumField)
        assert isinstance(fields[1], ObjectField)
        assert isinstance(fields[1].fields[0], NumberField)

    @pytest.mark.unit
    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            load_fields([{"type": "date", "name": "when"}])

    @pytest.mark.unit
    def test_element_fields_require_object_elements(self):
        with pytest.raises(ValidationError):
            ArrayField(name="a", element_fields=[StringField(name="b")])

    @pytest.mark.unit
    def test_fields_are_frozen(self):
        field = StringField(name="a")
        with pytest.raises(ValidationError):
            field.name = "b"

    @pytest.mark.unit
    def test_default_schema_fields(self):
        fields = default_schema_fields()
        assert [f.name for f in fields] == ["summary", "actionItems"]
        action_items = fields[1]
        assert isinstance(action_items, ArrayField)
        assert action_items.element_type == ArrayElementType.OBJECT
        assert [f.name for f in action_items.element_fields] == ["task", "assignee"]

    @pytest.mark.unit
    def test_default_schema_fields_fresh_ids(self):
        first, second = default_schema_fields(), default_schema_fields()
        assert first[0].id != second[0].id
        assert fields_equal(first, second, ignore_ids=True)


class TestUpdateField:
    """Type changes drop payload that belongs to the old type."""

    @pytest.mark.unit
    def test_enum_to_string_drops_values(self):
        field = EnumField(name="tone", values=["a", "b"])
        updated = update_field(field, type="string")
        assert isinstance(updated, StringField)
        assert "values" not in updated.model_dump()
        assert updated.id == field.id
        assert updated.name == "tone"

    @pytest.mark.unit
    def test_array_object_to_object_starts_empty(self):
        field = ArrayField(
            name="items",
            element_type=ArrayElementType.OBJECT,
            element_fields=[StringField(name="x")],
        )
        updated = update_field(field, type=FieldType.OBJECT)
        assert isinstance(updated, ObjectField)
        assert updated.fields == []
        assert "element_fields" not in updated.model_dump()

    @pytest.mark.unit
    def test_element_type_away_from_object_drops_element_fields(self):
        field = ArrayField(
            name="items",
            element_type=ArrayElementType.OBJECT,
            element_fields=[StringField(name="x")],
        )
        updated = update_field(field, element_type="string")
        assert updated.element_type == ArrayElementType.STRING
        assert updated.element_fields == []

    @pytest.mark.unit
    def test_same_type_keeps_payload(self):
        field = EnumField(name="tone", values=["a"])
        updated = update_field(field, description="Mood")
        assert updated.values == ["a"]
        assert updated.description == "Mood"

    @pytest.mark.unit
    def test_payload_keys_match_type_after_many_changes(self):
        allowed = {
            "string": {"id", "name", "description", "type"},
            "number": {"id", "name", "description", "type"},
            "boolean": {"id", "name", "description", "type"},
            "enum": {"id", "name", "description", "type", "values"},
            "array": {"id", "name", "description", "type", "element_type", "element_fields"},
            "object": {"id", "name", "description", "type", "fields"},
        }
        field = new_field(name="x")
        for target in ["enum", "array", "object", "string", "array", "enum", "boolean"]:
            field = update_field(field, type=target)
            assert set(field.model_dump()) == allowed[target]

    @pytest.mark.unit
    def test_original_untouched(self):
        field = StringField(name="a")
        update_field(field, name="b")
        assert field.name == "a"


class TestFieldListOperations:
    """Recursive builder operations over field lists."""

    @pytest.mark.unit
    def test_update_nested_field(self):
        fields = default_schema_fields()
        task = fields[1].element_fields[0]
        updated = update_field_in(fields, task.id, name="job")
        assert find_field(updated, task.id).name == "job"
        assert find_field(fields, task.id).name == "task"

    @pytest.mark.unit
    def test_remove_nested_field(self):
        fields = default_schema_fields()
        assignee = fields[1].element_fields[1]
        updated = remove_field(fields, assignee.id)
        assert find_field(updated, assignee.id) is None
        assert len(updated[1].element_fields) == 1

    @pytest.mark.unit
    def test_add_top_level_and_nested(self):
        fields = default_schema_fields()
        fields = add_field(fields)
        assert len(fields) == 3
        nested = add_field(fields, parent_id=fields[1].id, field=NumberField(name="hours"))
        assert [f.name for f in nested[1].element_fields] == ["task", "assignee", "hours"]

    @pytest.mark.unit
    def test_dump_without_ids(self):
        data = dump_fields([StringField(name="a")], include_ids=False)
        assert data == [{"name": "a", "description": "", "type": "string"}]


# =============================================================================
# Rendering
# =============================================================================


class TestRenderSchema:
    """Tests for field list to schema text."""

    @pytest.mark.unit
    def test_single_field_with_description(self):
        text = render_schema([StringField(name="summary", description="desc")])
        assert text == 'z.object({\n  summary: z.string().describe("desc")\n})'

    @pytest.mark.unit
    def test_default_schema(self):
        text = render_schema(default_schema_fields())
        assert text == (
            "z.object({\n"
            '  summary: z.string().describe("A brief summary of the text."),\n'
            "  actionItems: z.array(z.object({\n"
            '    task: z.string().describe("The action to be taken."),\n'
            '    assignee: z.string().describe("Who is responsible for the task.")\n'
            '  })).describe("A list of action items from the text.")\n'
            "})"
        )

    @pytest.mark.unit
    def test_blank_names_skipped(self):
        text = render_schema([new_field(), StringField(name="  a  ")])
        assert text == "z.object({\n  a: z.string()\n})"

    @pytest.mark.unit
    def test_empty_enum_placeholder(self):
        text = render_schema([EnumField(name="e")])
        assert 'e: z.enum(["PLACEHOLDER"])' in text

    @pytest.mark.unit
    def test_enum_values_trimmed_and_escaped(self):
        text = render_schema([EnumField(name="e", values=[' a ', 'say "hi"'])])
        assert 'z.enum(["a", "say \\"hi\\""])' in text

    @pytest.mark.unit
    def test_description_quotes_escaped(self):
        text = render_schema([StringField(name="a", description=' He said "no" ')])
        assert '.describe("He said \\"no\\"")' in text

    @pytest.mark.unit
    def test_primitive_array(self):
        text = render_schema([ArrayField(name="n", element_type="boolean")])
        assert "n: z.array(z.boolean())" in text

    @pytest.mark.unit
    def test_empty_nested_object(self):
        text = render_schema([ObjectField(name="o")])
        assert text == "z.object({\n  o: z.object({\n\n  })\n})"

    @pytest.mark.unit
    def test_non_identifier_name_quoted(self):
        text = render_schema([StringField(name="due date")])
        assert '"due date": z.string()' in text

    @pytest.mark.unit
    def test_deterministic(self):
        fields = _mixed_fields()
        assert render_schema(fields) == render_schema(fields)

    @pytest.mark.unit
    def test_schema_text_sources(self):
        assert schema_text([]) == EMPTY_SCHEMA
        assert schema_text(None, "z.object({ a: z.string() })") == "z.object({ a: z.string() })"
        assert schema_text(default_schema_fields()).startswith("z.object({\n")


# =============================================================================
# Parsing
# =============================================================================


class TestParseSchema:
    """Tests for schema text to field list."""

    @pytest.mark.unit
    def test_round_trip_scenario(self):
        text = render_schema([StringField(name="summary", description="desc")])
        fields = parse_schema(text)
        assert len(fields) == 1
        assert fields[0].name == "summary"
        assert fields[0].type == "string"
        assert fields[0].description == "desc"

    @pytest.mark.unit
    def test_render_parse_render_is_idempotent(self):
        first = render_schema(_mixed_fields())
        second = render_schema(parse_schema(first))
        assert first == second

    @pytest.mark.unit
    def test_parse_recovers_structure(self):
        original = _mixed_fields()
        parsed = parse_schema(render_schema(original))
        assert fields_equal(parsed, original, ignore_ids=True)

    @pytest.mark.unit
    def test_hand_written_schema(self):
        text = """
        z.object({
            name: z.string().describe('Full name'),
            age: z.number(),
            role: z.enum(['admin', "user"]),
            notes: z.array(z.string()).describe(`free, form`),
        })
        """
        fields = parse_schema(text)
        assert [f.name for f in fields] == ["name", "age", "role", "notes"]
        assert fields[0].description == "Full name"
        assert fields[2].values == ["admin", "user"]
        assert fields[3].element_type == ArrayElementType.STRING
        assert fields[3].description == "free, form"

    @pytest.mark.unit
    def test_unrecognized_type_becomes_string(self):
        text = 'z.object({ v: z.union([z.string(), z.number()]).describe("either") })'
        fields = parse_schema(text)
        assert isinstance(fields[0], StringField)
        assert fields[0].description == "either"

    @pytest.mark.unit
    def test_array_of_unsupported_element_becomes_string(self):
        fields = parse_schema("z.object({ v: z.array(z.enum(['a'])) })")
        assert isinstance(fields[0], StringField)

    @pytest.mark.unit
    def test_chained_modifiers_ignored(self):
        fields = parse_schema("z.object({ n: z.number().int().describe('count') })")
        assert isinstance(fields[0], NumberField)
        assert fields[0].description == "count"

    @pytest.mark.unit
    def test_fresh_ids(self):
        text = render_schema([StringField(name="a")])
        assert parse_schema(text)[0].id != parse_schema(text)[0].id

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "text",
        [
            "",
            "hello world",
            "z.object(",
            "z.object({ a: z.string()",
            "z.object({ a: z.string() ]",
            "z.object({ a: ",
            "z.object({ 'unterminated: z.string() })",
            "}}}{{{)))(((",
            "z.string()",
            "z.object({" * 2000,
        ],
    )
    def test_never_raises(self, text):
        assert isinstance(parse_schema(text), list)

    @pytest.mark.unit
    def test_missing_wrapper_returns_empty(self):
        assert parse_schema("z.array(z.string())") == []
        assert not can_parse_schema("z.array(z.string())")

    @pytest.mark.unit
    def test_empty_object_cannot_be_edited_visually(self):
        assert parse_schema(EMPTY_SCHEMA) == []
        assert not can_parse_schema(EMPTY_SCHEMA)

    @pytest.mark.unit
    def test_can_parse_default_schema(self):
        assert can_parse_schema(render_schema(default_schema_fields()))


class TestTokenize:
    """Tests for the schema tokenizer."""

    @pytest.mark.unit
    def test_string_escapes(self):
        tokens = tokenize(r'"a \"b\" c"')
        assert len(tokens) == 1
        assert tokens[0].value == 'a "b" c'

    @pytest.mark.unit
    def test_brackets_inside_strings_are_text(self):
        tokens = tokenize("f('(}')")
        assert [t.value for t in tokens] == ["f", "(", "(}", ")"]


# =============================================================================
# Compilation
# =============================================================================


class TestBuildModel:
    """Tests for compiling fields into pydantic models."""

    @pytest.mark.unit
    def test_valid_object_passes(self):
        model = build_model(_mixed_fields())
        value = {
            "title": "t",
            "score": 3,
            "urgent": False,
            "tone": "calm",
            "tags": [1, 2.5],
            "people": [{"who": "Ann", "present": True}],
            "meta": {"source": "mail", "inner": {"depth": 1}},
        }
        assert check_object(model, value) == []

    @pytest.mark.unit
    def test_violations_carry_paths(self):
        model = build_model(default_schema_fields())
        violations = check_object(model, {"summary": "s", "actionItems": [{"task": "x"}]})
        assert violations == [("actionItems.0.assignee", "Field required")]

    @pytest.mark.unit
    def test_enum_restricts_values(self):
        model = build_model([EnumField(name="tone", values=["calm"])])
        assert check_object(model, {"tone": "loud"})
        assert not check_object(model, {"tone": "calm"})

    @pytest.mark.unit
    def test_extra_keys_rejected(self):
        model = build_model([StringField(name="a")])
        assert check_object(model, {"a": "x", "b": "y"})

    @pytest.mark.unit
    def test_json_schema_uses_field_names(self):
        schema = json_schema_for([StringField(name="due date", description="When")])
        assert "due date" in schema["properties"]
        assert schema["properties"]["due date"]["description"] == "When"
        assert schema["required"] == ["due date"]
