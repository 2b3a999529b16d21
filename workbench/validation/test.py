"""Unit tests for schema text validation."""

import pytest

from workbench.schema import default_schema_fields, render_schema
from workbench.validation import is_valid_schema_text, validate_schema_text
from workbench.validation.lib import (
    MSG_BRACES,
    MSG_MAX,
    MSG_NO_TYPES,
    MSG_PARENS,
    MSG_PREFIX,
)


class TestValidateSchemaText:
    """Tests for the ordered structural checks."""

    @pytest.mark.unit
    def test_rendered_schema_is_valid(self):
        check = validate_schema_text(render_schema(default_schema_fields()))
        assert check.valid
        assert check.error is None

    @pytest.mark.unit
    def test_empty_object_is_valid(self):
        assert is_valid_schema_text("z.object({})")

    @pytest.mark.unit
    def test_leading_whitespace_allowed(self):
        assert is_valid_schema_text("\n   z.string()")

    @pytest.mark.unit
    def test_prefix_required(self):
        check = validate_schema_text("object({ a: z.string() })")
        assert not check
        assert check.error == MSG_PREFIX
        assert check.error_type == "prefix"

    @pytest.mark.unit
    def test_empty_text(self):
        assert validate_schema_text("").error == MSG_PREFIX

    @pytest.mark.unit
    def test_max_constraint_rejected(self):
        check = validate_schema_text("z.object({ a: z.string().max(5) })")
        assert not check.valid
        assert check.error == MSG_MAX

    @pytest.mark.unit
    def test_max_with_whitespace_rejected(self):
        assert validate_schema_text("z.array(z.string()).max (3)").error == MSG_MAX

    @pytest.mark.unit
    def test_max_checked_before_balance(self):
        assert validate_schema_text("z.object({ a: z.string().max(5)").error == MSG_MAX

    @pytest.mark.unit
    def test_unbalanced_parentheses(self):
        assert validate_schema_text("z.object({ a: z.string( })").error == MSG_PARENS

    @pytest.mark.unit
    def test_unbalanced_braces(self):
        assert validate_schema_text("z.object({ a: z.string() }").error == MSG_PARENS
        assert validate_schema_text("z.object({{ a: z.string() })").error == MSG_BRACES

    @pytest.mark.unit
    def test_brackets_inside_strings_ignored(self):
        text = 'z.object({ a: z.string().describe("smile :) {") })'
        assert is_valid_schema_text(text)

    @pytest.mark.unit
    def test_escaped_quote_inside_string(self):
        text = 'z.object({ a: z.string().describe("say \\"(\\"") })'
        assert is_valid_schema_text(text)

    @pytest.mark.unit
    def test_unknown_types_rejected(self):
        check = validate_schema_text("z.date()")
        assert check.error == MSG_NO_TYPES
        assert check.error_type == "unknown_types"

    @pytest.mark.unit
    def test_union_counts_as_known_type(self):
        assert is_valid_schema_text("z.union([z.date(), z.date()])")
