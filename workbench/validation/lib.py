"""Structural validation of schema text.

A conservative syntactic gate run before any schema text is accepted or
sent to a model: the text must use the ``z.`` constructor namespace, must
not carry ``.max()`` constraints, must have balanced brackets outside string
literals and must mention at least one known type constructor. Passing the
gate does not mean the remote schema engine will accept the text.
"""

import re
from dataclasses import dataclass
from typing import Optional

from workbench.schema.codec import TokenKind, tokenize

PREFIX = "z."

FORBIDDEN_MAX = re.compile(r"\.max\s*\(")
KNOWN_TYPES = re.compile(
    r"z\.(object|string|number|boolean|array|enum|union|literal|optional|nullable)"
)

MSG_PREFIX = "Schema must start with 'z.'"
MSG_MAX = "Schema cannot contain .max() - this constraint is not allowed"
MSG_PARENS = "Unbalanced parentheses in schema"
MSG_BRACES = "Unbalanced braces in schema"
MSG_NO_TYPES = "Schema doesn't contain valid Zod types"


@dataclass(frozen=True)
class SchemaCheck:
    """Outcome of validating schema text.

    Attributes:
        valid: True when every check passed.
        error: Reason for the first failed check.
        error_type: Machine-readable category of the failure.
    """

    valid: bool
    error: Optional[str] = None
    error_type: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid


_OK = SchemaCheck(valid=True)


def _fail(error: str, error_type: str) -> SchemaCheck:
    return SchemaCheck(valid=False, error=error, error_type=error_type)


def _bracket_depths(text: str) -> tuple[int, int]:
    """Net parenthesis and brace depth, ignoring quoted literals."""
    parens = braces = 0
    for token in tokenize(text):
        if token.kind != TokenKind.PUNCT:
            continue
        if token.value == "(":
            parens += 1
        elif token.value == ")":
            parens -= 1
        elif token.value == "{":
            braces += 1
        elif token.value == "}":
            braces -= 1
    return parens, braces


def validate_schema_text(text: str) -> SchemaCheck:
    """Run the structural checks in order, stopping at the first failure.

    Args:
        text: Candidate schema text.

    Returns:
        SchemaCheck describing the result. Never raises.

    Example:
        >>> validate_schema_text("z.object({ a: z.string().max(5) })").error
        'Schema cannot contain .max() - this constraint is not allowed'
    """
    text = text or ""
    if not text.strip().startswith(PREFIX):
        return _fail(MSG_PREFIX, "prefix")

    if FORBIDDEN_MAX.search(text):
        return _fail(MSG_MAX, "forbidden_constraint")

    parens, braces = _bracket_depths(text)
    if parens != 0:
        return _fail(MSG_PARENS, "unbalanced_parentheses")
    if braces != 0:
        return _fail(MSG_BRACES, "unbalanced_braces")

    if not KNOWN_TYPES.search(text):
        return _fail(MSG_NO_TYPES, "unknown_types")

    return _OK


def is_valid_schema_text(text: str) -> bool:
    """True when :func:`validate_schema_text` passes."""
    return validate_schema_text(text).valid


__all__ = [
    "SchemaCheck",
    "validate_schema_text",
    "is_valid_schema_text",
]
