"""Schema text codec.

Renders a field list to constructor-call schema text and recovers a field
list from such text. The accepted language is the subset :func:`render_schema`
produces: ``z.object({...})`` literals whose values are string, number,
boolean, enum, array or nested object constructors with an optional
``.describe("...")`` suffix.

Rendering is total and deterministic. Parsing is best-effort and total:
malformed text yields ``[]`` and an unrecognized value degrades to a string
field.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from pydantic import ValidationError

from .lib import (
    PRIMITIVE_TYPES,
    ArrayElementType,
    ArrayField,
    EnumField,
    FieldType,
    ObjectField,
    SchemaField,
    load_fields,
)

logger = logging.getLogger(__name__)

EMPTY_SCHEMA = "z.object({})"
ENUM_PLACEHOLDER = "PLACEHOLDER"
INDENT = "  "

# =============================================================================
# Rendering
# =============================================================================


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _quote(text: str) -> str:
    return f'"{_escape(text)}"'


def _is_bare_name(name: str) -> bool:
    return all(ch.isalnum() or ch in "_$" for ch in name)


def _render_key(name: str) -> str:
    return name if _is_bare_name(name) else _quote(name)


def _render_type(field: SchemaField, indent_level: int) -> str:
    if isinstance(field, ArrayField):
        if field.element_type == ArrayElementType.OBJECT:
            inner = render_schema(field.element_fields, indent_level + 1)
            return f"z.array({inner})"
        return f"z.array(z.{field.element_type.value}())"
    if isinstance(field, EnumField):
        values = ", ".join(_quote(value.strip()) for value in field.values)
        return f"z.enum([{values or _quote(ENUM_PLACEHOLDER)}])"
    if isinstance(field, ObjectField):
        return render_schema(field.fields, indent_level + 1)
    return f"z.{field.type}()"


def render_schema(fields: Iterable[SchemaField], indent_level: int = 1) -> str:
    """Render fields as schema text.

    Each field becomes ``name: <type>[.describe("...")]`` on its own line,
    indented two spaces per nesting level. Fields with a blank name are
    skipped.

    Args:
        fields: Ordered fields to render.
        indent_level: Nesting depth of the fields; 1 for a top-level schema.

    Returns:
        Schema text wrapped in ``z.object({...})``.
    """
    indent = INDENT * indent_level
    closing_indent = INDENT * (indent_level - 1)

    lines = []
    for field in fields:
        name = field.name.strip()
        if not name:
            continue
        expression = _render_type(field, indent_level)
        description = field.description.strip()
        if description:
            expression += f".describe({_quote(description)})"
        lines.append(f"{indent}{_render_key(name)}: {expression}")

    body = ",\n".join(lines)
    return f"z.object({{\n{body}\n{closing_indent}}})"


def schema_text(fields: list[SchemaField] | None, raw_schema: str | None = None) -> str:
    """Wire schema text for a generator.

    Raw schema text is authoritative when present; otherwise the field list
    is rendered, and an empty list yields ``z.object({})``.
    """
    if raw_schema:
        return raw_schema
    if not fields:
        return EMPTY_SCHEMA
    return render_schema(fields)


# =============================================================================
# Tokenizer
# =============================================================================


class TokenKind(str, Enum):
    IDENT = "ident"
    STRING = "string"
    PUNCT = "punct"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    offset: int

    def is_punct(self, value: str) -> bool:
        return self.kind == TokenKind.PUNCT and self.value == value

    def is_ident(self, value: str | None = None) -> bool:
        return self.kind == TokenKind.IDENT and (value is None or self.value == value)


QUOTES = "\"'`"
OPENERS = "({["
CLOSERS = ")}]"
_PAIRS = {"(": ")", "{": "}", "[": "]"}
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}


def _read_string(text: str, start: int) -> tuple[str, int]:
    """Read a quoted literal starting at ``start``; unterminated runs to the end."""
    quote = text[start]
    chars = []
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            chars.append(_ESCAPES.get(text[i + 1], text[i + 1]))
            i += 2
            continue
        if ch == quote:
            return "".join(chars), i + 1
        chars.append(ch)
        i += 1
    return "".join(chars), i


def tokenize(text: str) -> list[Token]:
    """Split schema text into identifiers, string literals and punctuation."""
    tokens = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch.isspace():
            i += 1
        elif ch in QUOTES:
            value, end = _read_string(text, i)
            tokens.append(Token(TokenKind.STRING, value, i))
            i = end
        elif ch.isalnum() or ch in "_$":
            end = i + 1
            while end < len(text) and (text[end].isalnum() or text[end] in "_$"):
                end += 1
            tokens.append(Token(TokenKind.IDENT, text[i:end], i))
            i = end
        else:
            tokens.append(Token(TokenKind.PUNCT, ch, i))
            i += 1
    return tokens


# =============================================================================
# Parser
# =============================================================================


class _ParseFailure(Exception):
    """Internal signal that a construct does not fit the grammar."""


class _TokenStream:
    """Cursor over a token list."""

    def __init__(self, tokens: list[Token]):
        self._tokens = tokens
        self._pos = 0

    def peek(self) -> Token | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def at_end(self) -> bool:
        return self._pos >= len(self._tokens)

    def advance(self) -> Token:
        token = self.peek()
        if token is None:
            raise _ParseFailure("unexpected end of schema text")
        self._pos += 1
        return token

    def expect_punct(self, value: str) -> Token:
        token = self.advance()
        if not token.is_punct(value):
            raise _ParseFailure(f"expected {value!r} at offset {token.offset}")
        return token

    def expect_ident(self) -> Token:
        token = self.advance()
        if not token.is_ident():
            raise _ParseFailure(f"expected identifier at offset {token.offset}")
        return token

    def read_group(self, opener: str) -> list[Token]:
        """Consume a balanced ``opener ... closer`` group and return its interior."""
        self.expect_punct(opener)
        depth = 1
        interior = []
        while True:
            token = self.advance()
            if token.kind == TokenKind.PUNCT and token.value in OPENERS:
                depth += 1
            elif token.kind == TokenKind.PUNCT and token.value in CLOSERS:
                depth -= 1
                if depth == 0:
                    if token.value != _PAIRS[opener]:
                        raise _ParseFailure(f"mismatched {token.value!r}")
                    return interior
            interior.append(token)


def _split_top_level(tokens: list[Token], separator: str = ",") -> list[list[Token]]:
    """Split tokens on ``separator`` occurring outside any bracket group."""
    parts: list[list[Token]] = [[]]
    depth = 0
    for token in tokens:
        if token.kind == TokenKind.PUNCT:
            if token.value in OPENERS:
                depth += 1
            elif token.value in CLOSERS:
                depth -= 1
            elif token.value == separator and depth == 0:
                parts.append([])
                continue
        parts[-1].append(token)
    return [part for part in parts if part]


def _read_call(stream: _TokenStream) -> tuple[str, list[Token]]:
    """``IDENT ( args )`` -> (name, argument tokens)."""
    name = stream.expect_ident().value
    return name, stream.read_group("(")


def _read_constructor(stream: _TokenStream) -> tuple[str, list[Token], list[tuple[str, list[Token]]]]:
    """``z.ctor(args)`` followed by any ``.method(args)`` chain."""
    head = stream.expect_ident()
    if head.value != "z":
        raise _ParseFailure(f"expected 'z' at offset {head.offset}")
    stream.expect_punct(".")
    constructor, args = _read_call(stream)

    chain = []
    while not stream.at_end():
        stream.expect_punct(".")
        chain.append(_read_call(stream))
    return constructor, args, chain


def _description_from(chain: list[tuple[str, list[Token]]]) -> str:
    description = ""
    for method, args in chain:
        if method == "describe" and len(args) == 1 and args[0].kind == TokenKind.STRING:
            description = args[0].value
    return description


def _parse_object_args(args: list[Token]) -> list[dict[str, Any]]:
    """Fields from the ``{...}`` argument of an object constructor."""
    stream = _TokenStream(args)
    body = stream.read_group("{")
    if not stream.at_end():
        raise _ParseFailure("unexpected tokens after object literal")
    return _parse_fields(body)


def _classify_element(args: list[Token]) -> dict[str, Any] | None:
    stream = _TokenStream(args)
    constructor, inner_args, _ = _read_constructor(stream)
    if constructor in (t.value for t in PRIMITIVE_TYPES):
        return {"element_type": constructor}
    if constructor == FieldType.OBJECT.value:
        return {
            "element_type": ArrayElementType.OBJECT.value,
            "element_fields": _parse_object_args(inner_args),
        }
    return None


def _classify(constructor: str, args: list[Token]) -> dict[str, Any] | None:
    """Variant payload for a recognized constructor, else None."""
    if constructor in (t.value for t in PRIMITIVE_TYPES):
        return {"type": constructor}
    if constructor == FieldType.ENUM.value:
        values = [token.value for token in args if token.kind == TokenKind.STRING]
        return {"type": constructor, "values": values}
    if constructor == FieldType.ARRAY.value:
        element = _classify_element(args)
        return {"type": constructor, **element} if element is not None else None
    if constructor == FieldType.OBJECT.value:
        return {"type": constructor, "fields": _parse_object_args(args)}
    return None


def _parse_value(tokens: list[Token]) -> dict[str, Any]:
    """Type payload and description of one field value.

    Anything outside the supported constructors degrades to a string field.
    """
    try:
        constructor, args, chain = _read_constructor(_TokenStream(tokens))
    except _ParseFailure:
        return {"type": FieldType.STRING.value}

    description = _description_from(chain)
    try:
        payload = _classify(constructor, args)
    except _ParseFailure:
        payload = None
    if payload is None:
        logger.debug(f"Unrecognized schema type z.{constructor}, using string")
        payload = {"type": FieldType.STRING.value}
    return {**payload, "description": description}


def _parse_fields(body: list[Token]) -> list[dict[str, Any]]:
    fields = []
    for clause in _split_top_level(body):
        if len(clause) < 3 or not clause[1].is_punct(":"):
            continue
        key = clause[0]
        if key.kind not in (TokenKind.IDENT, TokenKind.STRING):
            continue
        fields.append({"name": key.value, **_parse_value(clause[2:])})
    return fields


def _find_object_start(tokens: list[Token]) -> int | None:
    """Index of the first ``z . object ( {`` sequence."""
    for i in range(len(tokens) - 4):
        window = tokens[i : i + 5]
        if (
            window[0].is_ident("z")
            and window[1].is_punct(".")
            and window[2].is_ident("object")
            and window[3].is_punct("(")
            and window[4].is_punct("{")
        ):
            return i
    return None


def parse_schema(text: str) -> list[SchemaField]:
    """Recover a field list from schema text.

    Never raises. Returns ``[]`` when no object literal can be read.
    """
    try:
        tokens = tokenize(text or "")
        start = _find_object_start(tokens)
        if start is None:
            return []
        stream = _TokenStream(tokens[start + 2 :])
        _, args = _read_call(stream)
        return load_fields(_parse_object_args(args))
    except (_ParseFailure, ValidationError, RecursionError) as e:
        logger.debug(f"Schema text not parseable: {e}")
        return []


def can_parse_schema(text: str) -> bool:
    """True when the visual field editor can represent ``text``."""
    return len(parse_schema(text)) > 0


__all__ = [
    "EMPTY_SCHEMA",
    "ENUM_PLACEHOLDER",
    "Token",
    "TokenKind",
    "tokenize",
    "render_schema",
    "schema_text",
    "parse_schema",
    "can_parse_schema",
]
