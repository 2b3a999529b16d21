"""Recovery of JSON objects from loosely formatted model output.

Models asked for bare JSON still wrap it in markdown fences, prefix it with
a sentence, or leave trailing commas behind. The helpers here undo those
habits without guessing at content.
"""

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

# Cleanup rules applied in order (pattern, replacement)
REPAIR_PATTERNS: list[tuple[str, str]] = [
    # Markdown code fences
    (r"^```(?:json)?\s*", ""),
    (r"\s*```$", ""),
    # Trailing commas before a closing brace or bracket
    (r",\s*}", "}"),
    (r",\s*]", "]"),
    # Unquoted keys (simple identifiers only)
    (r"(\{|,)\s*([a-zA-Z_][a-zA-Z0-9_]*)\s*:", r'\1"\2":'),
]

CHATTER_PREFIXES = (
    "Here is the JSON:",
    "Here's the JSON:",
    "JSON output:",
    "Output:",
    "Result:",
)


def _loads_object(text: str) -> dict[str, Any] | None:
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None


def _balanced_object(text: str) -> str | None:
    """First ``{...}`` span with balanced braces, ignoring braces in strings."""
    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def load_object(content: str) -> dict[str, Any] | None:
    """Parse ``content`` as a JSON object, returning None when it is not one."""
    return _loads_object(content.strip())


def repair_json(content: str) -> dict[str, Any] | None:
    """Attempt to recover a JSON object from malformed model output.

    Tries, in order:
    1. Fence stripping, trailing comma and unquoted key cleanup
    2. The first balanced ``{...}`` span of the cleaned text
    3. Removal of conversational prefixes such as ``Result:``

    Args:
        content: Raw content that failed JSON parsing.

    Returns:
        The recovered object, or None when nothing parses as a JSON object.
    """
    cleaned = content.strip()
    for pattern, replacement in REPAIR_PATTERNS:
        cleaned = re.sub(pattern, replacement, cleaned, flags=re.MULTILINE)

    value = _loads_object(cleaned)
    if value is not None:
        return value

    span = _balanced_object(cleaned)
    if span is not None:
        value = _loads_object(span)
        if value is not None:
            return value

    for prefix in CHATTER_PREFIXES:
        if cleaned.lower().startswith(prefix.lower()):
            value = _loads_object(cleaned[len(prefix) :].strip())
            if value is not None:
                return value

    logger.debug(f"JSON repair failed for content: {content[:200]!r}")
    return None


def parse_or_repair(content: str) -> tuple[dict[str, Any] | None, bool]:
    """Parse ``content`` directly, falling back to :func:`repair_json`.

    Returns:
        Tuple of (object or None, whether repair was needed).
    """
    value = load_object(content)
    if value is not None:
        return value, False
    return repair_json(content), True


__all__ = ["REPAIR_PATTERNS", "load_object", "repair_json", "parse_or_repair"]
