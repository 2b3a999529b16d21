"""Card management tools for the MCP server.

Input cards, generator cards and their versions, all operating on the
process-level :class:`~workbench.mcp.session.WorkbenchSession`.
"""

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from workbench.cards import FetchRequestConfig, GeneratorCard, InputCard, InputKind
from workbench.schema import dump_fields, load_fields
from workbench.versioning import VersionedEntity

from ..session import WorkbenchSession, get_session

logger = logging.getLogger(__name__)


# =============================================================================
# Serialization
# =============================================================================


def _versions(card: VersionedEntity) -> list[dict[str, Any]]:
    return [
        {"version": s.version, "created_at": s.created_at.isoformat()}
        for s in card.versions
    ]


def input_card_to_dict(card: InputCard, active_id: str | None = None) -> dict[str, Any]:
    return {
        "id": card.id,
        "kind": card.kind.value,
        "label": card.label,
        "is_active": card.id == active_id,
        "draft": card.draft.model_dump(mode="json"),
        "current_version": card.current_version,
        "has_unsaved_changes": card.has_unsaved_changes,
        "versions": _versions(card),
    }


def generator_card_to_dict(card: GeneratorCard) -> dict[str, Any]:
    config = card.draft
    return {
        "id": card.id,
        "label": card.label,
        "model": config.model,
        "system_message": config.system_message,
        "schema": config.schema_text(),
        "uses_raw_schema": config.uses_raw_schema,
        "schema_fields": dump_fields(config.schema_fields),
        "current_version": card.current_version,
        "has_unsaved_changes": card.has_unsaved_changes,
        "versions": _versions(card),
    }


def card_to_dict(card: VersionedEntity, session: WorkbenchSession) -> dict[str, Any]:
    if isinstance(card, InputCard):
        return input_card_to_dict(card, session.workspace.active_input_id)
    return generator_card_to_dict(card)


# =============================================================================
# Listing
# =============================================================================


def list_cards(session: WorkbenchSession | None = None) -> dict[str, Any]:
    """List every input and generator card, newest first.

    Returns:
        Dictionary with:
        - active_input_id: Id of the input used by the next generation
        - input_cards: Input card summaries
        - generator_cards: Generator card summaries
    """
    session = session or get_session()
    workspace = session.workspace
    return {
        "active_input_id": workspace.active_input_id,
        "input_cards": [
            input_card_to_dict(c, workspace.active_input_id) for c in workspace.input_cards
        ],
        "generator_cards": [generator_card_to_dict(c) for c in workspace.generator_cards],
    }


# =============================================================================
# Input cards
# =============================================================================


def add_input_card(
    data: str = "",
    label: str | None = None,
    session: WorkbenchSession | None = None,
) -> dict[str, Any]:
    """Add a text input card and make it active."""
    session = session or get_session()
    card = session.workspace.add_string_input_card(data, label=label)
    return input_card_to_dict(card, session.workspace.active_input_id)


def _fetch_config(
    url: str,
    method: str = "GET",
    headers: dict[str, str] | None = None,
    body: str | None = None,
    timeout_ms: int | None = None,
) -> FetchRequestConfig:
    values: dict[str, Any] = {"url": url, "method": method.upper(), "body": body}
    if headers is not None:
        values["headers"] = headers
    if timeout_ms is not None:
        values["timeout_ms"] = timeout_ms
    try:
        return FetchRequestConfig(**values)
    except PydanticValidationError as e:
        raise ValueError(f"Invalid fetch request: {e}") from e


def add_fetch_card(
    url: str,
    method: str = "GET",
    headers: dict[str, str] | None = None,
    body: str | None = None,
    timeout_ms: int | None = None,
    label: str | None = None,
    session: WorkbenchSession | None = None,
) -> dict[str, Any]:
    """Add an HTTP fetch input card and make it active.

    The request runs when a generation is launched against the card.

    Raises:
        ValueError: If the method or timeout is invalid.
    """
    session = session or get_session()
    config = _fetch_config(url, method, headers, body, timeout_ms)
    card = session.workspace.add_fetch_input_card(config, label=label)
    return input_card_to_dict(card, session.workspace.active_input_id)


def update_input_card(
    card_id: str,
    data: str | None = None,
    label: str | None = None,
    url: str | None = None,
    method: str | None = None,
    headers: dict[str, str] | None = None,
    body: str | None = None,
    timeout_ms: int | None = None,
    session: WorkbenchSession | None = None,
) -> dict[str, Any]:
    """Edit an input card's draft. Fetch options apply to fetch cards only.

    Raises:
        ValueError: If text data is given for a fetch card or fetch options
            for a text card.
    """
    session = session or get_session()
    workspace = session.workspace
    card = workspace.get_input_card(card_id)
    changes: dict[str, Any] = {}
    if label is not None:
        changes["label"] = label

    fetch_options = (url, method, headers, body, timeout_ms)
    if card.kind == InputKind.STRING:
        if any(option is not None for option in fetch_options):
            raise ValueError(f"Input card '{card_id}' is not a fetch card")
        if data is not None:
            changes["data"] = data
    else:
        if data is not None:
            raise ValueError(f"Input card '{card_id}' is a fetch card; set url instead")
        if any(option is not None for option in fetch_options):
            current = card.draft.fetch_config
            changes["fetch_config"] = _fetch_config(
                url if url is not None else current.url,
                method if method is not None else current.method.value,
                headers if headers is not None else current.headers,
                body if body is not None else current.body,
                timeout_ms if timeout_ms is not None else current.timeout_ms,
            )

    if changes:
        workspace.update_input_card(card_id, **changes)
    return input_card_to_dict(card, workspace.active_input_id)


def delete_input_card(card_id: str, session: WorkbenchSession | None = None) -> dict[str, Any]:
    """Delete an input card. The last remaining input card cannot be deleted."""
    session = session or get_session()
    session.workspace.delete_input_card(card_id)
    return {"deleted": card_id, "active_input_id": session.workspace.active_input_id}


def set_active_input(card_id: str, session: WorkbenchSession | None = None) -> dict[str, Any]:
    """Choose the input card used by the next generation."""
    session = session or get_session()
    card = session.workspace.set_active_input(card_id)
    return input_card_to_dict(card, session.workspace.active_input_id)


# =============================================================================
# Generator cards
# =============================================================================


def add_generator(
    label: str | None = None,
    model: str | None = None,
    session: WorkbenchSession | None = None,
) -> dict[str, Any]:
    """Add a generator card with the default schema."""
    session = session or get_session()
    return generator_card_to_dict(session.workspace.add_generator_card(label, model))


def update_generator(
    card_id: str,
    label: str | None = None,
    model: str | None = None,
    system_message: str | None = None,
    session: WorkbenchSession | None = None,
) -> dict[str, Any]:
    """Edit a generator's label, model or system message."""
    session = session or get_session()
    changes = {
        name: value
        for name, value in (
            ("label", label),
            ("model", model),
            ("system_message", system_message),
        )
        if value is not None
    }
    card = session.workspace.get_generator_card(card_id)
    if changes:
        card = session.workspace.update_generator_card(card_id, **changes)
    return generator_card_to_dict(card)


def set_generator_schema(
    card_id: str,
    schema: str | None = None,
    fields: list[dict[str, Any]] | None = None,
    session: WorkbenchSession | None = None,
) -> dict[str, Any]:
    """Replace a generator's output schema.

    Pass either ``schema`` text, which must pass validation, or ``fields``
    dicts for the field builder. Passing neither clears the schema.

    Raises:
        ValueError: If both are given or the fields are malformed.
        SchemaTextInvalidError: If the schema text fails validation.
    """
    session = session or get_session()
    workspace = session.workspace
    if schema is not None and fields is not None:
        raise ValueError("Pass either schema text or fields, not both")

    if schema is not None:
        card = workspace.import_schema(card_id, schema)
    elif fields is not None:
        try:
            parsed = load_fields(fields)
        except PydanticValidationError as e:
            raise ValueError(f"Invalid schema fields: {e}") from e
        card = workspace.set_schema_fields(card_id, parsed)
    else:
        card = workspace.clear_schema(card_id)
    return generator_card_to_dict(card)


def delete_generator(card_id: str, session: WorkbenchSession | None = None) -> dict[str, Any]:
    """Delete a generator card and its generation records."""
    session = session or get_session()
    session.workspace.delete_generator_card(card_id)
    return {"deleted": card_id}


# =============================================================================
# Versions
# =============================================================================


def commit_card(card_id: str, session: WorkbenchSession | None = None) -> dict[str, Any]:
    """Snapshot a card's draft as a new version."""
    session = session or get_session()
    version = session.workspace.commit(card_id)
    logger.info(f"Committed card {card_id} as version {version}")
    return card_to_dict(session.workspace.get_card(card_id), session)


def switch_version(
    card_id: str,
    version: int | None = None,
    session: WorkbenchSession | None = None,
) -> dict[str, Any]:
    """Load a committed version into the draft, or unpin it with ``None``."""
    session = session or get_session()
    card = session.workspace.switch_version(card_id, version)
    return card_to_dict(card, session)


def revert_card(card_id: str, session: WorkbenchSession | None = None) -> dict[str, Any]:
    """Discard unsaved edits by loading the latest version."""
    session = session or get_session()
    return card_to_dict(session.workspace.revert(card_id), session)


def get_version(
    card_id: str,
    version: int,
    session: WorkbenchSession | None = None,
) -> dict[str, Any]:
    """Content of one committed version."""
    session = session or get_session()
    snapshot = session.workspace.get_card(card_id).get_version(version)
    return {
        "card_id": card_id,
        "version": snapshot.version,
        "created_at": snapshot.created_at.isoformat(),
        "content": snapshot.content.model_dump(mode="json"),
    }


__all__ = [
    "input_card_to_dict",
    "generator_card_to_dict",
    "list_cards",
    "add_input_card",
    "add_fetch_card",
    "update_input_card",
    "delete_input_card",
    "set_active_input",
    "add_generator",
    "update_generator",
    "set_generator_schema",
    "delete_generator",
    "commit_card",
    "switch_version",
    "revert_card",
    "get_version",
]
