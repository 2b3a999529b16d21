"""Application state: input cards, generator cards and generation records.

A :class:`Workspace` is an explicit state object handed to whoever needs
it (orchestrator, CLI, MCP server). Card edits are plain method calls on
the owning thread; only record insertion and resolution, which happen from
generation workers, take the lock.
"""

import logging
import threading
from typing import TYPE_CHECKING, Any, Protocol

from workbench.cards import (
    NEW_GENERATOR_SYSTEM_MESSAGE,
    SAMPLE_INPUT_TEXT,
    FetchRequestConfig,
    GeneratorCard,
    InputCard,
    InputKind,
    create_fetch_input_card,
    create_generator_card,
    create_string_input_card,
)
from workbench.schema import SchemaField
from workbench.validation import SchemaCheck, validate_schema_text
from workbench.versioning import VersionedEntity

if TYPE_CHECKING:
    from workbench.generation.models import GenerationRecord

logger = logging.getLogger(__name__)

INITIAL_INPUT_LABEL = "input"
INITIAL_GENERATOR_LABEL = "Default Extractor"


# =============================================================================
# Errors
# =============================================================================


class WorkspaceError(Exception):
    """Base exception for workspace operations."""


class CardNotFoundError(WorkspaceError):
    """Raised when no card or record has the given id."""

    def __init__(self, kind: str, card_id: str):
        super().__init__(f"{kind} '{card_id}' not found")
        self.kind = kind
        self.card_id = card_id


class LastInputCardError(WorkspaceError):
    """Raised when deleting the only remaining input card."""


class InputKindError(WorkspaceError):
    """Raised when an operation does not apply to the card's input kind."""


class SchemaTextInvalidError(WorkspaceError):
    """Raised when schema text fails the structural check.

    Attributes:
        check: The failed :class:`~workbench.validation.SchemaCheck`.
    """

    def __init__(self, check: SchemaCheck):
        super().__init__(check.error or "Invalid schema")
        self.check = check


class RecordAlreadyResolvedError(WorkspaceError):
    """Raised when a generation record is resolved a second time."""


class FetchesText(Protocol):
    def request(self, config: FetchRequestConfig) -> str: ...


# =============================================================================
# Workspace
# =============================================================================


class Workspace:
    """In-memory state of one extraction session.

    Cards and records are kept newest first. A fresh workspace holds one
    string input (the sample text, active) and one default generator.

    Example:
        >>> workspace = Workspace()
        >>> card = workspace.add_string_input_card("Meeting moved to Friday.")
        >>> workspace.active_input_id == card.id
        True
    """

    def __init__(self, seed: bool = True):
        """Initialize workspace.

        Args:
            seed: Create the initial input and generator cards.
        """
        self._input_cards: list[InputCard] = []
        self._generator_cards: list[GeneratorCard] = []
        self._records: list["GenerationRecord"] = []
        self.active_input_id: str | None = None
        self._lock = threading.RLock()

        if seed:
            initial = create_string_input_card(INITIAL_INPUT_LABEL, SAMPLE_INPUT_TEXT)
            self._input_cards.append(initial)
            self.active_input_id = initial.id
            self._generator_cards.append(create_generator_card(INITIAL_GENERATOR_LABEL))

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    @property
    def input_cards(self) -> list[InputCard]:
        return list(self._input_cards)

    @property
    def generator_cards(self) -> list[GeneratorCard]:
        return list(self._generator_cards)

    @property
    def records(self) -> list["GenerationRecord"]:
        with self._lock:
            return list(self._records)

    def get_input_card(self, card_id: str) -> InputCard:
        for card in self._input_cards:
            if card.id == card_id:
                return card
        raise CardNotFoundError("Input card", card_id)

    def get_generator_card(self, card_id: str) -> GeneratorCard:
        for card in self._generator_cards:
            if card.id == card_id:
                return card
        raise CardNotFoundError("Generator card", card_id)

    def get_record(self, record_id: str) -> "GenerationRecord":
        with self._lock:
            for record in self._records:
                if record.id == record_id:
                    return record
        raise CardNotFoundError("Generation record", record_id)

    def _find_input(self, card_id: str | None) -> InputCard | None:
        return next((c for c in self._input_cards if c.id == card_id), None)

    def _find_generator(self, card_id: str) -> GeneratorCard | None:
        return next((c for c in self._generator_cards if c.id == card_id), None)

    # -------------------------------------------------------------------------
    # Input cards
    # -------------------------------------------------------------------------

    @property
    def active_input(self) -> InputCard | None:
        return self._find_input(self.active_input_id)

    def active_input_text(self) -> str:
        """Text of the active card; empty for fetch cards or no active card."""
        card = self.active_input
        if card is None or card.kind != InputKind.STRING:
            return ""
        return card.draft.data

    def set_active_input(self, card_id: str) -> InputCard:
        card = self.get_input_card(card_id)
        self.active_input_id = card.id
        return card

    def _insert_input(self, card: InputCard, activate: bool) -> InputCard:
        self._input_cards.insert(0, card)
        if activate:
            self.active_input_id = card.id
        logger.debug(f"Added {card!r}")
        return card

    def add_string_input_card(
        self, data: str = "", label: str | None = None, activate: bool = True
    ) -> InputCard:
        """Add a string input, labelled ``input N`` unless ``label`` is given."""
        label = label or f"input {len(self._input_cards) + 1}"
        return self._insert_input(create_string_input_card(label, data), activate)

    def add_fetch_input_card(
        self,
        fetch_config: FetchRequestConfig | None = None,
        label: str | None = None,
        activate: bool = True,
    ) -> InputCard:
        """Add a fetch input, labelled ``fetch N`` (N counts fetch cards)."""
        if label is None:
            fetch_count = sum(1 for c in self._input_cards if c.kind == InputKind.FETCH)
            label = f"fetch {fetch_count + 1}"
        return self._insert_input(create_fetch_input_card(label, fetch_config), activate)

    def delete_input_card(self, card_id: str) -> None:
        """Delete an input card.

        Deleting the active card activates the first remaining one.

        Raises:
            LastInputCardError: If it is the only input card.
        """
        card = self.get_input_card(card_id)
        if len(self._input_cards) <= 1:
            raise LastInputCardError("Cannot delete the last input card")
        self._input_cards.remove(card)
        if self.active_input_id == card_id:
            self.active_input_id = self._input_cards[0].id

    def update_input_card(self, card_id: str, **changes: Any) -> InputCard:
        """Edit the draft of an input card (``label``, ``data`` or ``fetch_config``).

        Raises:
            InputKindError: On an attempt to change the card's kind.
        """
        card = self.get_input_card(card_id)
        if "kind" in changes and changes["kind"] != card.kind.value:
            raise InputKindError("The kind of an input card cannot be changed")
        card.edit(**changes)
        return card

    def execute_fetch(self, card_id: str, client: FetchesText) -> InputCard:
        """Resolve a fetch card into a new active string card.

        The new card is labelled ``<fetch label> response``.

        Raises:
            InputKindError: If the card is not a fetch card.
            FetchError: If the request fails or times out.
        """
        card = self.get_input_card(card_id)
        if card.kind != InputKind.FETCH:
            raise InputKindError(f"Input card '{card_id}' is not a fetch card")
        text = client.request(card.draft.fetch_config)
        response_card = self.add_string_input_card(
            text, label=f"{card.label} response", activate=True
        )
        logger.info(f"Fetched {len(text)} characters into {response_card.label!r}")
        return response_card

    # -------------------------------------------------------------------------
    # Generator cards
    # -------------------------------------------------------------------------

    def add_generator_card(
        self, label: str | None = None, model: str | None = None
    ) -> GeneratorCard:
        """Add a generator, labelled ``Generator N`` unless ``label`` is given."""
        card = create_generator_card(
            label or f"Generator {len(self._generator_cards) + 1}",
            model=model,
            system_message=NEW_GENERATOR_SYSTEM_MESSAGE,
        )
        self._generator_cards.insert(0, card)
        logger.debug(f"Added {card!r}")
        return card

    def delete_generator_card(self, card_id: str) -> None:
        """Delete a generator card together with its records."""
        card = self.get_generator_card(card_id)
        self._generator_cards.remove(card)
        with self._lock:
            self._records = [r for r in self._records if r.generator_id != card_id]

    def update_generator_card(self, card_id: str, **changes: Any) -> GeneratorCard:
        """Edit generator draft fields (label, model, system_message, ...)."""
        card = self.get_generator_card(card_id)
        card.edit(**changes)
        return card

    def set_schema_fields(self, card_id: str, fields: list[SchemaField]) -> GeneratorCard:
        """Replace the builder fields; a non-empty list clears any raw schema."""
        card = self.get_generator_card(card_id)
        card.replace_draft(card.draft.with_fields(fields))
        return card

    def set_raw_schema(self, card_id: str, text: str) -> GeneratorCard:
        """Make ``text`` the schema source and clear the builder fields."""
        card = self.get_generator_card(card_id)
        card.replace_draft(card.draft.with_raw_schema(text))
        return card

    def import_schema(self, card_id: str, text: str) -> GeneratorCard:
        """Validate pasted schema text and store it as the raw schema.

        Raises:
            SchemaTextInvalidError: If the text fails the structural check.
        """
        self.get_generator_card(card_id)
        text = text.strip()
        check = validate_schema_text(text)
        if not check.valid:
            raise SchemaTextInvalidError(check)
        return self.set_raw_schema(card_id, text)

    def clear_schema(self, card_id: str) -> GeneratorCard:
        card = self.get_generator_card(card_id)
        card.replace_draft(card.draft.cleared_schema())
        return card

    # -------------------------------------------------------------------------
    # Versions
    # -------------------------------------------------------------------------

    def get_card(self, card_id: str) -> VersionedEntity:
        """Input or generator card by id."""
        card = self._find_input(card_id) or self._find_generator(card_id)
        if card is None:
            raise CardNotFoundError("Card", card_id)
        return card

    def commit(self, card_id: str) -> int:
        """Commit the draft of any card; returns the new version number."""
        return self.get_card(card_id).commit()

    def switch_version(self, card_id: str, version: int | None) -> VersionedEntity:
        """Load ``version`` into the draft, or unpin to the working draft on None."""
        card = self.get_card(card_id)
        if version is None:
            card.switch_to_working()
        else:
            card.switch_to_version(version)
        return card

    def revert(self, card_id: str) -> VersionedEntity:
        """Discard edits by loading the latest committed version."""
        card = self.get_card(card_id)
        card.revert_to_latest()
        return card

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    def add_record(self, record: "GenerationRecord") -> "GenerationRecord":
        with self._lock:
            self._records.insert(0, record)
        return record

    def resolve_record(
        self,
        record_id: str,
        *,
        result: dict[str, Any] | None = None,
        error: Any = None,
        **updates: Any,
    ) -> "GenerationRecord":
        """Move a loading record to its final state.

        Args:
            record_id: Record to resolve.
            result: Generated object on success.
            error: :class:`~workbench.generation.GenerationError` on failure.
            **updates: Other record attributes (token_usage, cost_info,
                generation_time_ms).

        Raises:
            RecordAlreadyResolvedError: If the record was already resolved.
        """
        with self._lock:
            record = self.get_record(record_id)
            if not record.is_loading:
                raise RecordAlreadyResolvedError(
                    f"Generation record '{record_id}' is already resolved"
                )
            for name, value in updates.items():
                if not hasattr(record, name):
                    raise AttributeError(f"GenerationRecord has no attribute {name!r}")
                setattr(record, name, value)
            record.result = result if error is None else None
            record.error = error
            record.is_loading = False
            return record

    def records_for(self, generator_id: str) -> list["GenerationRecord"]:
        with self._lock:
            return [r for r in self._records if r.generator_id == generator_id]

    def is_orphaned(self, record: "GenerationRecord") -> bool:
        """True when the input or generator card a record refers to is gone."""
        if self._find_generator(record.generator_id) is None:
            return True
        reference = record.generation_reference
        return reference is not None and self._find_input(reference.input_card_id) is None


__all__ = [
    "Workspace",
    "WorkspaceError",
    "CardNotFoundError",
    "LastInputCardError",
    "InputKindError",
    "SchemaTextInvalidError",
    "RecordAlreadyResolvedError",
    "INITIAL_INPUT_LABEL",
    "INITIAL_GENERATOR_LABEL",
]
