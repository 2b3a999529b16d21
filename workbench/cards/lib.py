"""Versioned input and generator cards, and their factories."""

import uuid

from workbench.config import get_default_model
from workbench.schema import SchemaField, default_schema_fields
from workbench.versioning import VersionedEntity

from .models import (
    FetchInput,
    FetchRequestConfig,
    GeneratorConfig,
    InputKind,
    StringInput,
)

DEFAULT_SYSTEM_MESSAGE = (
    "You are a helpful assistant that extracts structured data from user input."
)
NEW_GENERATOR_SYSTEM_MESSAGE = (
    "You are an expert data analyst who focuses on conciseness."
)
SAMPLE_INPUT_TEXT = (
    "Vercel is a platform for frontend developers, providing the speed and "
    "reliability innovators need to create at the moment of inspiration."
)


def new_card_id() -> str:
    return uuid.uuid4().hex


class InputCard(VersionedEntity[StringInput | FetchInput]):
    """Versioned input. Its variant (string or fetch) never changes."""

    def __init__(self, draft: StringInput | FetchInput, card_id: str | None = None):
        super().__init__(draft)
        self.id = card_id or new_card_id()

    @property
    def kind(self) -> InputKind:
        return InputKind(self.draft.kind)

    @property
    def label(self) -> str:
        return self.draft.label

    def __repr__(self) -> str:
        return (
            f"InputCard(id={self.id!r}, kind={self.kind.value!r}, "
            f"label={self.label!r}, version={self.current_version})"
        )


class GeneratorCard(VersionedEntity[GeneratorConfig]):
    """Versioned extraction configuration."""

    def __init__(self, draft: GeneratorConfig, card_id: str | None = None):
        super().__init__(draft)
        self.id = card_id or new_card_id()

    @property
    def label(self) -> str:
        return self.draft.label

    def __repr__(self) -> str:
        return (
            f"GeneratorCard(id={self.id!r}, label={self.label!r}, "
            f"model={self.draft.model!r}, version={self.current_version})"
        )


# =============================================================================
# Factories
# =============================================================================


def create_string_input_card(label: str, data: str = "") -> InputCard:
    return InputCard(StringInput(label=label, data=data))


def create_fetch_input_card(
    label: str, fetch_config: FetchRequestConfig | None = None
) -> InputCard:
    return InputCard(
        FetchInput(label=label, fetch_config=fetch_config or FetchRequestConfig())
    )


def create_generator_card(
    label: str,
    model: str | None = None,
    system_message: str = DEFAULT_SYSTEM_MESSAGE,
    schema_fields: list[SchemaField] | None = None,
    raw_schema: str | None = None,
) -> GeneratorCard:
    """Create a generator card.

    Without an explicit schema the card is seeded with
    :func:`~workbench.schema.default_schema_fields`.
    """
    if schema_fields is None and raw_schema is None:
        schema_fields = default_schema_fields()
    config = GeneratorConfig(
        label=label,
        model=get_default_model(model),
        system_message=system_message,
        schema_fields=schema_fields or [],
        raw_schema=raw_schema,
    )
    return GeneratorCard(config)


__all__ = [
    "DEFAULT_SYSTEM_MESSAGE",
    "NEW_GENERATOR_SYSTEM_MESSAGE",
    "SAMPLE_INPUT_TEXT",
    "InputCard",
    "GeneratorCard",
    "new_card_id",
    "create_string_input_card",
    "create_fetch_input_card",
    "create_generator_card",
]
