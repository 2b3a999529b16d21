"""Input and generator cards."""

from workbench.cards.lib import (
    DEFAULT_SYSTEM_MESSAGE,
    NEW_GENERATOR_SYSTEM_MESSAGE,
    SAMPLE_INPUT_TEXT,
    GeneratorCard,
    InputCard,
    create_fetch_input_card,
    create_generator_card,
    create_string_input_card,
    new_card_id,
)
from workbench.cards.models import (
    DEFAULT_FETCH_TIMEOUT_MS,
    DEFAULT_FETCH_URL,
    FetchInput,
    FetchRequestConfig,
    GeneratorConfig,
    HttpMethod,
    InputDraft,
    InputKind,
    StringInput,
)

__all__ = [
    # Drafts
    "HttpMethod",
    "InputKind",
    "FetchRequestConfig",
    "StringInput",
    "FetchInput",
    "InputDraft",
    "GeneratorConfig",
    "DEFAULT_FETCH_URL",
    "DEFAULT_FETCH_TIMEOUT_MS",
    # Cards
    "InputCard",
    "GeneratorCard",
    "new_card_id",
    "create_string_input_card",
    "create_fetch_input_card",
    "create_generator_card",
    "DEFAULT_SYSTEM_MESSAGE",
    "NEW_GENERATOR_SYSTEM_MESSAGE",
    "SAMPLE_INPUT_TEXT",
]
