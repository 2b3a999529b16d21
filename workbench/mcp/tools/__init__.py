"""MCP tools for the workbench.

Tools:
    - schema: render, parse and validate schema text
    - cards: input and generator cards and their versions
    - generate: generations, records, cost estimates and assisted config
"""

from .cards import (
    add_fetch_card,
    add_generator,
    add_input_card,
    commit_card,
    delete_generator,
    delete_input_card,
    get_version,
    list_cards,
    revert_card,
    set_active_input,
    set_generator_schema,
    switch_version,
    update_generator,
    update_input_card,
)
from .generate import (
    assist_config,
    assist_schema,
    assist_system_message,
    estimate_generation,
    generate_output,
    get_record,
    list_models,
    list_records,
)
from .schema import parse_schema_text, render_schema_text, validate_schema

__all__ = [
    # Schema
    "render_schema_text",
    "parse_schema_text",
    "validate_schema",
    # Cards
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
    # Versions
    "commit_card",
    "switch_version",
    "revert_card",
    "get_version",
    # Generation
    "generate_output",
    "get_record",
    "list_records",
    "estimate_generation",
    "list_models",
    # Assist
    "assist_system_message",
    "assist_schema",
    "assist_config",
]
