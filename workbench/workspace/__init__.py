"""Explicit application state for an extraction session."""

from workbench.workspace.lib import (
    INITIAL_GENERATOR_LABEL,
    INITIAL_INPUT_LABEL,
    CardNotFoundError,
    InputKindError,
    LastInputCardError,
    RecordAlreadyResolvedError,
    SchemaTextInvalidError,
    Workspace,
    WorkspaceError,
)

__all__ = [
    "Workspace",
    "INITIAL_INPUT_LABEL",
    "INITIAL_GENERATOR_LABEL",
    # Errors
    "WorkspaceError",
    "CardNotFoundError",
    "LastInputCardError",
    "InputKindError",
    "SchemaTextInvalidError",
    "RecordAlreadyResolvedError",
]
