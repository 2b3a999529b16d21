"""Draft/snapshot versioning for workbench cards."""

from workbench.versioning.lib import (
    FIRST_VERSION,
    Snapshot,
    VersionedEntity,
    VersioningError,
    VersionNotFoundError,
)

__all__ = [
    "FIRST_VERSION",
    "Snapshot",
    "VersionedEntity",
    "VersioningError",
    "VersionNotFoundError",
]
