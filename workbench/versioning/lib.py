"""Commit/switch/revert versioning for editable entities.

A :class:`VersionedEntity` owns one mutable working draft and an
append-only list of immutable snapshots numbered from 1. It is pinned either
to one snapshot or to the working state (``current_version is None``); it is
dirty when working, or when the draft differs from the pinned snapshot.

Drafts are pydantic models. Edits replace the draft with a validated copy,
so stored snapshots are never touched.

Example:
    >>> entity = VersionedEntity(StringInput(label="a", data="x"))
    >>> entity.edit(data="y")
    >>> entity.has_unsaved_changes
    True
    >>> entity.commit()
    2
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

FIRST_VERSION = 1


class VersioningError(Exception):
    """Base error for version operations."""


class VersionNotFoundError(VersioningError):
    """Raised when switching to a version that was never committed."""

    def __init__(self, version: int, available: list[int]):
        self.version = version
        self.available = available
        super().__init__(f"Version {version} does not exist (available: {available})")


@dataclass(frozen=True)
class Snapshot(Generic[T]):
    """Immutable numbered copy of a draft."""

    version: int
    content: T
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


def _content_key(model: BaseModel) -> Any:
    return model.model_dump(mode="json")


class VersionedEntity(Generic[T]):
    """Working draft plus committed snapshots.

    Created with version 1 mirroring the initial draft and no unsaved
    changes.
    """

    def __init__(self, draft: T):
        self._draft = draft
        self._versions: list[Snapshot[T]] = [
            Snapshot(FIRST_VERSION, draft.model_copy(deep=True))
        ]
        self._current_version: int | None = FIRST_VERSION

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def draft(self) -> T:
        return self._draft

    @property
    def versions(self) -> tuple[Snapshot[T], ...]:
        return tuple(self._versions)

    @property
    def current_version(self) -> int | None:
        """Pinned version number, or None while on the working draft."""
        return self._current_version

    @property
    def is_working(self) -> bool:
        return self._current_version is None

    @property
    def latest_version(self) -> int:
        return max(snapshot.version for snapshot in self._versions)

    @property
    def has_unsaved_changes(self) -> bool:
        if self._current_version is None:
            return True
        pinned = self.get_version(self._current_version)
        return _content_key(self._draft) != _content_key(pinned.content)

    def get_version(self, version: int) -> Snapshot[T]:
        """Return snapshot ``version``.

        Raises:
            VersionNotFoundError: If no such version was committed.
        """
        for snapshot in self._versions:
            if snapshot.version == version:
                return snapshot
        raise VersionNotFoundError(version, [s.version for s in self._versions])

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def edit(self, **changes: Any) -> T:
        """Apply field changes to the draft.

        The pinned version does not change; the entity simply becomes dirty
        when the result differs from it.

        Raises:
            ValueError: If a change names a field the draft does not have.
            pydantic.ValidationError: If the changes produce an invalid draft.
        """
        draft_type = type(self._draft)
        unknown = sorted(set(changes) - set(draft_type.model_fields))
        if unknown:
            names = ", ".join(unknown)
            raise ValueError(f"Unknown {draft_type.__name__} field(s): {names}")
        data = {**self._draft.model_dump(), **changes}
        self._draft = draft_type.model_validate(data)
        return self._draft

    def replace_draft(self, draft: T) -> T:
        """Swap in a whole new draft of the same type."""
        if not isinstance(draft, type(self._draft)):
            raise TypeError(
                f"Expected {type(self._draft).__name__}, got {type(draft).__name__}"
            )
        self._draft = draft
        return self._draft

    def commit(self) -> int:
        """Snapshot the draft as ``latest_version + 1`` and pin to it."""
        version = self.latest_version + 1
        self._versions.append(Snapshot(version, self._draft.model_copy(deep=True)))
        self._current_version = version
        logger.debug(f"Committed version {version}")
        return version

    def ensure_committed(self) -> int:
        """Commit pending changes, or reuse the pinned version when clean."""
        if self.has_unsaved_changes:
            return self.commit()
        return self._current_version

    def switch_to_version(self, version: int) -> T:
        """Load snapshot ``version`` into the draft, discarding edits.

        Raises:
            VersionNotFoundError: If no such version was committed.
        """
        snapshot = self.get_version(version)
        self._draft = snapshot.content.model_copy(deep=True)
        self._current_version = version
        return self._draft

    def switch_to_working(self) -> None:
        """Unpin from any version, keeping the draft as is."""
        self._current_version = None

    def revert_to_latest(self) -> T:
        return self.switch_to_version(self.latest_version)


__all__ = [
    "FIRST_VERSION",
    "Snapshot",
    "VersionedEntity",
    "VersioningError",
    "VersionNotFoundError",
]
