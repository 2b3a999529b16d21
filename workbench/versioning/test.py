"""Unit tests for draft/snapshot versioning."""

import pytest
from pydantic import BaseModel, ConfigDict, ValidationError

from workbench.versioning import FIRST_VERSION, VersionedEntity, VersionNotFoundError


class Note(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    body: str = ""
    tags: list[str] = []


@pytest.fixture
def entity() -> VersionedEntity[Note]:
    return VersionedEntity(Note(label="first", body="hello"))


class TestInitialState:
    """A new entity mirrors its draft as version 1."""

    @pytest.mark.unit
    def test_starts_at_version_one(self, entity):
        assert entity.current_version == FIRST_VERSION
        assert [s.version for s in entity.versions] == [1]
        assert entity.versions[0].content == entity.draft

    @pytest.mark.unit
    def test_starts_clean(self, entity):
        assert not entity.has_unsaved_changes
        assert not entity.is_working


class TestEdit:
    """Edits touch only the draft."""

    @pytest.mark.unit
    def test_edit_marks_dirty(self, entity):
        entity.edit(body="changed")
        assert entity.has_unsaved_changes
        assert entity.current_version == 1

    @pytest.mark.unit
    def test_edit_back_to_snapshot_is_clean(self, entity):
        entity.edit(body="changed")
        entity.edit(body="hello")
        assert not entity.has_unsaved_changes

    @pytest.mark.unit
    def test_snapshots_not_mutated(self, entity):
        entity.edit(body="changed", tags=["x"])
        assert entity.get_version(1).content.body == "hello"
        assert entity.get_version(1).content.tags == []

    @pytest.mark.unit
    def test_invalid_edit_rejected(self, entity):
        with pytest.raises(ValidationError):
            entity.edit(label=None)
        assert entity.draft.label == "first"

    @pytest.mark.unit
    def test_unknown_field_rejected(self, entity):
        with pytest.raises(ValueError, match=r"Unknown Note field\(s\): colour"):
            entity.edit(body="changed", colour="red")
        assert entity.draft.body == "hello"
        assert not entity.has_unsaved_changes

    @pytest.mark.unit
    def test_replace_draft_type_checked(self, entity):
        with pytest.raises(TypeError):
            entity.replace_draft("not a note")


class TestCommit:
    """Commits append monotonically numbered snapshots."""

    @pytest.mark.unit
    def test_commit_numbers_have_no_gaps(self, entity):
        numbers = []
        for i in range(5):
            entity.edit(body=f"v{i}")
            numbers.append(entity.commit())
        assert numbers == [2, 3, 4, 5, 6]
        assert len(entity.versions) == 6

    @pytest.mark.unit
    def test_commit_without_changes_still_appends(self, entity):
        assert entity.commit() == 2
        assert entity.commit() == 3

    @pytest.mark.unit
    def test_commit_clears_dirty(self, entity):
        entity.edit(body="changed")
        entity.commit()
        assert not entity.has_unsaved_changes
        assert entity.current_version == 2

    @pytest.mark.unit
    def test_commit_after_switching_back_uses_max(self, entity):
        entity.commit()
        entity.commit()
        entity.switch_to_version(1)
        assert entity.commit() == 4

    @pytest.mark.unit
    def test_ensure_committed_reuses_clean_version(self, entity):
        assert entity.ensure_committed() == 1
        entity.edit(body="changed")
        assert entity.ensure_committed() == 2
        assert entity.ensure_committed() == 2


class TestSwitching:
    """Switching between versions and the working draft."""

    @pytest.mark.unit
    def test_switch_to_version_loads_snapshot(self, entity):
        entity.edit(body="second")
        entity.commit()
        entity.switch_to_version(1)
        assert entity.draft.body == "hello"
        assert entity.current_version == 1
        assert not entity.has_unsaved_changes

    @pytest.mark.unit
    def test_switch_discards_uncommitted_edits(self, entity):
        entity.edit(body="scratch")
        entity.switch_to_version(1)
        assert entity.draft.body == "hello"

    @pytest.mark.unit
    def test_edit_after_switch_is_dirty(self, entity):
        entity.commit()
        entity.switch_to_version(1)
        assert not entity.has_unsaved_changes
        entity.edit(label="other")
        assert entity.has_unsaved_changes

    @pytest.mark.unit
    def test_unknown_version(self, entity):
        with pytest.raises(VersionNotFoundError) as exc:
            entity.switch_to_version(7)
        assert exc.value.available == [1]
        assert entity.current_version == 1

    @pytest.mark.unit
    def test_switch_to_working_keeps_draft_and_is_dirty(self, entity):
        entity.edit(body="wip")
        entity.switch_to_working()
        assert entity.is_working
        assert entity.current_version is None
        assert entity.draft.body == "wip"
        assert entity.has_unsaved_changes

    @pytest.mark.unit
    def test_working_is_dirty_even_without_edits(self, entity):
        entity.switch_to_working()
        assert entity.has_unsaved_changes

    @pytest.mark.unit
    def test_revert_to_latest(self, entity):
        entity.edit(body="two")
        entity.commit()
        entity.edit(body="three")
        entity.commit()
        entity.switch_to_version(1)
        entity.edit(body="scratch")
        entity.revert_to_latest()
        assert entity.current_version == 3
        assert entity.draft.body == "three"
