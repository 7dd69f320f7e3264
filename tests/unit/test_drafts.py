"""Unit tests for the draft overlay and its storages."""

import json

import pytest

from cmsctl.drafts import (
    DRAFT_VERSION,
    DraftOverlay,
    JsonFileDraftStorage,
    MemoryDraftStorage,
    draft_key,
)
from cmsctl.exceptions import ConfigError
from cmsctl.models import Category


@pytest.fixture
def overlay():
    return DraftOverlay(MemoryDraftStorage(), clock=iter(range(100, 10000)).__next__)


class TestDraftOverlay:
    """Test cases for DraftOverlay."""

    def test_key_format(self):
        assert draft_key(Category.PAGE, "about") == "page:about"
        assert draft_key("components", "hero") == "component-schema:hero"

    def test_save_and_load(self, overlay):
        metadata = overlay.save_draft(Category.PAGE, "about", {"title": "Draft"})

        assert metadata.key == "page:about"
        assert metadata.timestamp == 100
        assert metadata.version == DRAFT_VERSION
        assert overlay.load_draft(Category.PAGE, "about") == {"title": "Draft"}
        assert overlay.has_draft(Category.PAGE, "about") is True

    def test_save_overwrites(self, overlay):
        overlay.save_draft(Category.PAGE, "about", {"title": "First"})
        overlay.save_draft(Category.PAGE, "about", {"title": "Second"})

        assert overlay.load_draft(Category.PAGE, "about") == {"title": "Second"}
        assert len(overlay.list_drafts()) == 1

    def test_load_missing(self, overlay):
        assert overlay.load_draft(Category.PAGE, "missing") is None
        assert overlay.has_draft(Category.PAGE, "missing") is False

    def test_same_id_in_different_categories(self, overlay):
        overlay.save_draft(Category.PAGE, "main", {"title": "Page"})
        overlay.save_draft(Category.NAVIGATION, "main", {"name": "Menu"})

        assert overlay.load_draft(Category.PAGE, "main") == {"title": "Page"}
        assert overlay.load_draft(Category.NAVIGATION, "main") == {"name": "Menu"}

    def test_clear_draft(self, overlay):
        overlay.save_draft(Category.PAGE, "about", {"title": "Draft"})

        overlay.clear_draft(Category.PAGE, "about")
        overlay.clear_draft(Category.PAGE, "about")

        assert overlay.load_draft(Category.PAGE, "about") is None

    def test_list_most_recent_first(self, overlay):
        overlay.save_draft(Category.PAGE, "old", {"title": "Old"})
        overlay.save_draft(Category.THEME, "mid", {"name": "Mid"})
        overlay.save_draft(Category.PAGE, "new", {"title": "New"})

        assert [metadata.id for metadata in overlay.list_drafts()] == ["new", "mid", "old"]

    def test_version_mismatch_discarded(self, overlay):
        stale = {
            "metadata": {"key": "page:about", "category": "page", "id": "about", "timestamp": 1, "version": 0},
            "body": {"title": "Stale"},
        }
        overlay.storage.set("page:about", json.dumps(stale))

        assert overlay.load_draft(Category.PAGE, "about") is None
        assert overlay.storage.get("page:about") is None

    def test_unreadable_envelope_ignored(self, overlay):
        overlay.storage.set("page:broken", "{not json")

        assert overlay.load_draft(Category.PAGE, "broken") is None
        assert overlay.list_drafts() == []
        assert overlay.storage.get("page:broken") == "{not json"

    def test_clear_all(self, overlay):
        overlay.save_draft(Category.PAGE, "a", {"title": "A"})
        overlay.save_draft(Category.PAGE, "b", {"title": "B"})

        overlay.clear_all_drafts()

        assert overlay.list_drafts() == []


class TestJsonFileDraftStorage:
    """Test cases for the file-backed storage."""

    def test_round_trip_across_instances(self, tmp_path):
        path = tmp_path / "drafts.json"
        DraftOverlay(JsonFileDraftStorage(path)).save_draft(Category.THEME, "dark", {"name": "Dark"})

        reopened = DraftOverlay(JsonFileDraftStorage(path))

        assert reopened.load_draft(Category.THEME, "dark") == {"name": "Dark"}

    def test_missing_file_is_empty(self, tmp_path):
        storage = JsonFileDraftStorage(tmp_path / "nested" / "drafts.json")

        assert storage.keys() == []
        assert storage.get("page:about") is None

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "drafts.json"
        storage = JsonFileDraftStorage(path)

        storage.set("page:about", "value")

        assert json.loads(path.read_text()) == {"page:about": "value"}
        assert [p.name for p in path.parent.iterdir()] == ["drafts.json"]

    def test_delete(self, tmp_path):
        storage = JsonFileDraftStorage(tmp_path / "drafts.json")
        storage.set("a", "1")
        storage.set("b", "2")

        storage.delete("a")
        storage.delete("missing")

        assert storage.keys() == ["b"]

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "drafts.json"
        path.write_text("[1, 2")

        with pytest.raises(ConfigError):
            JsonFileDraftStorage(path).keys()

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "drafts.json"
        path.write_text("[]")

        with pytest.raises(ConfigError):
            JsonFileDraftStorage(path).get("page:about")
