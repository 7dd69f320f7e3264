"""Unit tests for the read-only local backend."""

import pytest

from cmsctl.backends import LocalBackend, RemoteBackend, create_backend
from cmsctl.backends.codec import encode_document, git_blob_sha
from cmsctl.config import Profile
from cmsctl.exceptions import NotFoundError, UnsupportedOperationError, ValidationFailedError
from cmsctl.models import Category


@pytest.fixture
def content_root(tmp_path):
    """A content tree with two pages and one theme."""
    pages = tmp_path / "pages"
    pages.mkdir()
    (pages / "home.json").write_bytes(encode_document({"title": "Home"}))
    (pages / "about.json").write_bytes(encode_document({"title": "About"}))
    (pages / "notes.txt").write_text("ignored")
    themes = tmp_path / "themes"
    themes.mkdir()
    (themes / "dark.json").write_text('{"name": "Dark", "isActive": true}')
    return tmp_path


@pytest.fixture
def local(content_root):
    return LocalBackend(content_root)


class TestLocalBackend:
    """Test cases for LocalBackend."""

    def test_list_sorted_by_id(self, local):
        entries = local.list(Category.PAGE)

        assert [entry.id for entry in entries] == ["about", "home"]
        assert entries[0].revision == git_blob_sha(encode_document({"title": "About"}))

    def test_list_missing_directory(self, local):
        assert local.list(Category.LAYOUT) == []

    def test_read(self, local):
        stored = local.read(Category.THEME, "dark")

        assert stored.body == {"name": "Dark", "isActive": True}

    def test_revision_is_git_blob_sha(self, local, content_root):
        raw = (content_root / "themes" / "dark.json").read_bytes()

        assert local.read(Category.THEME, "dark").revision == git_blob_sha(raw)

    def test_revision_matches_listing(self, local):
        entry = local.list(Category.PAGE)[0]

        assert local.read(Category.PAGE, entry.id).revision == entry.revision

    def test_read_missing(self, local):
        with pytest.raises(NotFoundError):
            local.read(Category.PAGE, "missing")

    def test_read_invalid_json(self, local, content_root):
        (content_root / "pages" / "broken.json").write_text("{oops")

        with pytest.raises(ValidationFailedError) as exc_info:
            local.read(Category.PAGE, "broken")

        assert "broken.json" in str(exc_info.value)

    def test_read_non_object(self, local, content_root):
        (content_root / "pages" / "list.json").write_text("[]")

        with pytest.raises(ValidationFailedError):
            local.read(Category.PAGE, "list")

    def test_write_refused(self, local, content_root):
        with pytest.raises(UnsupportedOperationError):
            local.write(Category.PAGE, "new", {"title": "New"})

        assert not (content_root / "pages" / "new.json").exists()

    def test_delete_refused(self, local, content_root):
        with pytest.raises(UnsupportedOperationError):
            local.delete(Category.PAGE, "home", "rev")

        assert (content_root / "pages" / "home.json").exists()


class TestCreateBackend:
    """Backend selection from a profile."""

    def test_remote_by_default(self):
        profile = Profile(name="default", owner="acme", repo="site")

        assert isinstance(create_backend(profile), RemoteBackend)

    def test_local_mode_uses_local_root(self, tmp_path):
        profile = Profile(name="default", owner="acme", repo="site", local_mode=True, local_root=str(tmp_path))

        backend = create_backend(profile)

        assert isinstance(backend, LocalBackend)
        assert backend.root == tmp_path

    def test_override_forces_local(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        profile = Profile(name="default", owner="acme", repo="site", content_root="site/content")

        backend = create_backend(profile, local_mode=True)

        assert isinstance(backend, LocalBackend)
        assert backend.root == tmp_path / "site" / "content"

    def test_override_forces_remote(self, tmp_path):
        profile = Profile(name="default", owner="acme", repo="site", local_mode=True, local_root=str(tmp_path))

        assert isinstance(create_backend(profile, local_mode=False), RemoteBackend)
