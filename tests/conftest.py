"""Shared fixtures for the cmsctl test suite.

Provides an in-memory, revisioned backend with failure injection, a
deterministic clock and sample document bodies for every category.
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import pytest

from cmsctl.backends.base import Backend
from cmsctl.backends.codec import encode_document, git_blob_sha
from cmsctl.drafts import DraftOverlay, MemoryDraftStorage
from cmsctl.exceptions import AlreadyExistsError, ConflictError, NotFoundError
from cmsctl.models import Category, ListingEntry, StoredDocument
from cmsctl.repository import ContentRepository


class FakeBackend(Backend):
    """Backend keeping documents in a dict, with git-style revisions.

    ``fail(operation, error, doc_id=None, times=1)`` makes the next matching
    calls raise ``error`` instead of touching the store.
    """

    mode = "fake"

    def __init__(self) -> None:
        super().__init__()
        self.documents: Dict[Tuple[Category, str], Dict[str, Any]] = {}
        self.calls: List[Tuple[str, Category, Optional[str]]] = []
        self._failures: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def fail(self, operation: str, error: Exception, doc_id: Optional[str] = None, times: int = 1) -> None:
        self._failures.append({"operation": operation, "error": error, "doc_id": doc_id, "times": times})

    def _maybe_fail(self, operation: str, doc_id: Optional[str]) -> None:
        for failure in self._failures:
            if failure["operation"] != operation or failure["times"] <= 0:
                continue
            if failure["doc_id"] is not None and failure["doc_id"] != doc_id:
                continue
            failure["times"] -= 1
            raise failure["error"]

    @staticmethod
    def revision_of(body: Dict[str, Any]) -> str:
        return git_blob_sha(encode_document(body))

    def seed(self, category: Category, doc_id: str, body: Dict[str, Any]) -> str:
        """Store a document directly, bypassing validation."""
        self.documents[(category, doc_id)] = dict(body)
        return self.revision_of(body)

    def stored(self, category: Category, doc_id: str) -> Dict[str, Any]:
        return self.documents[(category, doc_id)]

    def list(self, category: Category, token: Optional[str] = None) -> List[ListingEntry]:
        with self._lock:
            self.calls.append(("list", category, None))
            self._maybe_fail("list", None)
            return [
                ListingEntry(id=doc_id, revision=self.revision_of(body), location=f"{category.directory}/{doc_id}.json")
                for (cat, doc_id), body in sorted(self.documents.items(), key=lambda item: item[0][1])
                if cat is category
            ]

    def read(self, category: Category, doc_id: str, token: Optional[str] = None) -> StoredDocument:
        with self._lock:
            self.calls.append(("read", category, doc_id))
            self._maybe_fail("read", doc_id)
            body = self.documents.get((category, doc_id))
            if body is None:
                raise NotFoundError(f"{category.value} '{doc_id}' not found")
            return StoredDocument(body=dict(body), revision=self.revision_of(body))

    def write(
        self,
        category: Category,
        doc_id: str,
        body: Dict[str, Any],
        revision: Optional[str] = None,
        token: Optional[str] = None,
        message: Optional[str] = None,
    ) -> str:
        with self._lock:
            self.calls.append(("write", category, doc_id))
            self._maybe_fail("write", doc_id)
            current = self.documents.get((category, doc_id))
            if revision is None:
                if current is not None:
                    raise AlreadyExistsError(f"{category.value} '{doc_id}' already exists")
            else:
                if current is None:
                    raise NotFoundError(f"{category.value} '{doc_id}' not found")
                if self.revision_of(current) != revision:
                    raise ConflictError(f"{category.value} '{doc_id}' changed")
            self.documents[(category, doc_id)] = dict(body)
            return self.revision_of(body)

    def delete(
        self,
        category: Category,
        doc_id: str,
        revision: str,
        token: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        with self._lock:
            self.calls.append(("delete", category, doc_id))
            self._maybe_fail("delete", doc_id)
            current = self.documents.get((category, doc_id))
            if current is None:
                raise NotFoundError(f"{category.value} '{doc_id}' not found")
            if self.revision_of(current) != revision:
                raise ConflictError(f"{category.value} '{doc_id}' changed")
            del self.documents[(category, doc_id)]


class FakeClock:
    """Clock that moves one second forward on every call."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


def theme_body(name: str, active: bool = False) -> Dict[str, Any]:
    return {
        "name": name,
        "description": f"{name} theme",
        "colors": {
            "primary": "#1a73e8",
            "secondary": "#5f6368",
            "background": "#ffffff",
            "text": "#202124",
        },
        "fonts": {"heading": "Inter", "body": "Inter"},
        "isActive": active,
    }


def page_body(title: str = "About Us", **extra: Any) -> Dict[str, Any]:
    body = {"title": title, "status": "draft", "sections": []}
    body.update(extra)
    return body


def layout_body(name: str = "Default Layout") -> Dict[str, Any]:
    return {
        "name": name,
        "description": "Standard header and footer",
        "header": {"showNavigation": True, "navigationStyle": "default"},
        "footer": {"showFooter": True},
    }


def navigation_body(name: str = "Main Menu") -> Dict[str, Any]:
    return {
        "name": name,
        "items": [
            {"id": "home", "label": "Home", "href": "/", "order": 0},
            {
                "id": "about",
                "label": "About",
                "href": "/about",
                "order": 1,
                "children": [{"id": "team", "label": "Team", "href": "/about/team"}],
            },
        ],
    }


def component_body(name: str = "Hero Banner") -> Dict[str, Any]:
    return {
        "name": name,
        "type": "primitive",
        "fields": [
            {"name": "heading", "label": "Heading", "type": "string", "required": True},
            {"name": "image", "label": "Image", "type": "string"},
        ],
    }


@pytest.fixture
def backend():
    """Empty in-memory backend."""
    return FakeBackend()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def drafts():
    """In-memory draft overlay."""
    return DraftOverlay(MemoryDraftStorage(), clock=iter(range(1000, 100000)).__next__)


@pytest.fixture
def repository(backend, drafts, clock):
    """Repository over the fake backend with drafts enabled."""
    return ContentRepository(backend, drafts=drafts, clock=clock, max_workers=4)


@pytest.fixture
def make_theme():
    """Factory for valid theme bodies."""
    return theme_body


@pytest.fixture
def make_page():
    """Factory for valid page bodies."""
    return page_body


@pytest.fixture
def sample_bodies():
    """One valid body per category."""
    return {
        Category.PAGE: page_body(),
        Category.LAYOUT: layout_body(),
        Category.THEME: theme_body("Light"),
        Category.NAVIGATION: navigation_body(),
        Category.COMPONENT_SCHEMA: component_body(),
    }
