"""Read-only backend over a local content tree.

Used during development: the local checkout is not the system of record,
so writes and deletes are refused.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from rich.console import Console

from ..exceptions import NotFoundError, UnsupportedOperationError, ValidationFailedError
from ..models import Category, ListingEntry, StoredDocument
from .base import Backend
from .codec import decode_document, git_blob_sha


class LocalBackend(Backend):
    """Backend reading ``<root>/<category-dir>/<id>.json`` files."""

    mode = "local"

    def __init__(
        self,
        root: Union[str, Path],
        debug: bool = False,
        console: Optional[Console] = None,
    ) -> None:
        """Initialize the local backend.

        Args:
            root: Directory holding the category directories
            debug: Print debug output
            console: Console for debug output
        """
        super().__init__(debug=debug, console=console)
        self.root = Path(root)

    def _path(self, category: Category, doc_id: str) -> Path:
        return self.root / category.directory / f"{doc_id}.json"

    def list(self, category: Category, token: Optional[str] = None) -> List[ListingEntry]:
        directory = self.root / category.directory
        self._debug(f"list {directory}")

        if not directory.is_dir():
            return []

        entries = []
        for path in sorted(directory.glob("*.json")):
            if not path.is_file():
                continue
            entries.append(
                ListingEntry(
                    id=path.stem,
                    revision=git_blob_sha(path.read_bytes()),
                    location=str(path),
                )
            )

        return entries

    def read(self, category: Category, doc_id: str, token: Optional[str] = None) -> StoredDocument:
        path = self._path(category, doc_id)
        self._debug(f"read {path}")

        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            raise NotFoundError(
                f"{category.value} '{doc_id}' not found",
                details={"path": str(path)},
            )

        try:
            body = decode_document(raw)
        except ValueError as e:
            raise ValidationFailedError(
                f"Invalid JSON in {path}: {e}",
                validation_errors=[str(e)],
                details={"path": str(path)},
            )

        return StoredDocument(body=body, revision=git_blob_sha(raw))

    def write(
        self,
        category: Category,
        doc_id: str,
        body: Dict[str, Any],
        revision: Optional[str] = None,
        token: Optional[str] = None,
        message: Optional[str] = None,
    ) -> str:
        raise UnsupportedOperationError(
            "Local mode is read-only; publish through the remote repository",
            details={"operation": "write", "category": category.value, "id": doc_id},
        )

    def delete(
        self,
        category: Category,
        doc_id: str,
        revision: str,
        token: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        raise UnsupportedOperationError(
            "Local mode is read-only; delete through the remote repository",
            details={"operation": "delete", "category": category.value, "id": doc_id},
        )

    def describe(self) -> Dict[str, Any]:
        return {"mode": self.mode, "root": str(self.root)}
