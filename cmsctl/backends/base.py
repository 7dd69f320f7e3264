"""Backend adapter interface.

A backend stores one JSON document per ``(category, id)`` and hands out
an opaque revision marker for the exact stored bytes. Every mutating call
is conditioned on the caller's last-known revision.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from rich.console import Console

from ..models import Category, ListingEntry, StoredDocument


class Backend(ABC):
    """Capability set shared by the local and remote adapters."""

    #: Short name shown in debug output and listings.
    mode = "abstract"

    def __init__(self, debug: bool = False, console: Optional[Console] = None) -> None:
        self.debug = debug
        self.console = console or Console(stderr=True)

    def _debug(self, message: str) -> None:
        if self.debug:
            self.console.print(f"[dim][DEBUG] {self.mode}: {message}[/dim]", highlight=False)

    @abstractmethod
    def list(self, category: Category, token: Optional[str] = None) -> List[ListingEntry]:
        """List documents in a category in a stable order.

        An empty or missing category directory yields an empty list.
        """

    @abstractmethod
    def read(self, category: Category, doc_id: str, token: Optional[str] = None) -> StoredDocument:
        """Read one document.

        Raises:
            NotFoundError: If the document does not exist
        """

    @abstractmethod
    def write(
        self,
        category: Category,
        doc_id: str,
        body: Dict[str, Any],
        revision: Optional[str] = None,
        token: Optional[str] = None,
        message: Optional[str] = None,
    ) -> str:
        """Create (no revision) or conditionally update a document.

        Returns:
            The new revision marker

        Raises:
            AlreadyExistsError: If creating and the id is taken
            ConflictError: If updating and the stored revision differs
        """

    @abstractmethod
    def delete(
        self,
        category: Category,
        doc_id: str,
        revision: str,
        token: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        """Conditionally delete a document.

        Raises:
            NotFoundError: If the document is already gone
            ConflictError: If the stored revision differs
        """

    def describe(self) -> Dict[str, Any]:
        """Connection details for display."""
        return {"mode": self.mode}
