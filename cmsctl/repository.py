"""Content repository facade.

This module exposes the typed document operations editors call: list,
get, create, update and remove per category, plus theme activation. It
sits on top of exactly one backend, chosen when the repository is built,
and optionally a draft overlay whose unpublished bodies take precedence
on reads.

Invariants owned here:
    - Every update and delete carries the revision of the caller's last read.
    - At most one theme is active. Only ``activate_theme`` switches themes on,
      and ``remove`` refuses to delete the active theme. Zero active themes is
      a valid, degraded state.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from rich.console import Console

from .backends import Backend, create_backend
from .config import Profile
from .drafts import DraftOverlay
from .exceptions import (
    CmsError,
    NotFoundError,
    PartialActivationFailure,
    PrecludedByInvariantError,
    ValidationFailedError,
)
from .models import (
    CREATED_AT_KEY,
    TIMESTAMP_KEYS,
    Category,
    Document,
    DocumentSummary,
    ListingEntry,
    pop_timestamp,
    validate_body,
)
from .utils.slug import is_slug, slugify

ReadResult = Tuple[ListingEntry, Union[Document, CmsError]]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC timestamp with millisecond precision, ``Z`` suffixed."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ContentRepository:
    """Backend-agnostic access to the content documents."""

    def __init__(
        self,
        backend: Backend,
        drafts: Optional[DraftOverlay] = None,
        clock: Optional[Callable[[], datetime]] = None,
        max_workers: int = 8,
        debug: bool = False,
        console: Optional[Console] = None,
    ) -> None:
        """Initialize the repository.

        Args:
            backend: Storage backend every operation goes through
            drafts: Draft overlay consulted on reads and cleared on publish
            clock: Time source for createdAt/updatedAt
            max_workers: Parallel document reads when listing
            debug: Print debug output
            console: Console for debug output
        """
        self.backend = backend
        self.drafts = drafts
        self._clock = clock or _utc_now
        self.max_workers = max_workers
        self.debug = debug
        self.console = console or Console(stderr=True)

    @classmethod
    def from_profile(
        cls,
        profile: Profile,
        drafts: Optional[DraftOverlay] = None,
        debug: bool = False,
        console: Optional[Console] = None,
        local_mode: Optional[bool] = None,
    ) -> "ContentRepository":
        """Build a repository over the backend a profile selects."""
        backend = create_backend(profile, debug=debug, console=console, local_mode=local_mode)
        return cls(
            backend,
            drafts=drafts,
            max_workers=profile.max_workers,
            debug=debug,
            console=console,
        )

    def _debug(self, message: str) -> None:
        if self.debug:
            self.console.print(f"[dim][DEBUG] repository: {message}[/dim]", highlight=False)

    def _now(self) -> str:
        return format_timestamp(self._clock())

    # Reads

    def _read(self, category: Category, doc_id: str, token: Optional[str]) -> Document:
        stored = self.backend.read(category, doc_id, token=token)
        return Document.from_stored(category, doc_id, stored)

    def _read_all(self, category: Category, token: Optional[str]) -> List[ReadResult]:
        """List a category, then read every document in parallel.

        Results keep the listing order. Failed reads are returned in place
        of the document.
        """
        entries = self.backend.list(category, token=token)
        if not entries:
            return []

        def read_one(entry: ListingEntry) -> ReadResult:
            try:
                return entry, self._read(category, entry.id, token)
            except CmsError as e:
                return entry, e

        workers = max(1, min(self.max_workers, len(entries)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(read_one, entries))

    def _has_draft(self, category: Category, doc_id: str) -> bool:
        return self.drafts is not None and self.drafts.has_draft(category, doc_id)

    def list(self, category: Union[Category, str], token: Optional[str] = None) -> List[DocumentSummary]:
        """Summaries of every document in a category.

        A document that cannot be read is listed with its id and the error
        instead of failing the whole listing.
        """
        category = Category.parse(category)
        summaries = []

        for entry, result in self._read_all(category, token):
            if isinstance(result, CmsError):
                self._debug(f"could not read {category.value} '{entry.id}': {result}")
                summary = DocumentSummary(
                    category=category,
                    id=entry.id,
                    error=str(result),
                )
            else:
                summary = DocumentSummary.from_document(result)

            summary.has_draft = self._has_draft(category, entry.id)
            summaries.append(summary)

        return summaries

    def get(
        self,
        category: Union[Category, str],
        doc_id: str,
        token: Optional[str] = None,
        use_draft: bool = True,
    ) -> Document:
        """Read a document, preferring an unpublished draft body.

        The returned revision is always the published one, so the result can
        be passed straight to ``update``. A draft for a document that was
        never published comes back with ``revision=None``.

        Raises:
            NotFoundError: If neither a published document nor a draft exists
        """
        category = Category.parse(category)
        draft_body = None
        if use_draft and self.drafts is not None:
            draft_body = self.drafts.load_draft(category, doc_id)

        try:
            document = self._read(category, doc_id, token)
        except NotFoundError:
            if draft_body is None:
                raise
            return Document(category=category, id=doc_id, body=draft_body, has_draft=True)

        if draft_body is not None:
            document = document.model_copy(update={"body": draft_body, "has_draft": True})
        return document

    def get_active_theme(self, token: Optional[str] = None) -> Optional[Document]:
        """The active theme, or None when no theme is active."""
        active = self._active_themes(token)
        return active[0] if active else None

    def _active_themes(self, token: Optional[str]) -> List[Document]:
        active = []
        for entry, result in self._read_all(Category.THEME, token):
            # Any unreadable theme might be the active one
            if isinstance(result, CmsError):
                raise result
            if result.is_active:
                active.append(result)
        return active

    # Writes

    @staticmethod
    def _strip_timestamps(body: Dict[str, Any]) -> Dict[str, Any]:
        clean = dict(body)
        for key in TIMESTAMP_KEYS:
            clean.pop(key, None)
        return clean

    @staticmethod
    def _check_id(doc_id: str, source: str) -> str:
        if not isinstance(doc_id, str) or not is_slug(doc_id):
            raise ValidationFailedError(
                f"Invalid document id {doc_id!r} from {source}",
                validation_errors=["id must be lowercase letters, digits and single hyphens"],
            )
        return doc_id

    def derive_id(self, category: Category, body: Dict[str, Any], doc_id: Optional[str] = None) -> str:
        """Work out the id a new document is stored under.

        Uses, in order: the explicit id, the body's ``id``, a page's
        ``slug``, then the slugified human name (``title`` for pages,
        ``name`` otherwise).
        """
        body_id = body.get("id")
        if doc_id is not None:
            self._check_id(doc_id, "argument")
            if body_id is not None and body_id != doc_id:
                raise ValidationFailedError(
                    f"Body id '{body_id}' does not match document id '{doc_id}'",
                    validation_errors=["id: does not match the document id"],
                )
            return doc_id

        if body_id is not None:
            return self._check_id(body_id, "body id")

        if category is Category.PAGE and body.get("slug"):
            return self._check_id(body["slug"], "page slug")

        name = body.get(category.name_field)
        derived = slugify(name) if isinstance(name, str) else ""
        if not derived:
            raise ValidationFailedError(
                f"Cannot derive an id for the {category.value}: '{category.name_field}' has no letters or digits",
                validation_errors=[f"{category.name_field}: required to derive an id"],
            )
        return derived

    def _ensure_no_active_theme(self, token: Optional[str], except_id: Optional[str] = None) -> None:
        active = [theme.id for theme in self._active_themes(token) if theme.id != except_id]
        if active:
            raise PrecludedByInvariantError(
                f"Theme '{active[0]}' is already active; use activate_theme to switch themes",
                details={"active_theme": active[0]},
            )

    def create(
        self,
        category: Union[Category, str],
        body: Dict[str, Any],
        doc_id: Optional[str] = None,
        token: Optional[str] = None,
        message: Optional[str] = None,
    ) -> Document:
        """Create a new document.

        Caller-supplied createdAt/updatedAt values are discarded; both are
        set to the current time.

        Raises:
            ValidationFailedError: If the body is invalid or no id can be derived
            AlreadyExistsError: If the id is taken
            PrecludedByInvariantError: If creating an active theme while another is active
        """
        category = Category.parse(category)
        clean = self._strip_timestamps(body)
        validate_body(category, clean)
        doc_id = self.derive_id(category, clean, doc_id)

        if category is Category.THEME and clean.get("isActive") is True:
            self._ensure_no_active_theme(token)

        now = self._now()
        document = Document(category=category, id=doc_id, body=clean, created_at=now, updated_at=now)
        revision = self.backend.write(
            category, doc_id, document.to_stored_body(), revision=None, token=token, message=message
        )
        self._debug(f"created {category.value} '{doc_id}' at {revision[:7]}")

        if self.drafts is not None:
            self.drafts.clear_draft(category, doc_id)

        return document.model_copy(update={"revision": revision})

    def _write_update(
        self,
        category: Category,
        doc_id: str,
        body: Dict[str, Any],
        revision: str,
        token: Optional[str],
        created_at: Optional[str],
        message: Optional[str] = None,
    ) -> Document:
        document = Document(
            category=category,
            id=doc_id,
            body=body,
            created_at=created_at,
            updated_at=self._now(),
        )
        new_revision = self.backend.write(
            category, doc_id, document.to_stored_body(), revision=revision, token=token, message=message
        )
        self._debug(f"updated {category.value} '{doc_id}' {revision[:7]} -> {new_revision[:7]}")
        return document.model_copy(update={"revision": new_revision})

    def update(
        self,
        category: Union[Category, str],
        doc_id: str,
        body: Dict[str, Any],
        revision: str,
        token: Optional[str] = None,
        created_at: Optional[str] = None,
        message: Optional[str] = None,
    ) -> Document:
        """Overwrite a document if it is still at ``revision``.

        On ``ConflictError`` the caller re-reads and retries; nothing is
        merged automatically. A theme can only be switched on through
        ``activate_theme``. An active theme stays active when the body leaves
        out ``isActive``.

        Raises:
            ValidationFailedError: If the body is invalid or no revision is given
            ConflictError: If the document changed since ``revision``
            NotFoundError: If the document no longer exists
            PrecludedByInvariantError: If the update would activate a theme
        """
        category = Category.parse(category)
        if not revision:
            raise ValidationFailedError(
                f"Updating {category.value} '{doc_id}' requires the revision from the last read",
                validation_errors=["revision: required"],
            )

        body_created_at = pop_timestamp(dict(body), CREATED_AT_KEY, f"{category.value} '{doc_id}' body")
        clean = self._strip_timestamps(body)
        validate_body(category, clean)
        created_at = created_at or body_created_at

        activating = category is Category.THEME and clean.get("isActive") is True
        flag_missing = category is Category.THEME and "isActive" not in clean
        if activating or flag_missing or not created_at:
            current = self._read(category, doc_id, token)
            if activating and not current.is_active:
                raise PrecludedByInvariantError(
                    f"Theme '{doc_id}' is not active; use activate_theme to switch themes",
                    details={"theme": doc_id},
                )
            if flag_missing and current.is_active:
                clean["isActive"] = True
            # The conditional write below rejects the change if this read is newer
            created_at = created_at or current.created_at

        document = self._write_update(
            category, doc_id, clean, revision, token, created_at, message
        )

        if self.drafts is not None:
            self.drafts.clear_draft(category, doc_id)

        return document

    def remove(
        self,
        category: Union[Category, str],
        doc_id: str,
        revision: str,
        token: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        """Delete a document if it is still at ``revision``.

        Raises:
            PrecludedByInvariantError: If the document is the active theme
            ConflictError: If the document changed since ``revision``
            NotFoundError: If the document is already gone
        """
        category = Category.parse(category)
        if not revision:
            raise ValidationFailedError(
                f"Deleting {category.value} '{doc_id}' requires the revision from the last read",
                validation_errors=["revision: required"],
            )

        if category is Category.THEME:
            current = self._read(category, doc_id, token)
            if current.is_active:
                raise PrecludedByInvariantError(
                    f"Cannot delete the active theme '{doc_id}'. Activate a different theme first.",
                    details={"theme": doc_id},
                )

        self.backend.delete(category, doc_id, revision, token=token, message=message)
        self._debug(f"deleted {category.value} '{doc_id}'")

        if self.drafts is not None:
            self.drafts.clear_draft(category, doc_id)

    def activate_theme(self, theme_id: str, token: Optional[str] = None) -> Document:
        """Make ``theme_id`` the only active theme.

        Deactivates the currently active theme, then activates the target,
        each with a fresh revision. The two writes are not atomic: if the
        second one fails the repository has no active theme, and
        ``PartialActivationFailure`` names what was deactivated. Calling
        this again with the same id is always safe.

        Raises:
            NotFoundError: If the target theme does not exist
            PartialActivationFailure: If a theme was deactivated but the target was not activated
        """
        others = [theme for theme in self._active_themes(token) if theme.id != theme_id]
        target = self._read(Category.THEME, theme_id, token)

        if target.is_active and not others:
            self._debug(f"theme '{theme_id}' is already the active theme")
            return target

        deactivated: List[str] = []
        try:
            for theme in others:
                self._debug(f"deactivating theme '{theme.id}'")
                self._write_update(
                    Category.THEME,
                    theme.id,
                    {**theme.body, "isActive": False},
                    theme.revision,
                    token,
                    theme.created_at,
                    message=f"Deactivate theme: {theme.id}",
                )
                deactivated.append(theme.id)

            if target.is_active:
                return target

            self._debug(f"activating theme '{theme_id}'")
            return self._write_update(
                Category.THEME,
                theme_id,
                {**target.body, "isActive": True},
                target.revision,
                token,
                target.created_at,
                message=f"Activate theme: {theme_id}",
            )
        except CmsError as e:
            if not deactivated:
                raise
            raise PartialActivationFailure(
                f"Deactivated {', '.join(deactivated)} but could not activate '{theme_id}': {e}. "
                f"No theme is active; retry the activation.",
                target_id=theme_id,
                deactivated_ids=deactivated,
                cause=e,
            ) from e

    def publish_draft(
        self,
        category: Union[Category, str],
        doc_id: str,
        revision: Optional[str] = None,
        token: Optional[str] = None,
    ) -> Document:
        """Publish the stored draft: create without a revision, update with one.

        Raises:
            NotFoundError: If there is no draft for the document
        """
        category = Category.parse(category)
        body = self.drafts.load_draft(category, doc_id) if self.drafts is not None else None
        if body is None:
            raise NotFoundError(f"No draft for {category.value} '{doc_id}'")

        if revision:
            return self.update(category, doc_id, body, revision, token=token)
        return self.create(category, body, doc_id=doc_id, token=token)
