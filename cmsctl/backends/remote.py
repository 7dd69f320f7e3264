"""GitHub contents API backend.

This module stores documents as files in a GitHub repository through the
REST "contents" endpoints. The blob SHA GitHub reports for a file is its
revision marker: updates and deletes send it back, and GitHub refuses the
change if the file moved on in the meantime. That refusal is the only
concurrency control, no lock server is involved.

Reads are retried with backoff on transient failures; writes are not,
because a write that timed out may still have landed.
"""

import base64
from typing import Any, Callable, Dict, List, Optional, TypeVar
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from rich.console import Console
from urllib3.util.retry import Retry

from ..config import DEFAULT_API_URL, DEFAULT_CONTENT_ROOT, Profile
from ..exceptions import (
    APIError,
    AlreadyExistsError,
    BackendUnavailableError,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    MalformedResponseError,
    NotFoundError,
    RateLimitError,
    ServerError,
    UnauthorizedError,
    ValidationFailedError,
)
from ..models import Category, ListingEntry, StoredDocument
from ..utils.retry import CircuitBreaker, RetryManager
from .base import Backend
from .codec import decode_document, encode_document

T = TypeVar("T")

GITHUB_MEDIA_TYPE = "application/vnd.github+json"
GITHUB_RAW_MEDIA_TYPE = "application/vnd.github.raw+json"
GITHUB_API_VERSION = "2022-11-28"


class RemoteBackend(Backend):
    """Backend for a GitHub-hosted content repository."""

    mode = "remote"

    def __init__(
        self,
        owner: str,
        repo: str,
        branch: str = "main",
        api_url: str = DEFAULT_API_URL,
        content_root: str = DEFAULT_CONTENT_ROOT,
        timeout: int = 30,
        retry_attempts: int = 3,
        debug: bool = False,
        console: Optional[Console] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the remote backend.

        Args:
            owner: Repository owner
            repo: Repository name
            branch: Branch to read from and commit to
            api_url: REST API base URL
            content_root: Directory holding the category directories
            timeout: Request timeout in seconds
            retry_attempts: Number of retry attempts for reads
            debug: Print request/response debug output
            console: Console for debug output
            session: Pre-built requests session (tests inject a mock here)
        """
        super().__init__(debug=debug, console=console)
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.api_url = str(api_url).rstrip("/")
        self.content_root = content_root.strip("/")
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self._rate_limit_info: Dict[str, Any] = {}

        self.retry_manager = RetryManager(
            max_retries=retry_attempts,
            base_delay=1.0,
            max_delay=30.0,
            backoff_factor=2.0,
            jitter=True,
        )

        self.circuit_breaker = CircuitBreaker(
            failure_threshold=5,
            recovery_timeout=60.0,
            expected_exception=BackendUnavailableError,
        )

        self.session = session or requests.Session()
        if session is None:
            self._configure_session()

    @classmethod
    def from_profile(
        cls,
        profile: Profile,
        debug: bool = False,
        console: Optional[Console] = None,
    ) -> "RemoteBackend":
        """Create a backend from a configuration profile."""
        return cls(
            owner=profile.owner,
            repo=profile.repo,
            branch=profile.branch,
            api_url=str(profile.api_url),
            content_root=profile.content_root,
            timeout=profile.timeout,
            retry_attempts=profile.retry_attempts,
            debug=debug,
            console=console,
        )

    def _configure_session(self) -> None:
        """Configure the requests session with connection pooling."""
        retry_strategy = Retry(
            total=0,  # We handle retries ourselves
            connect=2,
            read=0,
            backoff_factor=0.5,
        )

        adapter = HTTPAdapter(max_retries=retry_strategy, pool_connections=10, pool_maxsize=20)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    # Paths

    def _directory(self, category: Category) -> str:
        if self.content_root:
            return f"{self.content_root}/{category.directory}"
        return category.directory

    def _path(self, category: Category, doc_id: str) -> str:
        return f"{self._directory(category)}/{doc_id}.json"

    def _url(self, path: str) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}/contents/{quote(path)}"

    def _headers(self, token: Optional[str], accept: str = GITHUB_MEDIA_TYPE) -> Dict[str, str]:
        headers = {
            "Accept": accept,
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    @staticmethod
    def _commit_message(verb: str, category: Category, doc_id: str) -> str:
        return f"{verb} {category.value}: {doc_id}"

    # Transport

    def _parse_rate_limit_headers(self, response: requests.Response) -> Dict[str, Any]:
        return {
            "limit": response.headers.get("X-RateLimit-Limit"),
            "remaining": response.headers.get("X-RateLimit-Remaining"),
            "reset": response.headers.get("X-RateLimit-Reset"),
            "retry_after": response.headers.get("Retry-After"),
        }

    @staticmethod
    def _error_data(response: requests.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {"message": response.text}
        return data if isinstance(data, dict) else {"data": data}

    def _check_transient(self, response: requests.Response) -> None:
        """Raise for statuses that are safe to retry."""
        status = response.status_code
        rate_limit = self._parse_rate_limit_headers(response)

        if status == 429 or (status == 403 and rate_limit.get("remaining") == "0"):
            retry_after = rate_limit.get("retry_after")
            message = f"Rate limit exceeded. Remaining: {rate_limit.get('remaining') or 0}"
            if rate_limit.get("reset"):
                message += f", resets at: {rate_limit['reset']}"
            raise RateLimitError(
                message,
                status_code=status,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
                details={"response": self._error_data(response)},
            )

        if status >= 500:
            raise ServerError(
                f"Server error: {status}",
                status_code=status,
                details={"response": self._error_data(response)},
            )

    def _api_error(self, response: requests.Response, context: str) -> APIError:
        """Build the closest non-transient error for an unexpected 4xx."""
        status = response.status_code
        error_data = self._error_data(response)
        reason = error_data.get("message") or response.reason or "request failed"

        if status == 400:
            return BadRequestError(f"{context}: bad request ({reason})", status_code=status, response_data=error_data)
        if status == 401:
            return UnauthorizedError(f"{context}: unauthorized, check your access token", status_code=status, response_data=error_data)
        if status == 403:
            return ForbiddenError(f"{context}: forbidden ({reason})", status_code=status, response_data=error_data)
        return APIError(f"{context}: HTTP {status} ({reason})", status_code=status, response_data=error_data)

    def _send(
        self,
        method: str,
        path: str,
        token: Optional[str],
        accept: str = GITHUB_MEDIA_TYPE,
        **kwargs: Any,
    ) -> requests.Response:
        url = self._url(path)
        self._debug(f"{method} {url} {kwargs.get('params') or ''}")

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=self._headers(token, accept),
                timeout=self.timeout,
                **kwargs,
            )
        except requests.exceptions.Timeout as e:
            raise BackendUnavailableError(f"Request timed out after {self.timeout}s: {method} {path}") from e
        except requests.exceptions.RequestException as e:
            raise BackendUnavailableError(f"Request failed: {method} {path}: {e}") from e

        rate_limit = self._parse_rate_limit_headers(response)
        self._rate_limit_info.update(rate_limit)
        self._debug(f"response {response.status_code} rate limit remaining {rate_limit.get('remaining')}")

        self._check_transient(response)
        return response

    def _request(
        self,
        method: str,
        path: str,
        token: Optional[str],
        idempotent: bool,
        handler: Callable[[requests.Response], T],
        **kwargs: Any,
    ) -> T:
        """Send a request and map the response through ``handler``.

        ``handler`` runs inside the retry loop so a malformed API response
        on a read is retried like any other transient failure. Errors in the
        stored file itself are not transient and are raised as is.
        """
        def attempt() -> T:
            return handler(self._send(method, path, token, **kwargs))

        if idempotent:
            return self.circuit_breaker.call(lambda: self.retry_manager.execute_with_retry(attempt))
        return self.circuit_breaker.call(attempt)

    @staticmethod
    def _json(response: requests.Response, context: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"{context}: response is not JSON: {e}", status_code=response.status_code)

    # Backend operations

    def list(self, category: Category, token: Optional[str] = None) -> List[ListingEntry]:
        directory = self._directory(category)

        def handle(response: requests.Response) -> List[ListingEntry]:
            if response.status_code == 404:
                self._debug(f"directory {directory} not found, treating as empty")
                return []
            if response.status_code != 200:
                raise self._api_error(response, f"List {category.value}")

            data = self._json(response, f"List {category.value}")
            if not isinstance(data, list):
                raise MalformedResponseError(f"List {category.value}: {directory} is not a directory")

            entries = []
            for item in data:
                if not isinstance(item, dict):
                    raise MalformedResponseError(f"List {category.value}: unexpected entry in {directory}: {item!r}")
                name = item.get("name")
                if item.get("type") != "file" or not isinstance(name, str) or not name.endswith(".json"):
                    continue
                entries.append(
                    ListingEntry(
                        id=name[: -len(".json")],
                        revision=item.get("sha"),
                        location=item.get("path") or f"{directory}/{name}",
                    )
                )
            return sorted(entries, key=lambda entry: entry.id)

        return self._request("GET", directory, token, True, handle, params={"ref": self.branch})

    def read(self, category: Category, doc_id: str, token: Optional[str] = None) -> StoredDocument:
        path = self._path(category, doc_id)
        context = f"Read {category.value} '{doc_id}'"

        def handle(response: requests.Response) -> StoredDocument:
            if response.status_code == 404:
                raise NotFoundError(f"{category.value} '{doc_id}' not found", details={"path": path})
            if response.status_code != 200:
                raise self._api_error(response, context)

            data = self._json(response, context)
            if not isinstance(data, dict) or not data.get("sha"):
                raise MalformedResponseError(f"{context}: response has no revision")

            if data.get("encoding") == "base64":
                try:
                    raw = base64.b64decode(data.get("content") or "")
                except ValueError as e:
                    raise MalformedResponseError(f"{context}: invalid base64 content: {e}")
            else:
                # Files over 1 MB come back without inline content
                raw = self._fetch_raw(path, token)

            try:
                body = decode_document(raw)
            except ValueError as e:
                raise ValidationFailedError(
                    f"Invalid JSON in {path}: {e}",
                    validation_errors=[str(e)],
                    details={"path": path},
                )

            return StoredDocument(body=body, revision=data["sha"])

        return self._request("GET", path, token, True, handle, params={"ref": self.branch})

    def _fetch_raw(self, path: str, token: Optional[str]) -> bytes:
        response = self._send("GET", path, token, accept=GITHUB_RAW_MEDIA_TYPE, params={"ref": self.branch})
        if response.status_code != 200:
            raise self._api_error(response, f"Read {path}")
        return response.content

    def write(
        self,
        category: Category,
        doc_id: str,
        body: Dict[str, Any],
        revision: Optional[str] = None,
        token: Optional[str] = None,
        message: Optional[str] = None,
    ) -> str:
        path = self._path(category, doc_id)
        verb = "Update" if revision else "Create"
        context = f"{verb} {category.value} '{doc_id}'"

        payload: Dict[str, Any] = {
            "message": message or self._commit_message(verb, category, doc_id),
            "content": base64.b64encode(encode_document(body)).decode("ascii"),
            "branch": self.branch,
        }
        if revision:
            payload["sha"] = revision

        def handle(response: requests.Response) -> str:
            status = response.status_code
            if status in (200, 201):
                data = self._json(response, context)
                new_revision = (data.get("content") or {}).get("sha") if isinstance(data, dict) else None
                if not new_revision:
                    raise MalformedResponseError(f"{context}: response has no revision")
                return new_revision

            error_data = self._error_data(response)
            if status == 409 or (status == 422 and revision):
                raise ConflictError(
                    f"{category.value} '{doc_id}' changed since revision {revision[:7] if revision else '?'}; re-read and retry",
                    details={"path": path, "revision": revision, "response": error_data},
                )
            if status == 422:
                raise AlreadyExistsError(
                    f"{category.value} '{doc_id}' already exists",
                    details={"path": path, "response": error_data},
                )
            if status == 404:
                raise NotFoundError(
                    f"{context}: repository or branch '{self.branch}' not found",
                    details={"path": path, "response": error_data},
                )
            raise self._api_error(response, context)

        return self._request("PUT", path, token, False, handle, json=payload)

    def delete(
        self,
        category: Category,
        doc_id: str,
        revision: str,
        token: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        path = self._path(category, doc_id)
        context = f"Delete {category.value} '{doc_id}'"

        payload = {
            "message": message or self._commit_message("Delete", category, doc_id),
            "sha": revision,
            "branch": self.branch,
        }

        def handle(response: requests.Response) -> None:
            status = response.status_code
            if status == 200:
                return None

            error_data = self._error_data(response)
            if status == 404:
                raise NotFoundError(f"{category.value} '{doc_id}' not found", details={"path": path, "response": error_data})
            if status in (409, 422):
                raise ConflictError(
                    f"{category.value} '{doc_id}' changed since revision {revision[:7]}; re-read and retry",
                    details={"path": path, "revision": revision, "response": error_data},
                )
            raise self._api_error(response, context)

        self._request("DELETE", path, token, False, handle, json=payload)

    # Diagnostics

    def describe(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "repository": f"{self.owner}/{self.repo}",
            "branch": self.branch,
            "content_root": self.content_root or "/",
            "api_url": self.api_url,
        }

    def get_rate_limit_info(self) -> Dict[str, Any]:
        """Get the rate limit headers seen on the last response."""
        return dict(self._rate_limit_info)

    def get_stats(self) -> Dict[str, Any]:
        """Get client statistics."""
        return {
            "retry_stats": self.retry_manager.get_metrics(),
            "circuit_breaker_stats": self.circuit_breaker.get_state_info(),
            "rate_limit_info": self.get_rate_limit_info(),
        }
