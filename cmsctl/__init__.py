"""Content repository client package.

Typed read/write access to the JSON documents (pages, layouts, themes,
navigation menus and component schemas) a site builder keeps in a git
repository, plus a command-line tool for editors.
"""

__version__ = "0.1.0"
__description__ = "Command-line tool and library for git-backed site content"

# Re-export main classes for convenience
from .config import ConfigManager, Profile
from .drafts import DraftOverlay, JsonFileDraftStorage, MemoryDraftStorage
from .models import Category, Document, DocumentSummary
from .repository import ContentRepository
from .backends import Backend, LocalBackend, RemoteBackend, create_backend
from .utils.retry import RetryManager, CircuitBreaker
from .exceptions import (
    CmsError,
    ConfigError,
    ValidationFailedError,
    NotFoundError,
    AlreadyExistsError,
    ConflictError,
    UnsupportedOperationError,
    PrecludedByInvariantError,
    PartialActivationFailure,
    BackendUnavailableError,
    MaxRetriesExceededError,
    CircuitBreakerOpenError,
    RateLimitError,
    APIError,
)

__all__ = [
    "__version__",
    "__description__",
    "ConfigManager",
    "Profile",
    "DraftOverlay",
    "JsonFileDraftStorage",
    "MemoryDraftStorage",
    "Category",
    "Document",
    "DocumentSummary",
    "ContentRepository",
    "Backend",
    "LocalBackend",
    "RemoteBackend",
    "create_backend",
    "RetryManager",
    "CircuitBreaker",
    "CmsError",
    "ConfigError",
    "ValidationFailedError",
    "NotFoundError",
    "AlreadyExistsError",
    "ConflictError",
    "UnsupportedOperationError",
    "PrecludedByInvariantError",
    "PartialActivationFailure",
    "BackendUnavailableError",
    "MaxRetriesExceededError",
    "CircuitBreakerOpenError",
    "RateLimitError",
    "APIError",
]
