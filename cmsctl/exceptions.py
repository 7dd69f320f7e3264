"""Exception classes for the content repository.

This module defines the error taxonomy shared by the backends, the
content repository facade and the CLI. Every error carries a
human-readable message and an optional ``details`` mapping.
"""

from typing import Optional, Dict, Any, List


class CmsError(Exception):
    """Base exception class for all content repository errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigError(CmsError):
    """Exception raised for configuration-related errors."""
    pass


class ValidationFailedError(CmsError):
    """Exception raised when a document body is missing required fields."""

    def __init__(
        self,
        message: str,
        validation_errors: Optional[List[str]] = None,
        **kwargs: Any
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            validation_errors: List of specific validation errors
            **kwargs: Additional arguments passed to parent class
        """
        super().__init__(message, **kwargs)
        self.validation_errors = validation_errors or []


class NotFoundError(CmsError):
    """Exception raised when a document does not exist."""
    pass


class AlreadyExistsError(CmsError):
    """Exception raised when creating a document whose id is taken."""
    pass


class ConflictError(CmsError):
    """Exception raised when the stored revision no longer matches."""
    pass


class UnsupportedOperationError(CmsError):
    """Exception raised when a backend cannot perform an operation."""
    pass


class PrecludedByInvariantError(CmsError):
    """Exception raised when an operation would break a repository invariant."""
    pass


class PartialActivationFailure(CmsError):
    """Exception raised when theme activation stops after deactivating themes.

    The repository is left with zero active themes. Calling
    ``activate_theme`` again with the same ``target_id`` is safe.
    """

    def __init__(
        self,
        message: str,
        target_id: str,
        deactivated_ids: Optional[List[str]] = None,
        cause: Optional[Exception] = None,
        **kwargs: Any
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            target_id: Theme that was being activated
            deactivated_ids: Themes already switched to inactive
            cause: The error raised by the failed step
            **kwargs: Additional arguments passed to parent class
        """
        super().__init__(message, **kwargs)
        self.target_id = target_id
        self.deactivated_ids = deactivated_ids or []
        self.cause = cause


class BackendUnavailableError(CmsError):
    """Exception raised for transient backend failures.

    This is the only error kind that is safe to retry automatically.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        retry_after: Optional[int] = None,
        **kwargs: Any
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code, if the failure had one
            retry_after: Seconds to wait before retrying
            **kwargs: Additional arguments passed to parent class
        """
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.retry_after = retry_after


class ServerError(BackendUnavailableError):
    """Exception raised for 5xx server errors."""
    pass


class RateLimitError(BackendUnavailableError):
    """Exception raised when the API rate limit is exhausted."""
    pass


class MalformedResponseError(BackendUnavailableError):
    """Exception raised when a response body cannot be decoded."""
    pass


class MaxRetriesExceededError(BackendUnavailableError):
    """Exception raised when maximum retry attempts are exceeded."""

    def __init__(
        self,
        message: str,
        attempts: int,
        last_exception: Optional[Exception] = None
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            attempts: Number of attempts made
            last_exception: The last exception that caused the failure
        """
        super().__init__(message)
        self.attempts = attempts
        self.last_exception = last_exception


class CircuitBreakerOpenError(BackendUnavailableError):
    """Exception raised when circuit breaker is open."""
    pass


class APIError(CmsError):
    """Base exception for non-transient API errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[Dict[str, Any]] = None
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code
            response_data: Raw response data from API
        """
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data or {}


class BadRequestError(APIError):
    """Exception raised for 400 Bad Request errors."""
    pass


class UnauthorizedError(APIError):
    """Exception raised for 401 Unauthorized errors."""
    pass


class ForbiddenError(APIError):
    """Exception raised for 403 Forbidden errors."""
    pass


def is_retryable(exception: BaseException) -> bool:
    """Check whether an error is safe to retry without caller intervention."""
    return isinstance(exception, BackendUnavailableError)
