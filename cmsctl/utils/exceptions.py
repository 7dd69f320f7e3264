"""User-facing error formatting.

Turns repository errors into the messages the CLI prints, adding the
details an editor needs to act on them.
"""

from ..exceptions import (
    APIError,
    BackendUnavailableError,
    ConflictError,
    MaxRetriesExceededError,
    NotFoundError,
    PartialActivationFailure,
    PrecludedByInvariantError,
    RateLimitError,
    UnsupportedOperationError,
    ValidationFailedError,
)


def format_error_for_user(error: Exception, debug: bool = False) -> str:
    """Format an error message for user display.

    Args:
        error: The exception to format
        debug: Whether to include debug information

    Returns:
        Formatted error message
    """
    if isinstance(error, ValidationFailedError):
        message = f"Validation error: {error.message}"
        if error.validation_errors:
            message += "\nDetails:"
            for detail in error.validation_errors:
                message += f"\n  - {detail}"
        return message

    if isinstance(error, ConflictError):
        message = f"Conflict: {error.message}"
        message += "\nThe document changed since it was read. Get it again and reapply your edit."
        return message

    if isinstance(error, PartialActivationFailure):
        message = f"Theme activation incomplete: {error.message}"
        if error.deactivated_ids:
            message += f"\nDeactivated: {', '.join(error.deactivated_ids)}"
        message += f"\nRun 'cmsctl themes activate {error.target_id}' again to finish."
        if error.cause is not None and debug:
            message += f"\nCause: {type(error.cause).__name__}: {error.cause}"
        return message

    if isinstance(error, PrecludedByInvariantError):
        return f"Not allowed: {error.message}"

    if isinstance(error, NotFoundError):
        return f"Not found: {error.message}"

    if isinstance(error, UnsupportedOperationError):
        return f"Unsupported: {error.message}"

    if isinstance(error, RateLimitError):
        message = f"Rate limit exceeded: {error.message}"
        if error.retry_after:
            message += f"\nRetry after: {error.retry_after} seconds"
        return message

    if isinstance(error, MaxRetriesExceededError):
        message = f"Backend unavailable: {error.message}"
        if error.last_exception is not None and debug:
            message += f"\nLast error: {error.last_exception}"
        return message

    if isinstance(error, BackendUnavailableError):
        message = f"Backend unavailable: {error.message}"
        if error.status_code and debug:
            message += f"\nStatus code: {error.status_code}"
        return message

    # For API errors, show status code and response data if available
    if isinstance(error, APIError):
        message = f"API error: {error.message}"
        if error.status_code:
            message += f"\nStatus code: {error.status_code}"
        if error.response_data and debug:
            message += f"\nResponse: {error.response_data}"
        return message

    # Default formatting
    if debug:
        return f"Error: {str(error)}\nType: {type(error).__name__}"
    else:
        return f"Error: {str(error)}"
