"""Contains the exceptions raised by the triage workflows and their adapters."""

from typing import Any


class TriageError(Exception):
    """Base class for errors raised by the triage workflows."""

    pass


class InputValidationError(TriageError, ValueError):
    """Raised when input is malformed (bad path segment, missing parameter, etc).

    Never retried.
    """

    pass


class RateLimitError(TriageError):
    """Raised when an external service reports that a rate limit was exceeded."""

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        """Initializes the exception with the advertised retry-after interval in seconds."""
        super().__init__(message)
        self.retry_after = retry_after


class TransientNetworkError(TriageError):
    """Raised for failures that are expected to succeed when retried (timeouts, 5xx)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initializes the exception with the HTTP status code, if one was received."""
        super().__init__(message)
        self.status_code = status_code


class TrackerRequestError(TriageError):
    """Raised when the issue tracker rejects a request in a way that retrying will not fix."""

    def __init__(self, message: str, status_code: int | None = None, response_body: Any = None) -> None:
        """Initializes the exception with the HTTP status code and response body."""
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class IssueFetchError(TriageError):
    """Raised when open issues could not be fetched from the issue tracker."""

    pass


class ModelRequestError(TriageError):
    """Raised when the text-generation model endpoint returns an unusable response."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initializes the exception with the HTTP status code, if one was received."""
        super().__init__(message)
        self.status_code = status_code


class ModelResponseParseError(TriageError):
    """Raised when a model response holds no parseable structured data."""

    def __init__(self, message: str, raw_response: str) -> None:
        """Initializes the exception, keeping the raw response for diagnostics."""
        super().__init__(message)
        self.raw_response = raw_response


class StatePersistenceError(TriageError):
    """Raised when the session state file cannot be written."""

    pass
