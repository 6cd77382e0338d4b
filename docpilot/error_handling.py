"""Error handling and retry configuration for the document analysis core.

Provides custom exceptions, error classification for generation failures,
user-facing messages per error kind, and retry configuration.
"""

import asyncio
from typing import FrozenSet, Optional, Tuple

from loguru import logger

from docpilot.models import ErrorKind


# Custom Exception Classes

class DocPilotError(Exception):
    """Base exception for all document analysis errors."""
    kind: ErrorKind = ErrorKind.UNKNOWN


class ConfigurationError(DocPilotError):
    """Raised when generation settings are missing or invalid."""
    kind = ErrorKind.UNAUTHENTICATED


class InvalidRequestError(DocPilotError):
    """Raised when an analysis request or chat message fails validation."""
    pass


class NoAnalyzableContentError(DocPilotError):
    """Raised when segmentation yields no clause candidates."""
    kind = ErrorKind.MALFORMED_OUTPUT


class MalformedOutputError(DocPilotError):
    """Raised when generation output cannot be used at all."""
    kind = ErrorKind.MALFORMED_OUTPUT


class EmptyOutputError(DocPilotError):
    """Raised when a generation response carries no output."""
    pass


class SessionError(DocPilotError):
    """Raised when chat session management fails."""
    pass


class CriticalTaskError(DocPilotError):
    """Raised when a task designated critical ends in a Failed outcome."""

    def __init__(self, task_name: str, kind: ErrorKind, detail: str):
        self.task_name = task_name
        self.kind = kind
        self.detail = detail
        self.user_message = friendly_message(kind)
        super().__init__(
            f"Critical task '{task_name}' failed ({kind.value}): {detail}"
        )


# Error Classification

# Ordered: the first kind whose pattern occurs in the lowercased message wins
ERROR_PATTERNS: Tuple[Tuple[ErrorKind, Tuple[str, ...]], ...] = (
    (ErrorKind.UNAUTHENTICATED, ("api key", "401", "unauthorized", "unauthenticated")),
    (ErrorKind.QUOTA_EXCEEDED, ("quota", "429", "rate limit", "resource_exhausted")),
    (ErrorKind.TIMEOUT, ("timeout", "timed out", "etimedout", "econnaborted", "deadline exceeded")),
    (ErrorKind.NETWORK_UNAVAILABLE, ("enotfound", "econnrefused", "econnreset", "network", "connection refused")),
    (ErrorKind.MODEL_UNAVAILABLE, ("model", "not found")),
)

STATUS_CODES = {
    401: ErrorKind.UNAUTHENTICATED,
    403: ErrorKind.UNAUTHENTICATED,
    404: ErrorKind.MODEL_UNAVAILABLE,
    408: ErrorKind.TIMEOUT,
    429: ErrorKind.QUOTA_EXCEEDED,
    504: ErrorKind.TIMEOUT,
}


def classify_error(error: BaseException) -> ErrorKind:
    """Classify a raw failure signal into an ErrorKind.

    Only recognized signals are mapped; anything else is Unknown.

    Args:
        error: Exception raised by a generation call

    Returns:
        ErrorKind for the failure
    """
    if isinstance(error, DocPilotError):
        return error.kind

    # asyncio.TimeoutError is distinct from TimeoutError before Python 3.11
    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return ErrorKind.TIMEOUT

    if isinstance(error, ConnectionError):
        return ErrorKind.NETWORK_UNAVAILABLE

    for attr in ("code", "status_code"):
        status = getattr(error, attr, None)
        if isinstance(status, int) and status in STATUS_CODES:
            return STATUS_CODES[status]

    message = str(error).lower()
    for kind, patterns in ERROR_PATTERNS:
        if any(pattern in message for pattern in patterns):
            return kind

    return ErrorKind.UNKNOWN


USER_MESSAGES = {
    ErrorKind.UNAUTHENTICATED: "The analysis service rejected our credentials. Please check the API key configuration.",
    ErrorKind.QUOTA_EXCEEDED: "The analysis service is busy right now. Please try again later.",
    ErrorKind.TIMEOUT: "The analysis took too long to complete. Please try again in a few moments.",
    ErrorKind.NETWORK_UNAVAILABLE: "We could not reach the analysis service. Please check your internet connection.",
    ErrorKind.MODEL_UNAVAILABLE: "The AI model is temporarily unavailable. Please try again later.",
    ErrorKind.MALFORMED_OUTPUT: "We could not find any analyzable content in this document. Please upload a document with readable text.",
    ErrorKind.UNKNOWN: "Something went wrong while analyzing your document. Please try again.",
}


def friendly_message(kind: ErrorKind) -> str:
    """Return the user-facing message for an error kind."""
    return USER_MESSAGES.get(kind, USER_MESSAGES[ErrorKind.UNKNOWN])


# Retry Configuration

RETRYABLE_KINDS: FrozenSet[ErrorKind] = frozenset({
    ErrorKind.NETWORK_UNAVAILABLE,
    ErrorKind.TIMEOUT,
    ErrorKind.UNKNOWN,
})


class RetryConfig:
    """Configuration for retry logic with exponential backoff."""

    def __init__(
        self,
        attempts: int = 3,
        exp_base: int = 2,
        initial_delay: float = 1.0,
        max_delay: float = 30.0,
        retryable_kinds: Optional[FrozenSet[ErrorKind]] = None
    ):
        """Initialize retry configuration.

        Args:
            attempts: Maximum number of attempts (including the first)
            exp_base: Base for exponential backoff calculation
            initial_delay: Delay before the first retry in seconds
            max_delay: Maximum delay between retries in seconds
            retryable_kinds: Error kinds worth retrying; others fail fast
        """
        if attempts < 1:
            raise ValueError("attempts must be at least 1")

        self.attempts = attempts
        self.exp_base = exp_base
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.retryable_kinds = retryable_kinds if retryable_kinds is not None else RETRYABLE_KINDS

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay after a given failed attempt.

        Args:
            attempt: Failed attempt number (0-indexed)

        Returns:
            Delay in seconds
        """
        delay = self.initial_delay * (self.exp_base ** attempt)
        return min(delay, self.max_delay)

    def should_retry(self, kind: ErrorKind) -> bool:
        return kind in self.retryable_kinds


DEFAULT_RETRY_CONFIG = RetryConfig()


def log_classified_failure(task_name: str, error: BaseException, kind: ErrorKind) -> None:
    logger.warning(
        f"Task {task_name} failed with {kind.value}",
        task_name=task_name,
        error=str(error),
        error_type=type(error).__name__,
        error_kind=kind.value
    )
