"""Error taxonomy for the agent core.

Every failure the execution driver has to react to is expressed as a
``ClassifiedError`` carrying a stable ``ErrorKind``. The kind is attached to the
exception class itself, so classification does not depend on message text.

Errors raised by third-party provider SDKs carry no such marker. The predicate
functions below inspect them in a fixed order: explicit kind first, then
class-name markers, then HTTP status attributes, and message substrings last.
``classify_error`` applies the predicates in priority order and returns a
typed error the driver can act on.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Iterable, Optional


class ErrorKind(str, Enum):
    authentication = "authentication"
    forbidden = "forbidden"
    bad_request = "bad_request"
    aborted = "aborted"
    environment_conflict = "environment_conflict"
    response_parse = "response_parse"
    max_steps_reached = "max_steps_reached"
    max_failures_reached = "max_failures_reached"
    invalid_input = "invalid_input"
    unclassified = "unclassified"

    @property
    def is_fatal(self) -> bool:
        """Whether the run must stop with a terminal, non-retryable outcome."""
        return self in (ErrorKind.max_steps_reached, ErrorKind.max_failures_reached)

    @property
    def is_retryable(self) -> bool:
        """Whether the driver may re-prompt the model and try again."""
        return self in (ErrorKind.response_parse, ErrorKind.invalid_input, ErrorKind.unclassified)


FORBIDDEN_HINT = (
    "Access denied (403 Forbidden). Check that the API key has the required permissions. "
    "For local Ollama servers, allow the agent origin via OLLAMA_ORIGINS."
)

ENVIRONMENT_CONFLICT_HINT = (
    "Cannot access a chrome-extension:// URL of different extension. "
    "This is likely caused by a conflicting extension; run the agent in a fresh browser profile."
)


class ClassifiedError(Exception):
    """Base error for every failure with a stable kind.

    Attributes:
        kind: The taxonomy entry this error belongs to.
        message: The original message, preserved verbatim.
        cause: The underlying exception, when this error wraps one.
    """

    kind: ErrorKind = ErrorKind.unclassified

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        text = f"{type(self).__name__}: {self.message}"
        if self.cause is not None:
            text += f" (Caused by: {self.cause})"
        return text


class ChatModelAuthError(ClassifiedError):
    """Raised when the model provider rejects the credentials (401)."""

    kind = ErrorKind.authentication


class ChatModelForbiddenError(ClassifiedError):
    """Raised when the model provider denies access (403)."""

    kind = ErrorKind.forbidden


class ChatModelBadRequestError(ClassifiedError):
    """Raised when the model provider rejects the request shape (400)."""

    kind = ErrorKind.bad_request


class RequestCancelledError(ClassifiedError):
    """Raised when the shared cancellation signal fires mid-turn."""

    kind = ErrorKind.aborted

    def __init__(self, message: str = "Request cancelled", cause: Optional[BaseException] = None) -> None:
        super().__init__(message, cause)


class EnvironmentConflictError(ClassifiedError):
    """Raised when the automation environment refuses cross-extension access."""

    kind = ErrorKind.environment_conflict


class ResponseParseError(ClassifiedError):
    """Raised when model output cannot be parsed into the expected decision."""

    kind = ErrorKind.response_parse


class MaxStepsReachedError(ClassifiedError):
    """Raised when a run exhausts its step budget."""

    kind = ErrorKind.max_steps_reached


class MaxFailuresReachedError(ClassifiedError):
    """Raised when a run hits its consecutive failure limit."""

    kind = ErrorKind.max_failures_reached


class InvalidInputError(ClassifiedError):
    """Raised when a decision payload fails capability validation."""

    kind = ErrorKind.invalid_input


class UnclassifiedError(ClassifiedError):
    """Raised for failures that match no known pattern; the message is kept verbatim."""

    kind = ErrorKind.unclassified


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def _class_names(error: BaseException) -> set[str]:
    return {cls.__name__ for cls in type(error).__mro__}


def _status_code(error: BaseException) -> Optional[int]:
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def _message(error: BaseException) -> str:
    if isinstance(error, ClassifiedError):
        return error.message
    return str(error) or ""


def _has_kind(error: BaseException, kind: ErrorKind) -> Optional[bool]:
    """Return the explicit verdict for our own errors, ``None`` for foreign ones."""
    if isinstance(error, ClassifiedError):
        return error.kind == kind
    return None


def is_authentication_error(error: Any) -> bool:
    """Check whether ``error`` is an authentication failure (401 / bad API key)."""
    if not isinstance(error, BaseException):
        return False
    explicit = _has_kind(error, ErrorKind.authentication)
    if explicit is not None:
        return explicit
    if "AuthenticationError" in _class_names(error):
        return True
    if _status_code(error) == 401:
        return True
    message = _message(error)
    lowered = message.lower()
    return "authentication" in lowered or " 401" in message or "api key" in lowered


def is_forbidden_error(error: Any) -> bool:
    """Check whether ``error`` is a 403 Forbidden failure."""
    if not isinstance(error, BaseException):
        return False
    explicit = _has_kind(error, ErrorKind.forbidden)
    if explicit is not None:
        return explicit
    if "PermissionDeniedError" in _class_names(error):
        return True
    if _status_code(error) == 403:
        return True
    message = _message(error)
    return " 403" in message or "forbidden" in message.lower()


def is_bad_request_error(error: Any) -> bool:
    """Check whether ``error`` is a 400 Bad Request failure.

    Providers that cannot honour a JSON-schema ``response_format`` report it as
    a bad request, so that pattern is recognised as well.
    """
    if not isinstance(error, BaseException):
        return False
    explicit = _has_kind(error, ErrorKind.bad_request)
    if explicit is not None:
        return explicit
    if "BadRequestError" in _class_names(error):
        return True
    if _status_code(error) == 400:
        return True
    message = _message(error)
    return (
        " 400" in message
        or "badrequest" in message.lower()
        or "Invalid parameter" in message
        or ("response_format" in message and "json_schema" in message and "not supported" in message)
    )


def is_aborted_error(error: Any) -> bool:
    """Check whether ``error`` signals cancellation."""
    if not isinstance(error, BaseException):
        return False
    explicit = _has_kind(error, ErrorKind.aborted)
    if explicit is not None:
        return explicit
    if isinstance(error, asyncio.CancelledError):
        return True
    if "AbortError" in _class_names(error):
        return True
    return "aborted" in _message(error).lower()


_CONFLICT_MARKERS: tuple[str, str] = ("cannot access a chrome-extension", "of different extension")


def is_environment_conflict_error(error: Any) -> bool:
    """Check whether ``error`` (an exception or a raw message) is a cross-extension access denial."""
    if isinstance(error, ClassifiedError):
        return error.kind == ErrorKind.environment_conflict
    if isinstance(error, BaseException):
        text = _message(error)
    elif isinstance(error, str):
        text = error
    else:
        return False
    lowered = text.lower()
    return all(marker in lowered for marker in _CONFLICT_MARKERS)


_PRIORITY: Iterable[tuple[Any, type[ClassifiedError]]] = (
    (is_aborted_error, RequestCancelledError),
    (is_authentication_error, ChatModelAuthError),
    (is_forbidden_error, ChatModelForbiddenError),
    (is_bad_request_error, ChatModelBadRequestError),
    (is_environment_conflict_error, EnvironmentConflictError),
)


def classify_error(error: BaseException) -> ClassifiedError:
    """Map a raw failure onto the taxonomy.

    The predicates are applied in priority order
    (aborted > authentication > forbidden > bad request > environment conflict)
    because one message can match several patterns. Cancellation always wins.

    Args:
        error: The exception observed at a layer boundary.

    Returns:
        ClassifiedError: ``error`` itself if it is already classified, otherwise
        a new typed error whose ``cause`` is ``error``. The original message is
        preserved verbatim.
    """
    if isinstance(error, ClassifiedError):
        return error
    message = _message(error) or type(error).__name__
    for predicate, error_cls in _PRIORITY:
        if predicate(error):
            return error_cls(message, cause=error)
    return UnclassifiedError(message, cause=error)


def error_kind(error: Any) -> ErrorKind:
    """Return the kind ``error`` would be classified as, without raising."""
    if not isinstance(error, BaseException):
        return ErrorKind.unclassified
    return classify_error(error).kind
