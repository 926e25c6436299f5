"""Error taxonomy for gateway, cache and upload operations.

Every failure that leaves the query coordinator, the upload orchestrator or
the folder registry is one of the ``DocumentError`` subclasses below. Raw
``httpx`` exceptions and malformed payloads are translated by
``classify_error`` so callers only ever deal with a short, human-readable
message and a stable ``kind``.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

import httpx
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)


class DocumentError(Exception):
    """Base class for all document-management errors."""

    kind = "unknown"
    status_code = 500
    retryable = False
    default_message = "An unexpected error occurred. Please try again."

    def __init__(self, message: str | None = None, *, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "error": self.kind}


class ValidationError(DocumentError):
    """A required field is missing or a value is not acceptable."""

    kind = "validation"
    status_code = 400
    default_message = "The request is not valid."


class AuthError(DocumentError):
    """The remote API rejected the session (401/403)."""

    kind = "authorization"
    status_code = 401
    default_message = "You do not have permission to perform this action."


class NotFoundError(DocumentError):
    """The folder or file no longer exists."""

    kind = "not_found"
    status_code = 404
    default_message = "The requested item could not be found."


class ConflictError(DocumentError):
    """Duplicate name, or an operation already running on the same item."""

    kind = "conflict"
    status_code = 409
    default_message = "An item with this name already exists."


class TransportError(DocumentError):
    """Network or connectivity failure talking to the remote API."""

    kind = "transport"
    status_code = 503
    retryable = True
    default_message = "Network error occurred. Please check your connection and try again."


class UnknownError(DocumentError):
    """Anything that could not be classified."""

    kind = "unknown"
    status_code = 500
    retryable = True


_STATUS_MAP: dict[int, type[DocumentError]] = {
    400: ValidationError,
    401: AuthError,
    403: AuthError,
    404: NotFoundError,
    409: ConflictError,
    413: ValidationError,
    422: ValidationError,
    502: TransportError,
    503: TransportError,
    504: TransportError,
}


def error_for_status(status_code: int | None, message: str | None = None, details: Any = None) -> DocumentError:
    """Build the taxonomy error matching an HTTP status code."""
    error_cls = _STATUS_MAP.get(status_code or 0, UnknownError)
    return error_cls(message, details=details)


def _response_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return text[:200] or None
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or body.get("detail")
    return None


def classify_error(exc: BaseException) -> DocumentError:
    """Translate any exception into the document error taxonomy."""
    if isinstance(exc, DocumentError):
        return exc

    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return error_for_status(status, _response_message(exc.response), details={"status": status})

    if isinstance(exc, httpx.TimeoutException):
        return TransportError("The remote API did not respond in time.", details=str(exc))

    if isinstance(exc, httpx.TransportError):
        return TransportError(details=str(exc))

    if isinstance(exc, (PydanticValidationError, KeyError, TypeError, ValueError)):
        return UnknownError("The remote API returned an unexpected response.", details=str(exc))

    return UnknownError(str(exc) or None, details=type(exc).__name__)


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """Re-raise any failure inside the block as a ``DocumentError``."""
    try:
        yield
    except DocumentError as exc:
        logger.warning("%s failed (%s): %s", operation, exc.kind, exc.message)
        raise
    except Exception as exc:
        error = classify_error(exc)
        logger.warning("%s failed (%s): %s", operation, error.kind, error.message)
        raise error from exc
