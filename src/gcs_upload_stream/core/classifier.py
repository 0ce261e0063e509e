"""Maps resumable-upload response statuses to outcomes."""

from enum import Enum
from typing import Any, Iterable

from .exceptions import (
    FileAlreadyUploadedError,
    UnknownResponseError,
    UploadFailedError,
    UploadIncompleteError,
    UrlNotFoundError,
)

PERMANENT_REDIRECT = 308
SERVER_ERRORS = (500, 502, 503, 504)

# Statuses a chunk PUT may legitimately answer with
CHUNK_ALLOWED_STATUSES = (200, 201, PERMANENT_REDIRECT)
# Statuses a status probe may answer with
PROBE_ALLOWED_STATUSES = (PERMANENT_REDIRECT,)
# Statuses that finalize an upload with no further payload
FINALIZE_ALLOWED_STATUSES = (200, 201)


class ResponseOutcome(str, Enum):
    """Classification of a server response."""

    SUCCESS = "success"
    INCOMPLETE = "incomplete"
    ALREADY_UPLOADED = "already_uploaded"
    URL_NOT_FOUND = "url_not_found"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"


def classify_status(status: int, allowed: Iterable[int] = ()) -> ResponseOutcome:
    """Classify ``status``; membership in ``allowed`` always means success."""
    if status in tuple(allowed):
        return ResponseOutcome.SUCCESS
    if status == PERMANENT_REDIRECT:
        return ResponseOutcome.INCOMPLETE
    if status in (200, 201):
        return ResponseOutcome.ALREADY_UPLOADED
    if status == 404:
        return ResponseOutcome.URL_NOT_FOUND
    if status in SERVER_ERRORS:
        return ResponseOutcome.SERVER_ERROR
    return ResponseOutcome.UNKNOWN


def check_response_status(response: Any, config: Any, allowed: Iterable[int] = ()) -> bool:
    """Raise the error matching ``response.status`` unless it is allowed.

    Args:
        response: Object exposing ``status``
        config: Upload configuration, used for the ``id`` and ``url`` in errors
        allowed: Statuses that count as success for this call

    Returns:
        True if the status is allowed
    """
    status = response.status
    outcome = classify_status(status, allowed)

    if outcome is ResponseOutcome.SUCCESS:
        return True
    if outcome is ResponseOutcome.INCOMPLETE:
        raise UploadIncompleteError()
    if outcome is ResponseOutcome.ALREADY_UPLOADED:
        raise FileAlreadyUploadedError(config.id, config.url)
    if outcome is ResponseOutcome.URL_NOT_FOUND:
        raise UrlNotFoundError(config.url)
    if outcome is ResponseOutcome.SERVER_ERROR:
        raise UploadFailedError(status)
    raise UnknownResponseError(response)
