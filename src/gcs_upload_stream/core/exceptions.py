"""
Exception classes for GCS Upload Stream.

Configuration errors are raised at session construction. Response errors are
raised per attempt and absorbed by the retry loop, which surfaces a single
UploadUnableToRecoverError once its budget is spent.
"""

from typing import Any, Dict, Optional


class UploadStreamError(Exception):
    """Base exception for all upload stream errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


# Configuration errors
class MissingOptionsError(UploadStreamError):
    """Raised when a required option is absent."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class InvalidChunkSizeError(UploadStreamError):
    """Raised when the chunk size is not a positive multiple of the minimum."""

    def __init__(self, size: int) -> None:
        super().__init__(
            f"Invalid chunk size {size}: must be a multiple of 262144 bytes",
            {"chunk_size": size},
        )
        self.size = size


# Response errors
class FileAlreadyUploadedError(UploadStreamError):
    """Raised when the server reports the upload as already complete."""

    def __init__(self, upload_id: str, url: str) -> None:
        super().__init__(
            f"File '{upload_id}' has already been uploaded",
            {"id": upload_id, "url": url},
        )
        self.upload_id = upload_id
        self.url = url


class UrlNotFoundError(UploadStreamError):
    """Raised when the upload URL no longer exists."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Upload URL not found: {url}", {"url": url})
        self.url = url


class UploadFailedError(UploadStreamError):
    """Raised for 5xx responses."""

    def __init__(self, status: int) -> None:
        super().__init__(f"Upload failed with status {status}", {"status": status})
        self.status = status


class UploadIncompleteError(UploadStreamError):
    """Raised when the server reports an incomplete upload where one was not expected."""

    def __init__(self) -> None:
        super().__init__("Upload is incomplete")


class UnknownResponseError(UploadStreamError):
    """Raised for responses that do not map to a known outcome."""

    def __init__(self, response: Any, message: Optional[str] = None) -> None:
        status = getattr(response, "status", None)
        details = {"status": status} if status is not None else {}
        super().__init__(message or "Unknown response received from server", details)
        self.response = response


class InvalidRangeHeaderError(UnknownResponseError):
    """Raised when a status probe returns a Range header that cannot be parsed."""

    def __init__(self, response: Any, header: str) -> None:
        super().__init__(response, f"Unexpected Range header: {header!r}")
        self.details["range"] = header
        self.header = header


# Terminal and flow errors
class UploadUnableToRecoverError(UploadStreamError):
    """Raised when a chunk could not be uploaded within the retry budget."""

    def __init__(self) -> None:
        super().__init__("Upload could not recover after retrying")


class RetryError(UploadStreamError):
    """Raised by the retry policy once every attempt has failed."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Gave up after {attempts} attempts", {"attempts": attempts})
        self.attempts = attempts


class DifferentChunkError(UploadStreamError):
    """Raised when a local chunk does not match the checksum recorded for it."""

    def __init__(self, index: int) -> None:
        super().__init__(
            f"Chunk {index} differs from the previously uploaded data",
            {"chunk_index": index},
        )
        self.index = index


class UploadAbortedError(UploadStreamError):
    """Raised when a paused wait is abandoned."""

    def __init__(self) -> None:
        super().__init__("Upload aborted while paused")
