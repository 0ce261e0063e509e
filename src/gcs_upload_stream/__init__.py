"""
GCS Upload Stream - chunked, resumable uploads to Google Cloud Storage style endpoints.

This package provides:
- UploadSession for sequencing chunk PUTs with retry, pause and resume
- ResumableFileUploader for driving a session over a local file
- Durable checksum stores for resuming after a restart
- CLI tool for uploading, probing and cancelling uploads
"""

__version__ = "1.0.0"

from .core.api import ResumableFileUploader, get_resume_index, upload_file
from .core.classifier import ResponseOutcome, check_response_status, classify_status
from .core.exceptions import (
    DifferentChunkError,
    FileAlreadyUploadedError,
    InvalidChunkSizeError,
    InvalidRangeHeaderError,
    MissingOptionsError,
    RetryError,
    UnknownResponseError,
    UploadAbortedError,
    UploadFailedError,
    UploadIncompleteError,
    UploadStreamError,
    UploadUnableToRecoverError,
    UrlNotFoundError,
)
from .core.models import MIN_CHUNK_SIZE, ChunkProgress, UploadConfiguration
from .core.pause import PauseGate
from .core.retry import RetryPolicy
from .core.session import UploadSession
from .core.storage import ChecksumStore, JsonFileChecksumStore, MemoryChecksumStore
from .core.transport import RequestsTransport, TransportResponse

__all__ = [
    # Core classes
    "UploadSession",
    "ResumableFileUploader",
    "UploadConfiguration",
    "ChunkProgress",
    "PauseGate",
    "RetryPolicy",
    "RequestsTransport",
    "TransportResponse",
    "ChecksumStore",
    "MemoryChecksumStore",
    "JsonFileChecksumStore",
    "ResponseOutcome",
    "MIN_CHUNK_SIZE",
    # Exceptions
    "UploadStreamError",
    "FileAlreadyUploadedError",
    "UrlNotFoundError",
    "UploadFailedError",
    "UploadUnableToRecoverError",
    "UnknownResponseError",
    "InvalidRangeHeaderError",
    "MissingOptionsError",
    "UploadIncompleteError",
    "InvalidChunkSizeError",
    "DifferentChunkError",
    "UploadAbortedError",
    "RetryError",
    # Convenience functions
    "classify_status",
    "check_response_status",
    "upload_file",
    "get_resume_index",
    # Metadata
    "__version__",
]
