"""
Pydantic models for GCS Upload Stream.

UploadConfiguration is frozen once built; the session validates the parts
of it (id, url, chunk size) whose failures map to dedicated error types.
"""

from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

MIN_CHUNK_SIZE = 262144  # 256 * 1024
"""Chunks of a resumable upload must come in multiples of 256 KiB."""


def _noop(progress: "ChunkProgress") -> None:
    return None


class ChunkProgress(BaseModel):
    """Progress report for a single chunk."""

    model_config = ConfigDict(frozen=True)

    total_bytes: Optional[int] = Field(
        None,
        description="Byte offset at which the chunk ends; only set on in-flight reports",
    )
    uploaded_bytes: int = Field(..., ge=0, description="Bytes of the payload sent so far")
    chunk_index: int = Field(..., ge=0, description="Index of the chunk being reported")
    chunk_length: int = Field(..., ge=0, description="Length of the chunk in bytes")


class UploadConfiguration(BaseModel):
    """Options for a single resumable upload."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: Optional[str] = Field(
        None,
        description="Identifies the upload for checksum persistence",
        examples=["videos/holiday.mp4"],
    )
    url: Optional[str] = Field(
        None,
        description="Resumable upload session URL",
        examples=["https://storage.googleapis.com/upload/storage/v1/b/bucket/o?upload_id=abc"],
    )
    chunk_size: int = Field(
        MIN_CHUNK_SIZE,
        description="Chunk size in bytes, a multiple of 262144",
    )
    content_type: str = Field("text/plain", description="Content-Type sent with each chunk")
    backoff_delay_millis: int = Field(
        1000, ge=0, description="Delay before each retry in milliseconds"
    )
    backoff_retry_limit: int = Field(
        5, ge=0, description="Retries allowed per chunk after the first attempt"
    )
    on_chunk_upload: Callable[[ChunkProgress], Any] = Field(
        default=_noop, description="Called once a chunk has been accepted"
    )
    on_progress: Callable[[ChunkProgress], Any] = Field(
        default=_noop, description="Called as chunk bytes are sent"
    )
    storage: Optional[Any] = Field(
        None, description="Checksum store; defaults to an in-memory store"
    )
