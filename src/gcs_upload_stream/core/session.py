"""Upload session: sequences chunk PUTs against a resumable upload URL."""

import logging
import re
import threading
from typing import Any, Callable, Dict, Optional, Union

from requests.structures import CaseInsensitiveDict

from .checksum import ChunkChecksum
from .classifier import (
    CHUNK_ALLOWED_STATUSES,
    FINALIZE_ALLOWED_STATUSES,
    PROBE_ALLOWED_STATUSES,
    check_response_status,
)
from .exceptions import (
    DifferentChunkError,
    InvalidChunkSizeError,
    InvalidRangeHeaderError,
    MissingOptionsError,
    RetryError,
    UploadUnableToRecoverError,
)
from .models import MIN_CHUNK_SIZE, ChunkProgress, UploadConfiguration
from .pause import PauseGate
from .retry import RetryPolicy
from .storage import ChecksumStore, MemoryChecksumStore
from .transport import RequestsTransport

logger = logging.getLogger(__name__)

_RANGE_RE = re.compile(r"^bytes=(\d+)-(\d+)$", flags=re.IGNORECASE)


class UploadSession:
    """State machine for one resumable upload attempt.

    The caller feeds chunks in increasing index order. Each chunk is PUT with
    a ``Content-Range`` header, retried under the configured backoff, and its
    running checksum is recorded once the server accepts it.
    """

    def __init__(
        self,
        config: Union[UploadConfiguration, Dict[str, Any]],
        allow_small_chunks: bool = False,
        transport: Optional[Any] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        """Create the session, validating its configuration.

        Args:
            config: Upload options, as a model or a dict of its fields
            allow_small_chunks: Accept chunk sizes that are not multiples of 262144
            transport: Object with a ``put`` method; defaults to RequestsTransport
            sleep: Sleep function used between retries (defaults to time.sleep)

        Raises:
            InvalidChunkSizeError: If the chunk size is zero or misaligned
            MissingOptionsError: If ``id`` or ``url`` is missing
        """
        if isinstance(config, dict):
            config = UploadConfiguration(**config)

        misaligned = config.chunk_size % MIN_CHUNK_SIZE != 0
        if config.chunk_size <= 0 or (misaligned and not allow_small_chunks):
            raise InvalidChunkSizeError(config.chunk_size)
        if not config.id:
            raise MissingOptionsError("The 'id' option is required")
        if not config.url:
            raise MissingOptionsError("The 'url' option is required")

        logger.debug("Creating new upload stream session:")
        logger.debug(f" - Url: {config.url}")
        logger.debug(f" - Id: {config.id}")
        logger.debug(" - File size: Unknown / Streaming")
        logger.debug(f" - Chunk size: {config.chunk_size}")

        self.config = config
        self.transport = transport or RequestsTransport()
        self.storage: ChecksumStore = config.storage or MemoryChecksumStore()
        self.gate = PauseGate()
        self.checksum = ChunkChecksum()
        self._sleep = sleep
        self.stored_checksums = self.storage.load(config.id, config.chunk_size)

    @property
    def chunk_size(self) -> int:
        return self.config.chunk_size

    @property
    def paused(self) -> bool:
        return self.gate.paused

    def _retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            retries=self.config.backoff_retry_limit,
            min_delay=self.config.backoff_delay_millis,
            sleep=self._sleep,
        )

    def upload_chunk(
        self,
        index: int,
        data: Union[bytes, bytearray, memoryview],
        abort: Optional[threading.Event] = None,
        total_size: Optional[int] = None,
    ) -> None:
        """Upload chunk ``index``, blocking while the session is paused.

        Args:
            index: Zero-based chunk index
            data: Chunk bytes; only the final chunk may be shorter than chunk_size
            abort: Optional event that abandons a paused wait
            total_size: Payload size, sent on the final chunk so the server can
                finalize the object; ``*`` is sent when omitted

        Raises:
            UploadUnableToRecoverError: If every attempt failed
        """
        if index < 0:
            raise ValueError(f"Chunk index must be >= 0, got {index}")
        if len(data) == 0:
            raise ValueError("Chunk data must not be empty")

        config = self.config
        length = len(data)
        start = index * config.chunk_size
        end = start + length - 1

        if self.gate.paused:
            logger.debug(f"Chunk {index} waiting for unpause")
            self.gate.check_and_wait(abort)

        if index != self.checksum.chunks_fed:
            logger.warning(
                f"Chunk {index} fed after {self.checksum.chunks_fed} chunks; "
                "running checksum will not match the payload"
            )
        checksum = self.checksum.update(data)

        headers = {
            "Content-Type": config.content_type,
            "Content-Range": f"bytes {start}-{end}/{'*' if total_size is None else total_size}",
        }

        logger.debug(f"Uploading chunk {index}:")
        logger.debug(f" - Chunk length: {length}")
        logger.debug(f" - Start: {start}")
        logger.debug(f" - End: {end}")

        def report(sent: int) -> None:
            config.on_progress(
                ChunkProgress(
                    total_bytes=start + length,
                    uploaded_bytes=start + sent,
                    chunk_index=index,
                    chunk_length=length,
                )
            )

        def attempt(number: int) -> None:
            response = self.transport.put(
                config.url, data, headers=headers, on_upload_progress=report
            )
            check_response_status(response, config, CHUNK_ALLOWED_STATUSES)

        try:
            self._retry_policy().call(attempt, f"Chunk {index}")
        except RetryError as e:
            raise UploadUnableToRecoverError() from e.__cause__

        logger.debug(f"Chunk upload succeeded, adding checksum {checksum}")
        self.storage.put(config.id, index, checksum)

        config.on_chunk_upload(
            ChunkProgress(uploaded_bytes=end + 1, chunk_index=index, chunk_length=length)
        )

    def verify_chunk(self, index: int, data: Union[bytes, bytearray, memoryview]) -> str:
        """Replay an already uploaded chunk through the running checksum.

        Feeding chunks ``0..resume_index - 1`` this way restores the checksum
        state after a restart and proves the local payload has not changed.

        Raises:
            DifferentChunkError: If no checksum is stored or it does not match
        """
        checksum = self.checksum.update(data)
        stored = self.storage.get(self.config.id, index)
        if stored != checksum:
            logger.info(f"Chunk {index} checksum {checksum} does not match stored {stored}")
            raise DifferentChunkError(index)
        return checksum

    def record_chunk(self, index: int, data: Union[bytes, bytearray, memoryview]) -> str:
        """Store the checksum of a chunk the server holds but the store missed.

        Covers a crash between an accepted PUT and the checksum write.
        """
        checksum = self.checksum.update(data)
        logger.debug(f"Recording checksum {checksum} for chunk {index} held by the server")
        self.storage.put(self.config.id, index, checksum)
        return checksum

    def finalize(self, total_size: int) -> None:
        """Tell the server the upload is complete without sending more data.

        Used for empty payloads, which have no final chunk to carry the size.

        Raises:
            UploadUnableToRecoverError: If every attempt failed
        """
        config = self.config
        headers = {"Content-Range": f"bytes */{total_size}"}

        def attempt(number: int) -> None:
            response = self.transport.put(config.url, None, headers=headers)
            check_response_status(response, config, FINALIZE_ALLOWED_STATUSES)

        try:
            self._retry_policy().call(attempt, "Finalize")
        except RetryError as e:
            raise UploadUnableToRecoverError() from e.__cause__
        logger.debug(f"Upload {config.id} finalized at {total_size} bytes")

    def get_remote_resume_index(self) -> int:
        """Ask the server how many whole chunks it holds.

        Never gated by pause. A 308 without a Range header means nothing has
        been received yet.

        Returns:
            Index of the next chunk to send

        Raises:
            InvalidRangeHeaderError: If the Range header is malformed
        """
        config = self.config
        logger.debug("Retrieving upload status from server")
        response = self.transport.put(config.url, None, headers={"Content-Range": "bytes */*"})

        check_response_status(response, config, PROBE_ALLOWED_STATUSES)
        header = CaseInsensitiveDict(response.headers or {}).get("Range")
        logger.debug(f"Received upload status from server: {header}")

        if header is None:
            return 0
        match = _RANGE_RE.match(header.strip())
        if match is None:
            raise InvalidRangeHeaderError(response, header)

        bytes_received = int(match.group(2)) + 1
        return bytes_received // config.chunk_size

    def pause(self) -> None:
        logger.debug("Upload stream paused")
        self.gate.pause()

    def unpause(self) -> None:
        logger.debug("Upload stream unpaused")
        self.gate.unpause()

    def cancel(self) -> None:
        """Forget every stored checksum for this upload.

        Requests already in flight are not interrupted.
        """
        self.storage.clear(self.config.id)
        self.stored_checksums = {}
        logger.info(f"Upload {self.config.id} cancelled")
