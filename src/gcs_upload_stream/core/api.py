"""Programmatic API for uploading local files through an upload session."""

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from .exceptions import DifferentChunkError
from .models import UploadConfiguration
from .processor import FileProcessor
from .session import UploadSession

logger = logging.getLogger(__name__)


class ResumableFileUploader:
    """Drives an UploadSession over the chunks of a local file.

    When checksums from an earlier attempt are stored, the uploader asks the
    server where to resume, replays the already uploaded chunks through the
    session to check the file is unchanged, then sends the rest.
    """

    def __init__(
        self,
        config: Union[UploadConfiguration, Dict[str, Any]],
        transport: Optional[Any] = None,
        allow_small_chunks: bool = False,
        restart_on_mismatch: bool = False,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        """Initialize the uploader.

        Args:
            config: Upload options, as a model or a dict of its fields
            transport: Transport passed to the session
            allow_small_chunks: Accept chunk sizes below the 256 KiB granularity
            restart_on_mismatch: Start over from chunk 0 instead of raising when
                the local file no longer matches the stored checksums
            sleep: Sleep function used between retries
        """
        if isinstance(config, dict):
            config = UploadConfiguration(**config)
        self.config = config
        self.restart_on_mismatch = restart_on_mismatch
        self._session_kwargs = {
            "allow_small_chunks": allow_small_chunks,
            "transport": transport,
            "sleep": sleep,
        }
        self.abort = threading.Event()
        self.session = self._new_session()

    def _new_session(self) -> UploadSession:
        return UploadSession(self.config, **self._session_kwargs)

    def resume_index(self, processor: FileProcessor) -> int:
        """Work out the first chunk to send, verifying those before it."""
        if not self.session.stored_checksums:
            return 0

        remote_index = min(self.session.get_remote_resume_index(), processor.total_chunks)
        logger.info(f"Server holds {remote_index} chunks of {processor.total_chunks}")

        try:
            for index, data in processor.iter_chunks(0, remote_index):
                if index in self.session.stored_checksums:
                    self.session.verify_chunk(index, data)
                else:
                    self.session.record_chunk(index, data)
        except DifferentChunkError:
            if not self.restart_on_mismatch:
                raise
            logger.warning("Local file changed since the last attempt; restarting from chunk 0")
            self.session.cancel()
            self.session = self._new_session()
            return 0
        return remote_index

    def upload(self, local_path: Union[str, Path]) -> int:
        """Upload ``local_path``, resuming a previous attempt if possible.

        Returns:
            Size of the uploaded file in bytes
        """
        processor = FileProcessor(local_path, self.config.chunk_size)
        file_size = processor.file_size
        total_chunks = processor.total_chunks

        # Each run starts from the store, not from a previous run's checksum state
        paused = self.session.paused
        self.abort.clear()
        self.session = self._new_session()
        if paused:
            self.session.pause()

        logger.info(
            f"Uploading {processor.path} ({file_size} bytes) in {total_chunks} chunks "
            f"of up to {self.config.chunk_size} bytes"
        )

        if total_chunks == 0:
            self.session.finalize(0)
            logger.info(f"Upload of empty file {processor.path} completed")
            return 0

        start = self.resume_index(processor)
        if start:
            logger.info(f"Resuming from chunk {start} of {total_chunks}")

        for index, data in processor.iter_chunks(start):
            last = index == total_chunks - 1
            self.session.upload_chunk(
                index,
                data,
                abort=self.abort,
                total_size=file_size if last else None,
            )

        logger.info(f"Upload of {processor.path} completed")
        return file_size

    def pause(self) -> None:
        self.session.pause()

    def unpause(self) -> None:
        self.session.unpause()

    def cancel(self) -> None:
        """Abandon any paused wait and forget stored checksums."""
        self.abort.set()
        self.session.cancel()


# Convenience functions for quick usage
def upload_file(
    local_path: Union[str, Path],
    url: str,
    upload_id: str,
    **options: Any,
) -> int:
    """Quick function to upload a file to a resumable upload URL."""
    restart_on_mismatch = options.pop("restart_on_mismatch", False)
    transport = options.pop("transport", None)
    uploader = ResumableFileUploader(
        UploadConfiguration(id=upload_id, url=url, **options),
        transport=transport,
        restart_on_mismatch=restart_on_mismatch,
    )
    return uploader.upload(local_path)


def get_resume_index(url: str, upload_id: str, **options: Any) -> int:
    """Quick function to ask the server which chunk to resume from."""
    transport = options.pop("transport", None)
    session = UploadSession(
        UploadConfiguration(id=upload_id, url=url, **options), transport=transport
    )
    return session.get_remote_resume_index()
