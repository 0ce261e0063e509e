"""Checksum stores keyed by upload id."""

import hashlib
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from threading import Lock
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)


class ChecksumStore(ABC):
    """Maps an upload id to the checksum of each uploaded chunk.

    Implementations must serialize writes for the same id.
    """

    @abstractmethod
    def load(self, upload_id: str, chunk_size: int) -> Dict[int, str]:
        """Open the entry for ``upload_id``, creating it if needed.

        An entry recorded at a different chunk size is discarded, because its
        indices no longer line up with the payload.

        Returns:
            Checksums already recorded, by chunk index
        """

    @abstractmethod
    def get(self, upload_id: str, index: int) -> Optional[str]:
        """Return the checksum recorded for ``index``, if any."""

    @abstractmethod
    def put(self, upload_id: str, index: int, checksum: str) -> None:
        """Record ``checksum`` for chunk ``index``."""

    @abstractmethod
    def checksums(self, upload_id: str) -> Dict[int, str]:
        """Return every recorded checksum for ``upload_id``."""

    @abstractmethod
    def clear(self, upload_id: str) -> None:
        """Drop every checksum recorded for ``upload_id``."""


class MemoryChecksumStore(ChecksumStore):
    """Process-local store, suitable for tests and one-shot uploads."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._entries: Dict[str, Dict] = {}

    def load(self, upload_id: str, chunk_size: int) -> Dict[int, str]:
        with self._lock:
            entry = self._entries.get(upload_id)
            if entry is None or entry["chunk_size"] not in (None, chunk_size):
                entry = {"chunk_size": chunk_size, "checksums": {}}
                self._entries[upload_id] = entry
            entry["chunk_size"] = chunk_size
            return dict(entry["checksums"])

    def get(self, upload_id: str, index: int) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(upload_id)
            return entry["checksums"].get(index) if entry else None

    def put(self, upload_id: str, index: int, checksum: str) -> None:
        with self._lock:
            entry = self._entries.setdefault(
                upload_id, {"chunk_size": None, "checksums": {}}
            )
            entry["checksums"][index] = checksum

    def checksums(self, upload_id: str) -> Dict[int, str]:
        with self._lock:
            entry = self._entries.get(upload_id)
            return dict(entry["checksums"]) if entry else {}

    def clear(self, upload_id: str) -> None:
        with self._lock:
            self._entries.pop(upload_id, None)


class JsonFileChecksumStore(ChecksumStore):
    """Durable store writing one JSON document per upload id.

    Documents look like ``{"id": ..., "chunk_size": ..., "checksums": {"0": ...}}``
    and are replaced atomically on every write.
    """

    def __init__(self, directory: Union[str, Path]):
        """Initialize the store.

        Args:
            directory: Directory holding the JSON documents; created if missing
        """
        self.directory = Path(directory).expanduser()
        self.directory.mkdir(parents=True, exist_ok=True)
        self._locks_guard = Lock()
        self._locks: Dict[str, Lock] = {}

    def _lock_for(self, upload_id: str) -> Lock:
        with self._locks_guard:
            return self._locks.setdefault(upload_id, Lock())

    def path_for(self, upload_id: str) -> Path:
        """Return the document path for ``upload_id``."""
        key = hashlib.sha256(upload_id.encode("utf-8")).hexdigest()
        return self.directory / f"{key}.json"

    def _read(self, upload_id: str) -> Optional[Dict]:
        path = self.path_for(upload_id)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.warning(f"Discarding unreadable checksum file {path}: {e}")
            return None

    def _write(self, upload_id: str, document: Dict) -> None:
        path = self.path_for(upload_id)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    @staticmethod
    def _decode(document: Optional[Dict]) -> Dict[int, str]:
        if not document:
            return {}
        return {int(k): v for k, v in document.get("checksums", {}).items()}

    def load(self, upload_id: str, chunk_size: int) -> Dict[int, str]:
        with self._lock_for(upload_id):
            document = self._read(upload_id)
            if document is not None and document.get("chunk_size") not in (None, chunk_size):
                logger.info(
                    f"Chunk size changed for {upload_id} "
                    f"({document.get('chunk_size')} -> {chunk_size}); resetting checksums"
                )
                document = None
            if document is None:
                document = {"id": upload_id, "chunk_size": chunk_size, "checksums": {}}
            document["chunk_size"] = chunk_size
            self._write(upload_id, document)
            return self._decode(document)

    def get(self, upload_id: str, index: int) -> Optional[str]:
        with self._lock_for(upload_id):
            return self._decode(self._read(upload_id)).get(index)

    def put(self, upload_id: str, index: int, checksum: str) -> None:
        with self._lock_for(upload_id):
            document = self._read(upload_id) or {
                "id": upload_id,
                "chunk_size": None,
                "checksums": {},
            }
            document.setdefault("checksums", {})[str(index)] = checksum
            self._write(upload_id, document)

    def checksums(self, upload_id: str) -> Dict[int, str]:
        with self._lock_for(upload_id):
            return self._decode(self._read(upload_id))

    def clear(self, upload_id: str) -> None:
        with self._lock_for(upload_id):
            path = self.path_for(upload_id)
            if path.exists():
                path.unlink()
