"""Running MD5 over the chunks of a payload."""

import hashlib


class ChunkChecksum:
    """Incremental MD5 that yields the digest of everything fed so far.

    The value for chunk N covers chunks 0..N, so chunks must be fed in
    index order with none skipped.
    """

    def __init__(self) -> None:
        self._md5 = hashlib.md5()
        self.chunks_fed = 0

    def update(self, data: bytes) -> str:
        """Fold ``data`` in and return the running hex digest."""
        self._md5.update(data)
        self.chunks_fed += 1
        return self._md5.hexdigest()

    def reset(self) -> None:
        self._md5 = hashlib.md5()
        self.chunks_fed = 0
