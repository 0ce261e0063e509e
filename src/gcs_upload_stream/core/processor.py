"""Reads a local file as a sequence of fixed-size chunks."""

import math
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union


class FileProcessor:
    """Splits a file into chunks of ``chunk_size`` bytes; the last may be shorter."""

    def __init__(self, path: Union[str, Path], chunk_size: int):
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"Local file not found: {self.path}")
        if self.path.is_dir():
            raise ValueError(f"Path is a directory: {self.path}")
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.chunk_size = chunk_size

    @property
    def file_size(self) -> int:
        return self.path.stat().st_size

    @property
    def total_chunks(self) -> int:
        return math.ceil(self.file_size / self.chunk_size)

    def iter_chunks(
        self, start: int = 0, end: Optional[int] = None
    ) -> Iterator[Tuple[int, bytes]]:
        """Yield ``(index, data)`` for chunks ``start`` up to but excluding ``end``."""
        stop = self.total_chunks if end is None else min(end, self.total_chunks)
        with open(self.path, "rb") as f:
            f.seek(start * self.chunk_size)
            for index in range(start, stop):
                data = f.read(self.chunk_size)
                if not data:
                    break
                yield index, data
