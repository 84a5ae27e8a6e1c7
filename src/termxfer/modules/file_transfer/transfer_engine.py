"""Chunked streaming between a local and a remote file handle."""

import io
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import BinaryIO

from .exceptions import TransferIOError

logger = logging.getLogger(__name__)

# (bytes transferred so far, total bytes; 0 means unknown)
ProgressCallback = Callable[[int, int], None]

DEFAULT_CHUNK_SIZE = 64 * 1024
MIN_CHUNK_SIZE = 8 * 1024
MAX_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class TransferProgress:
    """Snapshot of a transfer, as reported to progress callbacks."""

    transferred: int
    total: int

    @property
    def known(self) -> bool:
        """False when the total size could not be determined."""
        return self.total > 0

    @property
    def ratio(self) -> float | None:
        if not self.known:
            return None
        return min(self.transferred / self.total, 1.0)


class TransferEngine:
    """Copy bytes in fixed-size chunks, reporting progress after each write.

    The engine never retries and never rolls back: on the first failing read
    or write it raises TransferIOError and the destination may be truncated.
    Closing either handle from another thread is how a caller cancels a
    transfer; the engine sees it as an I/O error on the next chunk.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if not MIN_CHUNK_SIZE <= chunk_size <= MAX_CHUNK_SIZE:
            raise ValueError(
                f"chunk_size must be between {MIN_CHUNK_SIZE} and {MAX_CHUNK_SIZE}, got {chunk_size}"
            )
        self.chunk_size = chunk_size

    @staticmethod
    def measure(handle: BinaryIO) -> int:
        """Return the size of ``handle`` and rewind it to the start.

        A handle that cannot seek to its end yields 0 (unknown). A handle that
        reached its end but cannot rewind raises, since copying from there
        would silently transfer nothing.

        Raises:
            TransferIOError: Rewind failed
        """
        try:
            handle.seek(0, io.SEEK_END)
            total = handle.tell()
        except (OSError, ValueError) as e:
            logger.debug(f"Size unknown, handle is not seekable: {e}")
            return 0
        try:
            handle.seek(0, io.SEEK_SET)
        except (OSError, ValueError) as e:
            raise TransferIOError(e) from e
        return total or 0

    def copy(
        self,
        reader: BinaryIO,
        writer: BinaryIO,
        total: int = 0,
        progress: ProgressCallback | None = None,
    ) -> int:
        """Copy ``reader`` into ``writer`` until a read returns no bytes.

        Args:
            reader: Source handle
            writer: Destination handle
            total: Expected size, 0 if unknown
            progress: Called as progress(transferred, total) after each chunk

        Returns:
            Number of bytes copied

        Raises:
            TransferIOError: A read or a write failed
        """
        transferred = 0
        while True:
            try:
                chunk = reader.read(self.chunk_size)
            except (OSError, ValueError) as e:
                raise TransferIOError(e) from e
            if not chunk:
                break
            try:
                writer.write(chunk)
            except (OSError, ValueError) as e:
                raise TransferIOError(e) from e
            transferred += len(chunk)
            if progress is not None:
                progress(transferred, total)
        return transferred
