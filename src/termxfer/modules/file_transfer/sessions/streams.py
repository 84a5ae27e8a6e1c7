"""File-like wrappers for remote data streams that are not real files.

SCP and FTP data connections are one-way byte pipes. The transfer engine only
needs ``read``/``write``/``close`` plus the ability to ask for the total size
(seek to end, tell, rewind), so these wrappers fake exactly that much seeking
when the size was announced up front, and refuse anything else.
"""

import io
import logging

logger = logging.getLogger(__name__)


class RemoteStream:
    """Base for one-way remote byte streams with an optionally known size."""

    def __init__(self, size: int | None = None):
        self._size = size
        self._pos = 0
        self._virtual_pos: int | None = None
        self.closed = False

    # Subclasses implement the transport side
    def _recv(self, n: int) -> bytes:
        raise io.UnsupportedOperation("stream is not readable")

    def _send(self, data: bytes) -> None:
        raise io.UnsupportedOperation("stream is not writable")

    def _finish(self) -> None:
        """Complete the transfer on close (acks, final replies)."""

    def _release(self) -> None:
        """Free the underlying channel or socket. Must not raise."""

    def _check_open(self) -> None:
        if self.closed:
            raise ValueError("I/O operation on closed stream")

    def read(self, n: int = -1) -> bytes:
        self._check_open()
        if self._virtual_pos is not None and self._virtual_pos > self._pos:
            return b""
        if self._size is not None:
            remaining = self._size - self._pos
            if remaining <= 0:
                return b""
            n = remaining if n is None or n < 0 else min(n, remaining)
        elif n is None or n < 0:
            n = 64 * 1024
        data = self._recv(n)
        if not data and self._size is not None:
            raise OSError(f"Remote stream ended after {self._pos} of {self._size} bytes")
        self._pos += len(data)
        return data

    def write(self, data: bytes) -> int:
        self._check_open()
        self._send(bytes(data))
        self._pos += len(data)
        return len(data)

    def tell(self) -> int:
        self._check_open()
        return self._virtual_pos if self._virtual_pos is not None else self._pos

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        """Only "jump to end" and "jump back to start" before any data moved."""
        self._check_open()
        if self._size is None or self._pos != 0:
            raise io.UnsupportedOperation("stream is not seekable")
        if whence == io.SEEK_SET:
            target = offset
        elif whence == io.SEEK_END:
            target = self._size + offset
        else:
            target = self.tell() + offset
        if target not in (0, self._size):
            raise io.UnsupportedOperation("stream only supports seeking to its start or end")
        self._virtual_pos = None if target == 0 else target
        return target

    def close(self) -> None:
        """Complete the transfer. Raises OSError if the remote side rejects it."""
        if self.closed:
            return
        try:
            self._finish()
        finally:
            self.closed = True
            self._release()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
