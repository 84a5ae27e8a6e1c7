"""Remote session contract: the opaque transport under a transfer backend."""

from typing import BinaryIO, Protocol

from ..metadata import RawMetadata


class RemoteSession(Protocol):
    """What a transfer backend needs from a wire protocol.

    Connection-phase methods (open, authenticate, start_file_channel) raise the
    connection-phase FileTransferError subclasses, because only the session
    knows whether a failure was a bad address or a failed handshake. Every
    file operation raises OSError and leaves the mapping to the backend.
    """

    def open(self, address: str, port: int, timeout: float) -> None:
        """Reach the host and complete the transport handshake."""
        ...

    def authenticate(self, username: str | None, password: str | None) -> None:
        """Log in."""
        ...

    def start_file_channel(self) -> None:
        """Obtain whatever sub-channel file operations run on."""
        ...

    def close(self) -> None:
        """Gracefully close the session (raises OSError on failure)."""
        ...

    def realpath(self, path: str) -> str:
        """Canonical absolute path for ``path``."""
        ...

    def listdir(self, path: str) -> list[tuple[str, RawMetadata]]:
        """Entries of directory ``path`` as (absolute path, metadata) pairs."""
        ...

    def readlink(self, path: str) -> str:
        """Target of symlink ``path``."""
        ...

    def open_read(self, path: str) -> BinaryIO:
        """Open a remote file for streamed reading."""
        ...

    def open_write(self, path: str, size_hint: int = 0) -> BinaryIO:
        """Create or truncate a remote file for streamed writing.

        ``size_hint`` is the expected size, 0 if unknown. Protocols that must
        announce a size up front use it.
        """
        ...

    def unlink(self, path: str) -> None:
        """Remove a file."""
        ...

    def rmdir(self, path: str) -> None:
        """Remove an empty directory."""
        ...

    def mkdir(self, path: str, mode: int = 0o755) -> None:
        """Create a directory."""
        ...
