"""Transfer backend: connection lifecycle plus every capability over one session."""

import logging
from collections.abc import Iterator
from enum import Enum
from typing import TYPE_CHECKING, BinaryIO

from termxfer.log_sanitizer import LogSanitizer

from .exceptions import (
    ConnectionFailedError,
    DirStatFailedError,
    FileCreateDeniedError,
    FileTransferError,
    NoSuchFileOrDirectoryError,
    ProtocolError,
    TransferIOError,
    UninitializedSessionError,
)
from .fs_entry import FsEntry
from .metadata import normalize_listing
from .path_resolver import PathResolver
from .recursive import remove_entry, walk as walk_tree
from .sessions.base import RemoteSession
from .transfer_engine import DEFAULT_CHUNK_SIZE, ProgressCallback, TransferEngine

if TYPE_CHECKING:
    from .protocol import FileTransferProtocol

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_DIR_MODE = 0o755


class ConnectionState(Enum):
    """Lifecycle of a backend's single session."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    READY = "ready"


class RemoteFileTransfer:
    """One protocol backend: owns a session and the remote working directory.

    The protocol-specific part is entirely inside ``session``; this class
    composes path resolution, listing normalization, the transfer engine and
    recursive removal on top of it. Not safe for concurrent use: run at most
    one operation at a time per instance.

    Example:
        >>> backend = RemoteFileTransfer(SftpSession(), FileTransferProtocol.SFTP)
        >>> backend.connect("example.com", 22, "alice", "secret")
        >>> backend.change_dir("projects")
        '/home/alice/projects'
        >>> with open("notes.txt", "rb") as f:
        ...     backend.send(f, "notes.txt")
    """

    def __init__(
        self,
        session: RemoteSession,
        protocol: "FileTransferProtocol | None" = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.session = session
        self.protocol = protocol
        self.timeout = timeout
        self.engine = TransferEngine(chunk_size)
        self.state = ConnectionState.DISCONNECTED
        self._wrkdir: str | None = None
        self._resolver = PathResolver(self._realpath, lambda: self._wrkdir)

    def __repr__(self) -> str:
        return f"RemoteFileTransfer(protocol={self.protocol}, state={self.state.value})"

    # -------------------------
    # Connection lifecycle
    # -------------------------
    def is_connected(self) -> bool:
        return self.state is ConnectionState.READY

    def _require_connected(self) -> None:
        if not self.is_connected():
            raise UninitializedSessionError()

    def connect(
        self,
        address: str,
        port: int,
        username: str | None = None,
        password: str | None = None,
    ) -> None:
        """Open, authenticate and seed the working directory.

        Raises:
            BadAddressError: Host cannot be resolved or reached
            ConnectionFailedError: Handshake failed, or already connected
            AuthenticationFailedError: Credentials rejected
            ProtocolError: No file channel or no login directory
        """
        if self.state is not ConnectionState.DISCONNECTED:
            raise ConnectionFailedError("Already connected; disconnect first")

        logger.debug(f"Connecting to {address}:{port} over {self.protocol or 'remote session'}")
        try:
            self.state = ConnectionState.CONNECTING
            self.session.open(address, port, self.timeout)
            self.state = ConnectionState.AUTHENTICATING
            self.session.authenticate(username, password)
            self.session.start_file_channel()
            try:
                wrkdir = self.session.realpath(".")
            except OSError as e:
                raise ProtocolError(f"Could not determine login directory: {e}") from e
        except FileTransferError as e:
            self._reset()
            logger.debug(LogSanitizer.redact_value(f"Connection to {address}:{port} failed: {e}", password))
            raise
        except BaseException:
            self._reset()
            raise

        self._wrkdir = wrkdir
        self.state = ConnectionState.READY
        logger.info(f"Connected to {address}:{port}, working directory {wrkdir}")

    def _reset(self) -> None:
        try:
            self.session.close()
        except OSError as e:
            logger.debug(f"Ignoring error while discarding session: {e}")
        self._wrkdir = None
        self.state = ConnectionState.DISCONNECTED

    def disconnect(self) -> None:
        """Close the session.

        Raises:
            UninitializedSessionError: Not connected
            ConnectionFailedError: Close handshake failed
        """
        self._require_connected()
        try:
            self.session.close()
        except OSError as e:
            raise ConnectionFailedError(f"Disconnect failed: {e}") from e
        self._wrkdir = None
        self.state = ConnectionState.DISCONNECTED
        logger.info("Disconnected")

    # -------------------------
    # Navigation
    # -------------------------
    def _realpath(self, path: str) -> str:
        return self.session.realpath(path)

    def pwd(self) -> str:
        self._require_connected()
        assert self._wrkdir is not None
        return self._wrkdir

    def change_dir(self, path: str) -> str:
        """Change the working directory; it is unchanged on failure.

        Raises:
            UninitializedSessionError: Not connected
            NoSuchFileOrDirectoryError: Relative path does not resolve
        """
        self._require_connected()
        self._wrkdir = self._resolver.resolve_strict(path)
        return self._wrkdir

    def list_dir(self, path: str = ".") -> list[FsEntry]:
        """List ``path`` as normalized entries.

        Raises:
            UninitializedSessionError: Not connected
            NoSuchFileOrDirectoryError: Relative path does not resolve
            DirStatFailedError: Directory could not be enumerated
        """
        self._require_connected()
        directory = self._resolver.resolve_strict(path)
        try:
            pairs = self.session.listdir(directory)
        except OSError as e:
            raise DirStatFailedError(f"Could not list {directory}: {e}") from e
        return normalize_listing(pairs, self.session.readlink)

    def mkdir(self, path: str) -> str:
        """Create a directory and return its absolute path.

        Raises:
            UninitializedSessionError: Not connected
            FileCreateDeniedError: Directory could not be created
        """
        self._require_connected()
        target = self._resolver.resolve_best_effort(path)
        try:
            self.session.mkdir(target, DEFAULT_DIR_MODE)
        except OSError as e:
            raise FileCreateDeniedError(f"Could not create directory {target}: {e}") from e
        return target

    # -------------------------
    # Tree operations
    # -------------------------
    def remove(self, entry: FsEntry) -> None:
        """Remove a file or a whole directory tree; aborts on the first failure.

        Raises:
            UninitializedSessionError: Not connected
            FileReadonlyError: An entry could not be removed
            DirStatFailedError: A directory could not be listed
        """
        self._require_connected()
        remove_entry(entry, self.list_dir, self.session.unlink, self.session.rmdir)

    def walk(self, path: str = ".") -> Iterator[tuple[int, FsEntry]]:
        """Yield (depth, entry) for everything below ``path``, pre-order.

        Entries directly inside ``path`` have depth 0.
        """
        for entry in self.list_dir(path):
            yield from walk_tree(entry, self.list_dir)

    # -------------------------
    # Transfers
    # -------------------------
    def send(self, local: BinaryIO, remote_name: str, progress: ProgressCallback | None = None) -> int:
        """Upload ``local`` to ``remote_name``; returns bytes sent.

        Raises:
            UninitializedSessionError: Not connected
            FileCreateDeniedError: Remote file could not be created
            TransferIOError: Streaming failed (remote file may be truncated)
        """
        self._require_connected()
        remote_path = self._resolver.resolve_best_effort(remote_name)
        total = self.engine.measure(local)
        try:
            remote = self.session.open_write(remote_path, total)
        except OSError as e:
            raise FileCreateDeniedError(f"Could not create {remote_path}: {e}") from e

        try:
            sent = self.engine.copy(local, remote, total, progress)
        except TransferIOError:
            self._discard(remote)
            raise
        self._finish(remote)
        logger.debug(f"Sent {sent} bytes to {remote_path}")
        return sent

    def receive(self, remote_name: str, local: BinaryIO, progress: ProgressCallback | None = None) -> int:
        """Download ``remote_name`` into ``local``; returns bytes received.

        Raises:
            UninitializedSessionError: Not connected
            NoSuchFileOrDirectoryError: Remote file missing or unreadable
            TransferIOError: Streaming failed (local file may be truncated)
        """
        self._require_connected()
        remote_path = self._resolver.resolve_strict(remote_name)
        try:
            remote = self.session.open_read(remote_path)
        except OSError as e:
            raise NoSuchFileOrDirectoryError(f"Could not open {remote_path}: {e}") from e

        try:
            total = self.engine.measure(remote)
            received = self.engine.copy(remote, local, total, progress)
        except TransferIOError:
            self._discard(remote)
            raise
        self._finish(remote)
        logger.debug(f"Received {received} bytes from {remote_path}")
        return received

    @staticmethod
    def _finish(remote: BinaryIO) -> None:
        try:
            remote.close()
        except (OSError, ValueError) as e:
            raise TransferIOError(e) from e

    @staticmethod
    def _discard(remote: BinaryIO) -> None:
        try:
            remote.close()
        except (OSError, ValueError) as e:
            logger.debug(f"Ignoring error while closing aborted transfer: {e}")
