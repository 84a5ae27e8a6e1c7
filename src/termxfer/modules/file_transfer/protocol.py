"""Capability interface, protocol enum and backend factory."""

from enum import Enum
from pathlib import Path
from typing import BinaryIO, Protocol, assert_never

from .fs_entry import FsEntry
from .remote_transfer import DEFAULT_TIMEOUT, RemoteFileTransfer
from .sessions import FtpSession, ScpSession, SftpSession
from .transfer_engine import DEFAULT_CHUNK_SIZE, ProgressCallback


class FileTransferProtocol(Enum):
    """Supported wire protocols."""

    SFTP = "SFTP"
    SCP = "SCP"
    FTP = "FTP"
    FTPS = "FTPS"

    def __str__(self) -> str:
        return self.value

    @property
    def default_port(self) -> int:
        match self:
            case FileTransferProtocol.SFTP | FileTransferProtocol.SCP:
                return 22
            case FileTransferProtocol.FTP | FileTransferProtocol.FTPS:
                return 21
            case _:
                assert_never(self)

    @classmethod
    def from_str(cls, value: str) -> "FileTransferProtocol":
        """Parse a protocol name, case-insensitively.

        Raises:
            ValueError: Unknown protocol
        """
        try:
            return cls(value.strip().upper())
        except ValueError:
            choices = ", ".join(p.value.lower() for p in cls)
            raise ValueError(f"Unknown protocol '{value}' (expected one of: {choices})") from None


class FileTransfer(Protocol):
    """What every protocol backend offers, identically."""

    def connect(
        self, address: str, port: int, username: str | None = None, password: str | None = None
    ) -> None: ...

    def disconnect(self) -> None: ...

    def is_connected(self) -> bool: ...

    def pwd(self) -> str: ...

    def change_dir(self, path: str) -> str: ...

    def list_dir(self, path: str = ".") -> list[FsEntry]: ...

    def mkdir(self, path: str) -> str: ...

    def remove(self, entry: FsEntry) -> None: ...

    def send(self, local: BinaryIO, remote_name: str, progress: ProgressCallback | None = None) -> int: ...

    def receive(self, remote_name: str, local: BinaryIO, progress: ProgressCallback | None = None) -> int: ...


def make_file_transfer(
    protocol: FileTransferProtocol,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    timeout: float = DEFAULT_TIMEOUT,
    known_hosts: Path | None = None,
) -> RemoteFileTransfer:
    """Build a disconnected backend for ``protocol``."""
    match protocol:
        case FileTransferProtocol.SFTP:
            session = SftpSession(known_hosts)
        case FileTransferProtocol.SCP:
            session = ScpSession(known_hosts)
        case FileTransferProtocol.FTP:
            session = FtpSession(secure=False)
        case FileTransferProtocol.FTPS:
            session = FtpSession(secure=True)
        case _:
            assert_never(protocol)
    return RemoteFileTransfer(session, protocol, chunk_size=chunk_size, timeout=timeout)
