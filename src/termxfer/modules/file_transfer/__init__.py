"""Unified remote file transfer over SFTP, SCP and FTP(S)."""

from .exceptions import (
    AuthenticationFailedError,
    BadAddressError,
    ConnectionFailedError,
    DirStatFailedError,
    FileCreateDeniedError,
    FileReadonlyError,
    FileTransferError,
    FileTransferErrorKind,
    NoSuchFileOrDirectoryError,
    ProtocolError,
    TransferIOError,
    UninitializedSessionError,
)
from .fs_entry import EPOCH, FsDirectory, FsEntry, FsFile
from .metadata import RawMetadata, normalize_entry, normalize_listing
from .path_resolver import PathResolver
from .protocol import FileTransfer, FileTransferProtocol, make_file_transfer
from .remote_transfer import ConnectionState, RemoteFileTransfer
from .transfer_engine import ProgressCallback, TransferEngine, TransferProgress

__all__ = [
    "EPOCH",
    "AuthenticationFailedError",
    "BadAddressError",
    "ConnectionFailedError",
    "ConnectionState",
    "DirStatFailedError",
    "FileCreateDeniedError",
    "FileReadonlyError",
    "FileTransfer",
    "FileTransferError",
    "FileTransferErrorKind",
    "FileTransferProtocol",
    "FsDirectory",
    "FsEntry",
    "FsFile",
    "NoSuchFileOrDirectoryError",
    "PathResolver",
    "ProgressCallback",
    "ProtocolError",
    "RawMetadata",
    "RemoteFileTransfer",
    "TransferEngine",
    "TransferIOError",
    "TransferProgress",
    "UninitializedSessionError",
    "make_file_transfer",
    "normalize_entry",
    "normalize_listing",
]
