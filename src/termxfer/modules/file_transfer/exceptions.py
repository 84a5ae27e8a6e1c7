"""Custom exceptions for file transfer.

Every public transfer operation either succeeds or raises exactly one of the
subclasses below. Each subclass carries a ``kind`` so callers that prefer to
branch on a value (the CLI, a UI) can do so without isinstance chains.
"""

from enum import Enum


class FileTransferErrorKind(Enum):
    """Discriminator for transfer errors."""

    BAD_ADDRESS = "BadAddress"
    CONNECTION_ERROR = "ConnectionError"
    AUTHENTICATION_FAILED = "AuthenticationFailed"
    PROTOCOL_ERROR = "ProtocolError"
    UNINITIALIZED_SESSION = "UninitializedSession"
    NO_SUCH_FILE_OR_DIRECTORY = "NoSuchFileOrDirectory"
    DIR_STAT_FAILED = "DirStatFailed"
    FILE_CREATE_DENIED = "FileCreateDenied"
    FILE_READONLY = "FileReadonly"
    IO_ERROR = "IoError"


class FileTransferError(Exception):
    """Base exception for file transfer errors."""

    kind: FileTransferErrorKind
    default_message = "File transfer failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class BadAddressError(FileTransferError):
    """Host could not be resolved or reached."""

    kind = FileTransferErrorKind.BAD_ADDRESS
    default_message = "Bad address"


class ConnectionFailedError(FileTransferError):
    """Session setup, handshake or teardown failed."""

    kind = FileTransferErrorKind.CONNECTION_ERROR
    default_message = "Connection error"


class AuthenticationFailedError(FileTransferError):
    """Credentials were rejected."""

    kind = FileTransferErrorKind.AUTHENTICATION_FAILED
    default_message = "Authentication failed"


class ProtocolError(FileTransferError):
    """Post-handshake negotiation failed (no file channel, no login directory)."""

    kind = FileTransferErrorKind.PROTOCOL_ERROR
    default_message = "Protocol error"


class UninitializedSessionError(FileTransferError):
    """Operation attempted without an active session."""

    kind = FileTransferErrorKind.UNINITIALIZED_SESSION
    default_message = "Uninitialized session"


class NoSuchFileOrDirectoryError(FileTransferError):
    """Remote path does not exist or cannot be canonicalized."""

    kind = FileTransferErrorKind.NO_SUCH_FILE_OR_DIRECTORY
    default_message = "No such file or directory"


class DirStatFailedError(FileTransferError):
    """Remote directory could not be enumerated."""

    kind = FileTransferErrorKind.DIR_STAT_FAILED
    default_message = "Could not stat directory"


class FileCreateDeniedError(FileTransferError):
    """Remote file or directory could not be created."""

    kind = FileTransferErrorKind.FILE_CREATE_DENIED
    default_message = "Failed to create file"


class FileReadonlyError(FileTransferError):
    """Remote entry could not be removed."""

    kind = FileTransferErrorKind.FILE_READONLY
    default_message = "File is readonly"


class TransferIOError(FileTransferError):
    """Streaming I/O failed on either side of a transfer."""

    kind = FileTransferErrorKind.IO_ERROR
    default_message = "I/O error"

    def __init__(self, cause: BaseException, message: str | None = None):
        super().__init__(message or f"{self.default_message}: {cause}")
        self.cause = cause
        self.__cause__ = cause
