"""Remote session adapters, one per wire protocol."""

from .base import RemoteSession
from .ftp import FtpSession
from .scp import ScpSession
from .sftp import SftpSession

__all__ = ["FtpSession", "RemoteSession", "ScpSession", "SftpSession"]
