"""SFTP remote session over paramiko."""

import logging
import posixpath
import stat
from pathlib import Path

import paramiko

from ..exceptions import ProtocolError, UninitializedSessionError
from ..metadata import RawMetadata
from .ssh import SSHFile, SSHTransport, ssh_errors

logger = logging.getLogger(__name__)


def _attr_to_raw(sftp: paramiko.SFTPClient, path: str, attr: paramiko.SFTPAttributes) -> RawMetadata:
    st_mode = attr.st_mode
    is_symlink = st_mode is not None and stat.S_ISLNK(st_mode)
    is_dir = st_mode is not None and stat.S_ISDIR(st_mode)
    if is_symlink:
        # Classify a link by its target; an unreadable target leaves it a file
        try:
            target_mode = sftp.stat(path).st_mode
            is_dir = target_mode is not None and stat.S_ISDIR(target_mode)
        except (OSError, paramiko.SSHException):
            is_dir = False
    return RawMetadata(
        size=attr.st_size,
        atime=attr.st_atime,
        mtime=attr.st_mtime,
        mode=stat.S_IMODE(st_mode) if st_mode is not None else None,
        uid=attr.st_uid,
        gid=attr.st_gid,
        is_dir=is_dir,
        is_symlink=is_symlink,
    )


class SftpSession:
    """SSH session with the SFTP subsystem as its file channel."""

    def __init__(self, known_hosts: Path | None = None):
        self._ssh = SSHTransport(known_hosts)
        self._sftp: paramiko.SFTPClient | None = None

    def open(self, address: str, port: int, timeout: float) -> None:
        self._ssh.open(address, port, timeout)

    def authenticate(self, username: str | None, password: str | None) -> None:
        self._ssh.authenticate(username, password)

    def start_file_channel(self) -> None:
        try:
            sftp = paramiko.SFTPClient.from_transport(self._ssh.require())
        except (paramiko.SSHException, EOFError, OSError) as e:
            raise ProtocolError(f"Could not start SFTP subsystem: {e}") from e
        if sftp is None:
            raise ProtocolError("Could not start SFTP subsystem")
        self._sftp = sftp

    def _client(self) -> paramiko.SFTPClient:
        if self._sftp is None:
            raise UninitializedSessionError()
        return self._sftp

    def close(self) -> None:
        sftp, self._sftp = self._sftp, None
        if sftp is not None:
            with ssh_errors("Closing SFTP channel"):
                sftp.close()
        self._ssh.close()

    def realpath(self, path: str) -> str:
        with ssh_errors("realpath"):
            return self._client().normalize(path)

    def listdir(self, path: str) -> list[tuple[str, RawMetadata]]:
        sftp = self._client()
        with ssh_errors("listdir"):
            attrs = sftp.listdir_attr(path)
            return [
                (posixpath.join(path, attr.filename), _attr_to_raw(sftp, posixpath.join(path, attr.filename), attr))
                for attr in attrs
            ]

    def readlink(self, path: str) -> str:
        with ssh_errors("readlink"):
            target = self._client().readlink(path)
        if target is None:
            raise OSError(f"{path} is not a symlink")
        return target

    def open_read(self, path: str) -> SSHFile:
        with ssh_errors("open"):
            return SSHFile(self._client().open(path, "rb"))

    def open_write(self, path: str, size_hint: int = 0) -> SSHFile:
        with ssh_errors("create"):
            handle = self._client().open(path, "wb")
            handle.set_pipelined(True)
        return SSHFile(handle)

    def unlink(self, path: str) -> None:
        with ssh_errors("unlink"):
            self._client().remove(path)

    def rmdir(self, path: str) -> None:
        with ssh_errors("rmdir"):
            self._client().rmdir(path)

    def mkdir(self, path: str, mode: int = 0o755) -> None:
        with ssh_errors("mkdir"):
            self._client().mkdir(path, mode)
