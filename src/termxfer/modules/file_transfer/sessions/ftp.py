"""FTP and FTPS (explicit TLS) remote session over ftplib."""

import ftplib
import logging
import posixpath
import socket
import ssl
from collections.abc import Iterator
from contextlib import contextmanager

from ..exceptions import (
    AuthenticationFailedError,
    BadAddressError,
    ConnectionFailedError,
    ProtocolError,
    UninitializedSessionError,
)
from ..metadata import RawMetadata
from .listing import parse_ls_output, parse_mlsd_facts
from .streams import RemoteStream

logger = logging.getLogger(__name__)

ANONYMOUS_USER = "anonymous"
MLSD_FACTS = ["type", "size", "modify", "unix.mode", "unix.uid", "unix.gid"]


@contextmanager
def ftp_errors(operation: str) -> Iterator[None]:
    """Translate ftplib replies and dropped connections into OSError."""
    try:
        yield
    except OSError:
        raise
    except (ftplib.Error, EOFError) as e:
        raise OSError(f"{operation} failed: {e}") from e


class FtpDataStream(RemoteStream):
    """One RETR or STOR data connection; close() collects the final reply."""

    def __init__(self, ftp: ftplib.FTP, conn: socket.socket, size: int | None = None):
        super().__init__(size=size)
        self._ftp = ftp
        self._conn = conn

    def _recv(self, n: int) -> bytes:
        return self._conn.recv(n)

    def _send(self, data: bytes) -> None:
        self._conn.sendall(data)

    def _finish(self) -> None:
        if isinstance(self._conn, ssl.SSLSocket):
            self._conn.unwrap()
        self._conn.close()
        with ftp_errors("Transfer completion"):
            self._ftp.voidresp()

    def _release(self) -> None:
        self._conn.close()


class FtpSession:
    """FTP session; ``secure=True`` upgrades control and data channels to TLS."""

    def __init__(self, secure: bool = False):
        self.secure = secure
        self._ftp: ftplib.FTP | None = None

    def _client(self) -> ftplib.FTP:
        if self._ftp is None:
            raise UninitializedSessionError()
        return self._ftp

    def open(self, address: str, port: int, timeout: float) -> None:
        ftp = ftplib.FTP_TLS() if self.secure else ftplib.FTP()
        try:
            ftp.connect(address, port, timeout=timeout)
        except (ftplib.Error, EOFError) as e:
            ftp.close()
            raise ConnectionFailedError(f"FTP greeting from {address}:{port} failed: {e}") from e
        except (OSError, UnicodeError, OverflowError) as e:
            ftp.close()
            raise BadAddressError(f"Could not reach {address}:{port}: {e}") from e
        self._ftp = ftp
        logger.debug(f"Connected to {address}:{port} ({'FTPS' if self.secure else 'FTP'})")

    def authenticate(self, username: str | None, password: str | None) -> None:
        ftp = self._client()
        try:
            ftp.login(username or ANONYMOUS_USER, password or "")
        except ftplib.error_perm as e:
            raise AuthenticationFailedError(f"Authentication failed for user '{username}'") from e
        except (ftplib.Error, EOFError, OSError) as e:
            raise ConnectionFailedError(f"Connection lost during login: {e}") from e

    def start_file_channel(self) -> None:
        ftp = self._client()
        try:
            ftp.voidcmd("TYPE I")
            if self.secure:
                ftp.prot_p()
        except (ftplib.Error, EOFError, OSError) as e:
            raise ProtocolError(f"Could not set up data channel: {e}") from e

    def close(self) -> None:
        ftp, self._ftp = self._ftp, None
        if ftp is None:
            return
        try:
            with ftp_errors("QUIT"):
                ftp.quit()
        finally:
            ftp.close()

    def _cwd_pwd(self, path: str) -> str:
        ftp = self._client()
        previous = ftp.pwd()
        ftp.cwd(path)
        try:
            return ftp.pwd()
        finally:
            ftp.cwd(previous)

    def realpath(self, path: str) -> str:
        ftp = self._client()
        with ftp_errors("realpath"):
            if path in (".", ""):
                return ftp.pwd()
            try:
                return self._cwd_pwd(path)
            except ftplib.error_perm:
                # Not a directory: canonicalize the parent and check the file exists
                parent = self._cwd_pwd(posixpath.dirname(path) or ".")
                resolved = posixpath.join(parent, posixpath.basename(path))
                ftp.size(resolved)
                return resolved

    def listdir(self, path: str) -> list[tuple[str, RawMetadata]]:
        ftp = self._client()
        with ftp_errors("listdir"):
            try:
                return [
                    (posixpath.join(path, name), parse_mlsd_facts(facts))
                    for name, facts in ftp.mlsd(path, facts=MLSD_FACTS)
                    if facts.get("type", "").lower() not in ("cdir", "pdir")
                ]
            except ftplib.error_perm as e:
                logger.debug(f"MLSD unsupported ({e}), falling back to LIST")
            lines: list[str] = []
            ftp.retrlines(f"LIST {path}", lines.append)
            return parse_ls_output(path, "\n".join(lines))

    def readlink(self, path: str) -> str:
        raise OSError(f"FTP cannot read symlink target of {path}")

    def open_read(self, path: str) -> FtpDataStream:
        ftp = self._client()
        with ftp_errors("RETR"):
            try:
                size = ftp.size(path)
            except ftplib.error_perm:
                size = None
            conn = ftp.transfercmd(f"RETR {path}")
        return FtpDataStream(ftp, conn, size)

    def open_write(self, path: str, size_hint: int = 0) -> FtpDataStream:
        ftp = self._client()
        with ftp_errors("STOR"):
            conn = ftp.transfercmd(f"STOR {path}")
        return FtpDataStream(ftp, conn)

    def unlink(self, path: str) -> None:
        with ftp_errors("DELE"):
            self._client().delete(path)

    def rmdir(self, path: str) -> None:
        with ftp_errors("RMD"):
            self._client().rmd(path)

    def mkdir(self, path: str, mode: int = 0o755) -> None:
        with ftp_errors("MKD"):
            self._client().mkd(path)
