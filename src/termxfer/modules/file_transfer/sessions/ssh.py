"""SSH transport shared by the SFTP and SCP sessions.

Security:
- Host keys are checked against ~/.ssh/known_hosts when the host is known;
  a mismatch aborts the connection. Unknown hosts are accepted but not
  persisted (same trust model as paramiko's AutoAddPolicy).
- Passwords are never logged.
"""

import logging
import socket
from collections.abc import Iterator
from contextlib import contextmanager, suppress
from pathlib import Path

import paramiko

from ..exceptions import (
    AuthenticationFailedError,
    BadAddressError,
    ConnectionFailedError,
    UninitializedSessionError,
)

logger = logging.getLogger(__name__)

KNOWN_HOSTS_FILE = Path.home() / ".ssh" / "known_hosts"

# Everything paramiko raises on a broken channel, mapped to OSError for callers
SSH_ERRORS = (paramiko.SSHException, paramiko.SFTPError, EOFError, socket.timeout)


@contextmanager
def ssh_errors(operation: str) -> Iterator[None]:
    """Translate paramiko failures into OSError."""
    try:
        yield
    except OSError:
        raise
    except SSH_ERRORS as e:
        raise OSError(f"{operation} failed: {e}") from e


class SSHTransport:
    """One authenticated SSH transport.

    Example:
        >>> ssh = SSHTransport()
        >>> ssh.open("10.0.0.1", 22, timeout=30)
        >>> ssh.authenticate("alice", "secret")
        >>> channel = ssh.open_channel()
    """

    def __init__(self, known_hosts: Path | None = None):
        self.known_hosts = known_hosts or KNOWN_HOSTS_FILE
        self.transport: paramiko.Transport | None = None
        self._address = ""
        self._port = 22

    def open(self, address: str, port: int, timeout: float) -> None:
        """Connect the socket and run the SSH handshake.

        Raises:
            BadAddressError: Host cannot be resolved or reached
            ConnectionFailedError: Handshake failed or host key mismatch
        """
        self._address, self._port = address, port
        try:
            sock = socket.create_connection((address, port), timeout=timeout)
        except (OSError, UnicodeError, OverflowError) as e:
            # Over-long host labels and out-of-range ports fail before any I/O
            raise BadAddressError(f"Could not reach {address}:{port}: {e}") from e

        transport = paramiko.Transport(sock)
        try:
            transport.start_client(timeout=timeout)
            self._verify_host_key(transport)
        except (paramiko.SSHException, EOFError, OSError) as e:
            transport.close()
            raise ConnectionFailedError(f"SSH handshake with {address}:{port} failed: {e}") from e
        except ConnectionFailedError:
            transport.close()
            raise
        self.transport = transport
        logger.debug(f"SSH handshake completed with {address}:{port}")

    def _host_key_name(self) -> str:
        if self._port == 22:
            return self._address
        return f"[{self._address}]:{self._port}"

    def _verify_host_key(self, transport: paramiko.Transport) -> None:
        host_keys = paramiko.HostKeys()
        with suppress(OSError):  # no known_hosts file yet
            host_keys.load(str(self.known_hosts))

        remote_key = transport.get_remote_server_key()
        known = host_keys.lookup(self._host_key_name())
        if known is None or remote_key.get_name() not in known:
            logger.debug(f"Host {self._host_key_name()} not in known_hosts, accepting")
            return
        if known[remote_key.get_name()] != remote_key:
            raise ConnectionFailedError(
                f"Host key for {self._host_key_name()} does not match known_hosts"
            )

    def authenticate(self, username: str | None, password: str | None) -> None:
        """Authenticate with a password, or with agent keys when none is given.

        Raises:
            AuthenticationFailedError: Credentials rejected
            ConnectionFailedError: Transport broke during authentication
        """
        transport = self.require()
        username = username or ""
        try:
            if password is not None:
                transport.auth_password(username, password)
            else:
                self._auth_without_password(transport, username)
        except paramiko.AuthenticationException as e:
            raise AuthenticationFailedError(f"Authentication failed for user '{username}'") from e
        except (paramiko.SSHException, EOFError, OSError) as e:
            raise ConnectionFailedError(f"Connection lost during authentication: {e}") from e

        if not transport.is_authenticated():
            raise AuthenticationFailedError(f"Authentication failed for user '{username}'")
        logger.debug(f"Authenticated as {username}")

    @staticmethod
    def _auth_without_password(transport: paramiko.Transport, username: str) -> None:
        for key in paramiko.Agent().get_keys():
            with suppress(paramiko.AuthenticationException):
                transport.auth_publickey(username, key)
                return
        transport.auth_none(username)

    def require(self) -> paramiko.Transport:
        if self.transport is None:
            raise UninitializedSessionError()
        return self.transport

    def open_channel(self) -> paramiko.Channel:
        """Open a new session channel (raises OSError on failure)."""
        with ssh_errors("Opening channel"):
            return self.require().open_session()

    def close(self) -> None:
        """Close the transport (raises OSError on failure)."""
        transport, self.transport = self.transport, None
        if transport is None:
            return
        with ssh_errors("Closing SSH transport"):
            transport.close()


class SSHFile:
    """Wrap a paramiko file so every failure surfaces as OSError."""

    def __init__(self, handle: paramiko.SFTPFile):
        self._handle = handle

    def read(self, n: int = -1) -> bytes:
        with ssh_errors("Read"):
            return self._handle.read(n if n >= 0 else None)

    def write(self, data: bytes) -> int:
        with ssh_errors("Write"):
            self._handle.write(data)
        return len(data)

    def seek(self, offset: int, whence: int = 0) -> int:
        with ssh_errors("Seek"):
            self._handle.seek(offset, whence)
            return self._handle.tell()

    def tell(self) -> int:
        with ssh_errors("Tell"):
            return self._handle.tell()

    def close(self) -> None:
        with ssh_errors("Close"):
            self._handle.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
