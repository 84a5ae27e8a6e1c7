"""SCP remote session: remote copy over an SSH exec channel.

SCP has no browsing primitives, so navigation runs plain shell commands
(``ls``, ``rm``, ``rmdir``, ``mkdir``, ``readlink``) and file contents move
with the classic ``scp -t`` (sink) / ``scp -f`` (source) framing:

    client -> server   C0644 <size> <name>\\n   (file header)
    server -> client   \\0                        (ack; \\1 or \\2 + message on error)
    client -> server   <size bytes> \\0
"""

import logging
import posixpath
import shlex
import tempfile
from pathlib import Path

import paramiko

from ..exceptions import ProtocolError
from ..metadata import RawMetadata
from .listing import parse_ls_output
from .ssh import SSHTransport, ssh_errors
from .streams import RemoteStream

logger = logging.getLogger(__name__)

FILE_MODE = 0o644
MAX_HEADER_LENGTH = 4096
SPOOL_MAX_MEMORY = 4 * 1024 * 1024

# Prints the canonical path of $p, or fails if it does not exist
REALPATH_SCRIPT = (
    'if [ -d "$p" ]; then cd -- "$p" && pwd -P; '
    'elif [ -e "$p" ] || [ -L "$p" ]; then '
    'cd -- "$(dirname -- "$p")" && printf "%s/%s\\n" "$(pwd -P)" "$(basename -- "$p")"; '
    "else exit 1; fi"
)


def _read_ack(channel: paramiko.Channel) -> None:
    """Read one protocol acknowledgement; raise OSError on error replies."""
    code = channel.recv(1)
    if code == b"\x00":
        return
    if not code:
        raise OSError("SCP channel closed unexpectedly")
    message = _read_line(channel) if code in (b"\x01", b"\x02") else code.decode(errors="replace")
    raise OSError(f"SCP error: {message.strip()}")


def _read_line(channel: paramiko.Channel) -> str:
    buffer = bytearray()
    while len(buffer) < MAX_HEADER_LENGTH:
        byte = channel.recv(1)
        if not byte:
            raise OSError("SCP channel closed unexpectedly")
        if byte == b"\n":
            return buffer.decode(errors="replace")
        buffer += byte
    raise OSError("SCP header too long")


class ScpReadStream(RemoteStream):
    """Source side of ``scp -f``: announces the size, then streams the body."""

    def __init__(self, channel: paramiko.Channel):
        self._channel = channel
        with ssh_errors("SCP handshake"):
            channel.sendall(b"\x00")
            header = self._next_header()
            channel.sendall(b"\x00")
        super().__init__(size=self._parse_size(header))

    def _next_header(self) -> str:
        code = self._channel.recv(1)
        if not code:
            raise OSError("SCP channel closed unexpectedly")
        if code in (b"\x01", b"\x02"):
            raise OSError(f"SCP error: {_read_line(self._channel).strip()}")
        line = code.decode(errors="replace") + _read_line(self._channel)
        if line.startswith("T"):
            # Timestamps (-p); acknowledge and read the real header
            self._channel.sendall(b"\x00")
            return self._next_header()
        return line

    @staticmethod
    def _parse_size(header: str) -> int:
        parts = header.split(" ", 2)
        if len(parts) != 3 or not header.startswith("C") or not parts[1].isdigit():
            raise OSError(f"Unexpected SCP header: {header!r}")
        return int(parts[1])

    def _recv(self, n: int) -> bytes:
        with ssh_errors("SCP read"):
            return self._channel.recv(n)

    def _finish(self) -> None:
        if self._pos < (self._size or 0):
            return
        with ssh_errors("SCP read completion"):
            _read_ack(self._channel)
            self._channel.sendall(b"\x00")

    def _release(self) -> None:
        self._channel.close()


class ScpWriteStream(RemoteStream):
    """Sink side of ``scp -t``.

    With a size hint the header is sent immediately and the body streams
    straight through. Without one the body is spooled locally and sent on
    close, because SCP must announce the size before the first byte.
    """

    def __init__(self, channel: paramiko.Channel, name: str, size_hint: int = 0, mode: int = FILE_MODE):
        super().__init__()
        self._channel = channel
        self._name = name
        self._mode = mode
        self._expected = size_hint
        self._spool = None
        with ssh_errors("SCP handshake"):
            _read_ack(channel)
            if size_hint > 0:
                self._send_header(size_hint)
            else:
                self._spool = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_MEMORY)

    def _send_header(self, size: int) -> None:
        self._channel.sendall(f"C{self._mode:04o} {size} {self._name}\n".encode())
        _read_ack(self._channel)

    def _send(self, data: bytes) -> None:
        if self._spool is not None:
            self._spool.write(data)
            return
        if self._pos + len(data) > self._expected:
            raise OSError(f"Wrote more than the announced {self._expected} bytes")
        with ssh_errors("SCP write"):
            self._channel.sendall(data)

    def _finish(self) -> None:
        with ssh_errors("SCP write completion"):
            if self._spool is not None:
                size = self._spool.tell()
                self._spool.seek(0)
                self._send_header(size)
                while chunk := self._spool.read(64 * 1024):
                    self._channel.sendall(chunk)
            elif self._pos != self._expected:
                raise OSError(f"Transfer incomplete: {self._pos} of {self._expected} bytes")
            self._channel.sendall(b"\x00")
            _read_ack(self._channel)

    def _release(self) -> None:
        if self._spool is not None:
            self._spool.close()
        self._channel.close()


class ScpSession:
    """SSH session that browses with shell commands and copies with scp."""

    def __init__(self, known_hosts: Path | None = None):
        self._ssh = SSHTransport(known_hosts)

    def open(self, address: str, port: int, timeout: float) -> None:
        self._ssh.open(address, port, timeout)

    def authenticate(self, username: str | None, password: str | None) -> None:
        self._ssh.authenticate(username, password)

    def start_file_channel(self) -> None:
        try:
            self._exec("true")
        except OSError as e:
            raise ProtocolError(f"Remote shell unavailable: {e}") from e

    def close(self) -> None:
        self._ssh.close()

    def _exec(self, command: str) -> str:
        """Run ``command`` remotely and return stdout; non-zero exit raises OSError."""
        channel = self._ssh.open_channel()
        try:
            with ssh_errors(command.split(" ", 1)[0]):
                channel.exec_command(command)
                stdout = channel.makefile("rb").read()
                stderr = channel.makefile_stderr("rb").read()
                status = channel.recv_exit_status()
        finally:
            channel.close()
        if status != 0:
            message = stderr.decode(errors="replace").strip() or f"exit status {status}"
            raise OSError(status, message)
        return stdout.decode(errors="replace")

    def realpath(self, path: str) -> str:
        output = self._exec(f"p={shlex.quote(path)}; {REALPATH_SCRIPT}").strip()
        if not output:
            raise OSError(f"Could not resolve {path}")
        if output.startswith("//"):
            output = output[1:]
        return output

    def listdir(self, path: str) -> list[tuple[str, RawMetadata]]:
        target = path.rstrip("/") + "/"
        output = self._exec(f"LC_ALL=C ls -lan -- {shlex.quote(target)}")
        return parse_ls_output(path, output)

    def readlink(self, path: str) -> str:
        return self._exec(f"readlink -- {shlex.quote(path)}").rstrip("\n")

    def open_read(self, path: str) -> ScpReadStream:
        channel = self._ssh.open_channel()
        try:
            with ssh_errors("scp -f"):
                channel.exec_command(f"scp -f {shlex.quote(path)}")
            return ScpReadStream(channel)
        except OSError:
            channel.close()
            raise

    def open_write(self, path: str, size_hint: int = 0) -> ScpWriteStream:
        channel = self._ssh.open_channel()
        try:
            with ssh_errors("scp -t"):
                channel.exec_command(f"scp -t {shlex.quote(path)}")
            return ScpWriteStream(channel, posixpath.basename(path), size_hint)
        except OSError:
            channel.close()
            raise

    def unlink(self, path: str) -> None:
        self._exec(f"rm -- {shlex.quote(path)}")

    def rmdir(self, path: str) -> None:
        self._exec(f"rmdir -- {shlex.quote(path)}")

    def mkdir(self, path: str, mode: int = 0o755) -> None:
        self._exec(f"mkdir -m {mode:o} -- {shlex.quote(path)}")
