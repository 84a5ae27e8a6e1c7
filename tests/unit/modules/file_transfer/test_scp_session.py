"""Unit tests for the SCP session and its stream framing (mocked channels)."""

import io
from unittest.mock import MagicMock, Mock

import pytest

from termxfer.modules.file_transfer.exceptions import ProtocolError
from termxfer.modules.file_transfer.sessions.scp import ScpReadStream, ScpSession, ScpWriteStream
from termxfer.modules.file_transfer.transfer_engine import TransferEngine


class FakeChannel:
    """Byte-level stand-in for a paramiko exec channel."""

    def __init__(self, incoming: bytes = b""):
        self._incoming = incoming
        self.sent = bytearray()
        self.closed = False

    def recv(self, n):
        chunk, self._incoming = self._incoming[:n], self._incoming[n:]
        return chunk

    def sendall(self, data):
        self.sent += data

    def close(self):
        self.closed = True


def _exec_channel(stdout=b"", stderr=b"", status=0):
    channel = MagicMock()
    channel.makefile.return_value = io.BytesIO(stdout)
    channel.makefile_stderr.return_value = io.BytesIO(stderr)
    channel.recv_exit_status.return_value = status
    return channel


@pytest.fixture
def scp_session():
    session = ScpSession()
    session._ssh = Mock()
    return session


class TestScpReadStream:
    """Tests for the scp -f source side."""

    def test_reads_announced_body(self):
        """Test the header size bounds the body and the final ack is exchanged."""
        channel = FakeChannel(b"C0644 5 hello.txt\nhello\x00")

        stream = ScpReadStream(channel)
        assert TransferEngine.measure(stream) == 5
        data = stream.read(1024)
        assert stream.read(1024) == b""
        stream.close()

        assert data == b"hello"
        assert bytes(channel.sent) == b"\x00\x00\x00"
        assert channel.closed

    def test_skips_timestamp_line(self):
        """Test a T line before the header is acknowledged and skipped."""
        channel = FakeChannel(b"T1 0 1 0\nC0600 2 x\nok\x00")

        stream = ScpReadStream(channel)

        assert stream.read(10) == b"ok"

    def test_remote_error(self):
        """Test an error reply (e.g. missing file) raises OSError."""
        channel = FakeChannel(b"\x01scp: /nope: No such file or directory\n")

        with pytest.raises(OSError, match="No such file"):
            ScpReadStream(channel)

    def test_premature_eof(self):
        """Test a body shorter than announced is an error."""
        stream = ScpReadStream(FakeChannel(b"C0644 10 f\nshort"))

        assert stream.read(100) == b"short"
        with pytest.raises(OSError, match="ended after 5 of 10"):
            stream.read(100)


class TestScpWriteStream:
    """Tests for the scp -t sink side."""

    def test_streams_with_size_hint(self):
        """Test the header goes out first when the size is known."""
        channel = FakeChannel(b"\x00\x00\x00")

        stream = ScpWriteStream(channel, "up.txt", size_hint=5)
        stream.write(b"hello")
        stream.close()

        assert bytes(channel.sent) == b"C0644 5 up.txt\nhello\x00"

    def test_spools_without_size_hint(self):
        """Test an unknown size is spooled and announced on close."""
        channel = FakeChannel(b"\x00\x00\x00")

        stream = ScpWriteStream(channel, "up.txt")
        stream.write(b"abc")
        stream.write(b"def")
        assert bytes(channel.sent) == b""
        stream.close()

        assert bytes(channel.sent) == b"C0644 6 up.txt\nabcdef\x00"

    def test_short_write_detected(self):
        """Test closing before the announced size was sent is an error."""
        stream = ScpWriteStream(FakeChannel(b"\x00\x00"), "up.txt", size_hint=10)
        stream.write(b"abc")

        with pytest.raises(OSError, match="incomplete"):
            stream.close()

    def test_rejected_header(self):
        """Test an error reply to the header raises OSError."""
        channel = FakeChannel(b"\x00\x02scp: permission denied\n")

        with pytest.raises(OSError, match="permission denied"):
            ScpWriteStream(channel, "up.txt", size_hint=3)


class TestScpSession:
    """Tests for shell-command based browsing."""

    def test_listdir_runs_ls(self, scp_session):
        """Test listdir runs ls in the C locale and parses its output."""
        channel = _exec_channel(b"-rw-r--r-- 1 1000 1000 3 Jan  1  2020 a.txt\n")
        scp_session._ssh.open_channel.return_value = channel

        entries = scp_session.listdir("/home/alice")

        channel.exec_command.assert_called_once_with("LC_ALL=C ls -lan -- /home/alice/")
        assert [path for path, _ in entries] == ["/home/alice/a.txt"]
        channel.close.assert_called_once()

    def test_paths_are_quoted(self, scp_session):
        """Test paths with spaces and quotes are shell-quoted."""
        channel = _exec_channel()
        scp_session._ssh.open_channel.return_value = channel

        scp_session.unlink("/tmp/it's here")

        channel.exec_command.assert_called_once_with("rm -- '/tmp/it'\"'\"'s here'")

    def test_failed_command_raises_oserror(self, scp_session):
        """Test a non-zero exit status is an OSError with stderr."""
        scp_session._ssh.open_channel.return_value = _exec_channel(
            stderr=b"rmdir: Directory not empty\n", status=1
        )

        with pytest.raises(OSError, match="Directory not empty"):
            scp_session.rmdir("/tmp/full")

    def test_realpath_strips_double_slash(self, scp_session):
        """Test a leading // from pwd is normalized."""
        scp_session._ssh.open_channel.return_value = _exec_channel(b"//srv\n")

        assert scp_session.realpath("/srv") == "/srv"

    def test_mkdir_mode(self, scp_session):
        """Test mkdir passes the mode in octal."""
        channel = _exec_channel()
        scp_session._ssh.open_channel.return_value = channel

        scp_session.mkdir("/tmp/new", 0o750)

        channel.exec_command.assert_called_once_with("mkdir -m 750 -- /tmp/new")

    def test_no_shell_is_protocol_error(self, scp_session):
        """Test a session without a usable shell fails the file channel step."""
        scp_session._ssh.open_channel.return_value = _exec_channel(status=127)

        with pytest.raises(ProtocolError):
            scp_session.start_file_channel()
