"""
Unit tests for the termxfer command-line interface.

Commands run through click's CliRunner against an in-memory remote session,
so no network or real bookmarks directory is touched.
"""

from unittest.mock import patch

import pytest
import tomli
from click.testing import CliRunner

from termxfer.cli import main
from termxfer.config_manager import ConfigManager
from termxfer.modules.file_transfer import FileTransferProtocol, RemoteFileTransfer
from tests.mocks.remote_session import HOME

# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cli(runner, vault_paths, tmp_path):
    """Invoke the CLI with bookmarks and config isolated under tmp_path."""
    bookmarks_file, key_file = vault_paths

    def invoke(*args, input=None):
        with patch.object(ConfigManager, "DEFAULT_CONFIG_FILE", tmp_path / "config.toml"):
            return runner.invoke(
                main,
                ["--bookmarks-file", str(bookmarks_file), "--key-file", str(key_file), *args],
                input=input,
            )

    return invoke


@pytest.fixture
def factory(fake_session):
    """Route every connection to the fake session."""
    created = []

    def make(protocol, **kwargs):
        backend = RemoteFileTransfer(fake_session, protocol, **kwargs)
        created.append(backend)
        return backend

    with patch("termxfer.commands.common.make_file_transfer", side_effect=make) as mock_factory:
        mock_factory.created = created
        yield mock_factory


# ============================================================================
# GLOBAL OPTIONS
# ============================================================================


class TestMainGroup:
    """Tests for the main command group."""

    def test_help(self, runner):
        """Test help lists the commands."""
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        for command in ("bookmarks", "recents", "ls", "get", "put", "rm", "mkdir"):
            assert command in result.output

    def test_version(self, runner):
        """Test --version prints the package version."""
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_invalid_default_protocol(self, cli, tmp_path, factory):
        """Test a bad default_protocol in the config is reported cleanly."""
        config_file = tmp_path / "custom.toml"
        config_file.write_text('default_protocol = "gopher"\n')

        result = cli("--config", str(config_file), "ls", "alice@example.com", input="secret\n")

        assert result.exit_code == 1
        assert "Error: Invalid default_protocol" in result.output
        factory.assert_not_called()

    def test_mistyped_chunk_size(self, cli, tmp_path, factory):
        """Test a quoted chunk_size in the config exits 1 without a traceback."""
        config_file = tmp_path / "custom.toml"
        config_file.write_text('chunk_size = "65536"\n')

        result = cli("--config", str(config_file), "ls", "alice@example.com", input="secret\n")

        assert result.exit_code == 1
        assert "Invalid type for chunk_size" in result.output
        factory.assert_not_called()

    def test_missing_config_file(self, cli, tmp_path):
        """Test an explicit config path that does not exist is an error."""
        result = cli("--config", str(tmp_path / "nope.toml"), "recents")

        assert result.exit_code != 0
        assert "Config file not found" in result.output


# ============================================================================
# REMOTE COMMANDS
# ============================================================================


class TestLs:
    """Tests for the ls command."""

    def test_lists_login_directory(self, cli, fake_session, factory):
        """Test ls connects, lists HOME and disconnects."""
        fake_session.add_file(f"{HOME}/notes.txt", b"hello")
        fake_session.add_dir(f"{HOME}/docs")

        result = cli("ls", "alice@example.com", input="secret\n")

        assert result.exit_code == 0, result.output
        assert "notes.txt" in result.output
        assert "docs/" in result.output
        assert factory.call_args.args == (FileTransferProtocol.SFTP,)
        assert not fake_session.is_open

    def test_recursive(self, cli, fake_session, factory):
        """Test -r shows nested entries indented under their directory."""
        fake_session.add_dir(f"{HOME}/docs")
        fake_session.add_file(f"{HOME}/docs/inner.txt")

        result = cli("ls", "alice@example.com", "-r", input="secret\n")

        assert result.exit_code == 0, result.output
        assert "  inner.txt" in result.output

    def test_protocol_and_port_from_target(self, cli, fake_session, factory):
        """Test an explicit protocol and port are used."""
        result = cli("ls", "ftp://alice@files.example.org:2121", input="secret\n")

        assert result.exit_code == 0, result.output
        assert factory.call_args.args == (FileTransferProtocol.FTP,)

    def test_wrong_password(self, cli, factory):
        """Test authentication failures exit 1 with an error message."""
        result = cli("ls", "alice@example.com", input="wrong\n")

        assert result.exit_code == 1
        assert "Error: Authentication failed for user 'alice'" in result.output

    def test_missing_directory(self, cli, factory):
        """Test listing a missing path fails cleanly."""
        result = cli("ls", "alice@example.com", "/nope", input="secret\n")

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_malformed_target(self, cli, factory):
        """Test a target that is neither bookmark nor address is rejected."""
        result = cli("ls", "gopher://example.com")

        assert result.exit_code == 2
        factory.assert_not_called()

    def test_records_recent(self, cli, factory, vault_paths):
        """Test a successful connection is saved in the recents."""
        cli("ls", "alice@example.com", input="secret\n")

        data = tomli.loads(vault_paths[0].read_text())
        [recent] = data["recents"].values()
        assert recent["address"] == "example.com"
        assert "password" not in recent


class TestTransfers:
    """Tests for get and put."""

    def test_get(self, cli, fake_session, factory, tmp_path):
        """Test a file is downloaded to the given local path."""
        fake_session.add_file(f"{HOME}/report.pdf", b"%PDF-1.7")
        local = tmp_path / "out.pdf"

        result = cli("get", "alice@example.com", "report.pdf", str(local), input="secret\n")

        assert result.exit_code == 0, result.output
        assert local.read_bytes() == b"%PDF-1.7"
        assert "report.pdf: 8 B in" in result.output

    def test_get_missing(self, cli, factory, tmp_path):
        """Test a missing remote file exits 1 and leaves the local file untouched."""
        local = tmp_path / "keep.txt"
        local.write_bytes(b"important")

        result = cli("get", "alice@example.com", "missing.bin", str(local), input="secret\n")

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert local.read_bytes() == b"important"
        assert [p.name for p in tmp_path.iterdir() if p.suffix == ".part"] == []

    def test_get_replaces_existing_file(self, cli, fake_session, factory, tmp_path):
        """Test a successful download overwrites the local file in place."""
        fake_session.add_file(f"{HOME}/report.pdf", b"new")
        local = tmp_path / "report.pdf"
        local.write_bytes(b"old contents")

        result = cli("get", "alice@example.com", "report.pdf", str(local), input="secret\n")

        assert result.exit_code == 0, result.output
        assert local.read_bytes() == b"new"
        assert [p.name for p in tmp_path.iterdir() if p.suffix == ".part"] == []

    def test_put_default_remote_name(self, cli, fake_session, factory, tmp_path):
        """Test uploads land in the login directory under the local name."""
        local = tmp_path / "upload.txt"
        local.write_bytes(b"data")

        result = cli("put", "alice@example.com", str(local), input="secret\n")

        assert result.exit_code == 0, result.output
        assert fake_session.files[f"{HOME}/upload.txt"] == b"data"
        assert fake_session.size_hints == [4]


class TestTreeCommands:
    """Tests for rm and mkdir."""

    def test_mkdir(self, cli, fake_session, factory):
        """Test mkdir creates the directory relative to the login directory."""
        result = cli("mkdir", "alice@example.com", "backups", input="secret\n")

        assert result.exit_code == 0, result.output
        assert f"Created {HOME}/backups" in result.output
        assert f"{HOME}/backups" in fake_session.dirs

    def test_rm_file(self, cli, fake_session, factory):
        """Test rm removes a file without asking."""
        fake_session.add_file(f"{HOME}/old.log")

        result = cli("rm", "alice@example.com", "old.log", input="secret\n")

        assert result.exit_code == 0, result.output
        assert fake_session.removed == [f"{HOME}/old.log"]

    def test_rm_directory_requires_confirmation(self, cli, fake_session, factory):
        """Test declining the prompt leaves the directory alone."""
        fake_session.add_dir(f"{HOME}/docs")
        fake_session.add_file(f"{HOME}/docs/a.txt")

        result = cli("rm", "alice@example.com", "docs", input="secret\nn\n")

        assert result.exit_code != 0
        assert fake_session.removed == []

    def test_rm_directory_with_yes(self, cli, fake_session, factory):
        """Test --yes removes a directory and its contents."""
        fake_session.add_dir(f"{HOME}/docs")
        fake_session.add_file(f"{HOME}/docs/a.txt")

        result = cli("rm", "alice@example.com", "docs", "--yes", input="secret\n")

        assert result.exit_code == 0, result.output
        assert fake_session.removed == [f"{HOME}/docs/a.txt", f"{HOME}/docs"]

    def test_rm_missing(self, cli, factory):
        """Test removing a path that does not exist exits 1."""
        result = cli("rm", "alice@example.com", "ghost", input="secret\n")

        assert result.exit_code == 1
        assert "No such file or directory: ghost" in result.output


# ============================================================================
# BOOKMARKS
# ============================================================================


class TestBookmarkCommands:
    """Tests for bookmarks and recents."""

    def test_add_list_and_use(self, cli, fake_session, factory):
        """Test a bookmark with a saved password connects without a prompt."""
        added = cli(
            "bookmarks", "add", "work", "example.com", "--user", "alice", "--save-password",
            input="secret\nsecret\n",
        )
        listed = cli("bookmarks", "list")
        used = cli("ls", "work")

        assert added.exit_code == 0, added.output
        assert "work" in listed.output
        assert "saved" in listed.output
        assert used.exit_code == 0, used.output
        assert factory.call_args.args == (FileTransferProtocol.SFTP,)

    def test_add_uses_protocol_default_port(self, cli, vault_paths):
        """Test the port defaults to the protocol's port."""
        result = cli("bookmarks", "add", "files", "ftp.example.org", "--protocol", "ftp")

        assert result.exit_code == 0, result.output
        saved = tomli.loads(vault_paths[0].read_text())["bookmarks"]["files"]
        assert saved["port"] == 21
        assert saved["protocol"] == "FTP"

    def test_remove_missing(self, cli):
        """Test removing an unknown bookmark fails."""
        result = cli("bookmarks", "remove", "nope")

        assert result.exit_code == 1
        assert "No bookmark named 'nope'" in result.output

    def test_empty_listings(self, cli):
        """Test empty bookmark and recent lists say so."""
        assert "No bookmarks saved." in cli("bookmarks", "list").output
        assert "No recent connections." in cli("recents").output

    def test_recents_after_connect(self, cli, factory):
        """Test recents shows the last target."""
        cli("ls", "alice@example.com", input="secret\n")

        result = cli("recents")

        assert "sftp://alice@example.com:22" in result.output
