"""
Shared test fixtures and configuration for termxfer tests.

This module provides common fixtures used across all test types:
- An in-memory remote session and a backend connected to it
- Temporary bookmark and key files
"""

import pytest

from termxfer.modules.bookmarks import BookmarksClient
from termxfer.modules.file_transfer import FileTransferProtocol, RemoteFileTransfer
from tests.mocks.remote_session import FakeRemoteSession

# ============================================================================
# REMOTE SESSION FIXTURES
# ============================================================================


@pytest.fixture
def fake_session():
    """In-memory remote filesystem rooted at / with home /home/alice."""
    return FakeRemoteSession()


@pytest.fixture
def backend(fake_session):
    """Backend over the fake session, not yet connected."""
    return RemoteFileTransfer(fake_session, FileTransferProtocol.SFTP)


@pytest.fixture
def connected_backend(backend):
    """Backend connected to the fake session, working directory at HOME."""
    backend.connect("example.com", 22, "alice", "secret")
    return backend


# ============================================================================
# BOOKMARK FIXTURES
# ============================================================================


@pytest.fixture
def vault_paths(tmp_path):
    """(bookmarks file, key file) inside tmp_path; neither exists yet."""
    return tmp_path / "bookmarks.toml", tmp_path / ".bookmarks.key"


@pytest.fixture
def bookmarks_client(vault_paths):
    """Freshly initialized bookmarks client."""
    bookmarks_file, key_file = vault_paths
    return BookmarksClient(bookmarks_file, key_file)
