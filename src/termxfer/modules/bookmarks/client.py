"""Bookmarks client: persisted connection profiles with encrypted passwords.

Security:
- Passwords are encrypted with AES-256-GCM before they reach memory-held
  bookmarks, so plaintext is never written to disk
- Bookmarks file and key file are written with 0600 permissions
- The key is generated on first use and never rotated automatically; losing
  it makes saved passwords unrecoverable (the bookmarks themselves survive)
"""

import logging
import os
import tempfile
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

from termxfer.modules.file_transfer.protocol import FileTransferProtocol

from .crypto import DecryptionError, VaultKey, VaultKeyError
from .models import Bookmark, UserHosts
from .serializer import BookmarkSerializer, SerializerError, SerializerErrorKind

logger = logging.getLogger(__name__)

DEFAULT_RECENTS_SIZE = 16

# (address, port, protocol, username, password)
ConnectionParams = tuple[str, int, FileTransferProtocol, str, str | None]


class BookmarksClient:
    """Load, edit and save the bookmarks file.

    Example:
        >>> client = BookmarksClient(Path("bookmarks.toml"), Path(".bookmarks.key"))
        >>> client.add_bookmark("work", "example.com", 22, FileTransferProtocol.SFTP, "alice", "s3cret")
        >>> client.write_bookmarks()
        >>> client.get_bookmark("work")
        ('example.com', 22, <FileTransferProtocol.SFTP: 'SFTP'>, 'alice', 's3cret')
    """

    def __init__(self, bookmarks_file: Path, key_file: Path, recents_size: int = DEFAULT_RECENTS_SIZE):
        """Open the vault, creating the bookmarks file and key on first use.

        Raises:
            SerializerError: Either file cannot be created or loaded
        """
        self.bookmarks_file = Path(bookmarks_file)
        self.key_file = Path(key_file)
        self.recents_size = recents_size
        self.hosts = UserHosts()
        self._serializer = BookmarkSerializer()

        if self.bookmarks_file.exists():
            self.read_bookmarks()
        else:
            logger.debug(f"Bookmarks file not found, creating {self.bookmarks_file}")
            self.write_bookmarks()

        if self.key_file.exists():
            self._key = self._load_key()
        else:
            self._key = self._generate_key()

    # -------------------------
    # Persistence
    # -------------------------
    def _load_key(self) -> VaultKey:
        try:
            return VaultKey.load(self.key_file)
        except OSError as e:
            raise SerializerError(SerializerErrorKind.IO_ERROR, f"Could not read key file {self.key_file}: {e}") from e
        except VaultKeyError as e:
            raise SerializerError(SerializerErrorKind.KEY_ERROR, f"{self.key_file}: {e}") from e

    def _generate_key(self) -> VaultKey:
        key = VaultKey.generate()
        try:
            key.write(self.key_file)
        except OSError as e:
            raise SerializerError(SerializerErrorKind.IO_ERROR, f"Could not write key file {self.key_file}: {e}") from e
        logger.info(f"Generated new bookmarks key: {self.key_file}")
        return key

    def read_bookmarks(self) -> None:
        """Replace the in-memory collection with the file's content.

        Raises:
            SerializerError: IO_ERROR or SYNTAX_ERROR
        """
        try:
            text = self.bookmarks_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SerializerError(
                SerializerErrorKind.IO_ERROR, f"Could not read {self.bookmarks_file}: {e}"
            ) from e
        self.hosts = self._serializer.deserialize(text)
        logger.debug(f"Loaded {len(self.hosts.bookmarks)} bookmarks from {self.bookmarks_file}")

    def write_bookmarks(self) -> None:
        """Serialize the whole collection and replace the file atomically.

        Raises:
            SerializerError: SERIALIZATION_ERROR before the file is touched, or IO_ERROR
        """
        text = self._serializer.serialize(self.hosts)

        temp_path: Path | None = None
        try:
            self.bookmarks_file.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
            fd, name = tempfile.mkstemp(dir=self.bookmarks_file.parent, prefix=".bookmarks-", suffix=".tmp")
            temp_path = Path(name)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.chmod(temp_path, 0o600)
            temp_path.replace(self.bookmarks_file)
            temp_path = None
        except OSError as e:
            raise SerializerError(
                SerializerErrorKind.IO_ERROR, f"Could not write {self.bookmarks_file}: {e}"
            ) from e
        finally:
            if temp_path is not None and temp_path.exists():
                temp_path.unlink()
        logger.debug(f"Saved bookmarks to: {self.bookmarks_file}")

    # -------------------------
    # Bookmarks
    # -------------------------
    def make_bookmark(
        self,
        address: str,
        port: int,
        protocol: FileTransferProtocol,
        username: str,
        password: str | None = None,
    ) -> Bookmark:
        """Build a bookmark, encrypting ``password`` if given."""
        encrypted = self._key.encrypt(password) if password is not None else None
        return Bookmark(address=address, port=port, protocol=protocol, username=username, password=encrypted)

    def add_bookmark(
        self,
        name: str,
        address: str,
        port: int,
        protocol: FileTransferProtocol,
        username: str,
        password: str | None = None,
    ) -> None:
        """Add or replace bookmark ``name``. Call write_bookmarks() to persist."""
        if not name:
            raise ValueError("Bookmark name cannot be empty")
        self.hosts.bookmarks[name] = self.make_bookmark(address, port, protocol, username, password)
        logger.debug(f"Added bookmark '{name}'")

    def del_bookmark(self, name: str) -> bool:
        """Remove bookmark ``name``; returns False if it did not exist."""
        removed = self.hosts.bookmarks.pop(name, None) is not None
        if removed:
            logger.debug(f"Removed bookmark '{name}'")
        return removed

    def get_bookmark(self, name: str) -> ConnectionParams | None:
        """Return connection parameters for ``name`` with the password decrypted.

        A password that no longer decrypts (key lost or regenerated) comes back
        as None, so the caller can prompt for it.
        """
        bookmark = self.hosts.bookmarks.get(name)
        if bookmark is None:
            return None
        return self._params(bookmark, name)

    def iter_bookmarks(self) -> Iterator[tuple[str, Bookmark]]:
        return iter(list(self.hosts.bookmarks.items()))

    def _params(self, bookmark: Bookmark, name: str) -> ConnectionParams:
        password = None
        if bookmark.password is not None:
            try:
                password = self._key.decrypt(bookmark.password)
            except DecryptionError as e:
                logger.warning(f"Could not decrypt saved password for '{name}': {e}")
        return bookmark.address, bookmark.port, bookmark.protocol, bookmark.username, password

    # -------------------------
    # Recent connections
    # -------------------------
    def add_recent(self, address: str, port: int, protocol: FileTransferProtocol, username: str) -> str:
        """Record a successful connection and return its key.

        An entry for the same host moves to the front instead of duplicating;
        beyond ``recents_size`` entries the oldest is dropped.
        """
        entry = Bookmark(address=address, port=port, protocol=protocol, username=username)
        for key, existing in list(self.hosts.recents.items()):
            if existing.same_host(entry):
                del self.hosts.recents[key]

        key = datetime.now(UTC).isoformat()
        while key in self.hosts.recents:
            key = datetime.now(UTC).isoformat()
        self.hosts.recents[key] = entry

        while len(self.hosts.recents) > self.recents_size:
            oldest = min(self.hosts.recents)
            del self.hosts.recents[oldest]
            logger.debug(f"Dropped oldest recent connection {oldest}")
        return key

    def get_recent(self, key: str) -> ConnectionParams | None:
        bookmark = self.hosts.recents.get(key)
        if bookmark is None:
            return None
        return bookmark.address, bookmark.port, bookmark.protocol, bookmark.username, None

    def del_recent(self, key: str) -> bool:
        return self.hosts.recents.pop(key, None) is not None

    def iter_recents(self) -> Iterator[tuple[str, Bookmark]]:
        """Recent connections, newest first."""
        return iter(sorted(self.hosts.recents.items(), reverse=True))
