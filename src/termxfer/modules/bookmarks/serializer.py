"""TOML (de)serialization of the bookmarks file.

Layout::

    [bookmarks.work]
    address = "example.com"
    port = 22
    protocol = "SFTP"
    username = "alice"
    password = "<base64>"   # optional

    [recents."2026-10-18T09:30:00+00:00"]
    address = "ftp.example.org"
    ...
"""

import logging
from enum import Enum
from typing import Any

import tomli
import tomlkit

from termxfer.modules.file_transfer.protocol import FileTransferProtocol

from .models import Bookmark, UserHosts

logger = logging.getLogger(__name__)


class SerializerErrorKind(Enum):
    """What went wrong while persisting bookmarks."""

    IO_ERROR = "IoError"
    SERIALIZATION_ERROR = "SerializationError"
    SYNTAX_ERROR = "SyntaxError"
    KEY_ERROR = "KeyError"


class SerializerError(Exception):
    """Raised when the bookmarks file or key file cannot be loaded or saved."""

    def __init__(self, kind: SerializerErrorKind, message: str):
        super().__init__(message)
        self.kind = kind

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.args[0]}"


class BookmarkSerializer:
    """Convert UserHosts to and from TOML text."""

    def serialize(self, hosts: UserHosts) -> str:
        """Render ``hosts`` as TOML.

        Raises:
            SerializerError: SERIALIZATION_ERROR if a value cannot be encoded
        """
        doc = tomlkit.document()
        try:
            doc["bookmarks"] = self._table(hosts.bookmarks)
            doc["recents"] = self._table(hosts.recents)
            return tomlkit.dumps(doc)
        except (TypeError, ValueError) as e:
            raise SerializerError(SerializerErrorKind.SERIALIZATION_ERROR, str(e)) from e

    @staticmethod
    def _table(entries: dict[str, Bookmark]) -> Any:
        table = tomlkit.table()
        for name, bookmark in entries.items():
            item = tomlkit.table()
            item["address"] = bookmark.address
            item["port"] = bookmark.port
            item["protocol"] = bookmark.protocol.value
            item["username"] = bookmark.username
            if bookmark.password is not None:
                item["password"] = bookmark.password
            table[name] = item
        return table

    def deserialize(self, text: str) -> UserHosts:
        """Parse TOML text into UserHosts.

        Raises:
            SerializerError: SYNTAX_ERROR for invalid TOML or an unexpected schema
        """
        try:
            data = tomli.loads(text)
        except tomli.TOMLDecodeError as e:
            raise SerializerError(SerializerErrorKind.SYNTAX_ERROR, f"Invalid TOML: {e}") from e

        return UserHosts(
            bookmarks=self._entries(data, "bookmarks"),
            recents=self._entries(data, "recents"),
        )

    def _entries(self, data: dict[str, Any], section: str) -> dict[str, Bookmark]:
        table = data.get(section, {})
        if not isinstance(table, dict):
            raise SerializerError(SerializerErrorKind.SYNTAX_ERROR, f"'{section}' must be a table")
        return {name: self._bookmark(section, name, value) for name, value in table.items()}

    @staticmethod
    def _bookmark(section: str, name: str, value: Any) -> Bookmark:
        where = f"{section}.{name}"
        if not isinstance(value, dict):
            raise SerializerError(SerializerErrorKind.SYNTAX_ERROR, f"'{where}' must be a table")
        try:
            address = value["address"]
            port = value["port"]
            protocol = FileTransferProtocol.from_str(value["protocol"])
            username = value.get("username", "")
        except KeyError as e:
            raise SerializerError(SerializerErrorKind.SYNTAX_ERROR, f"'{where}' is missing {e}") from e
        except (ValueError, AttributeError) as e:
            raise SerializerError(SerializerErrorKind.SYNTAX_ERROR, f"'{where}': {e}") from e

        password = value.get("password")
        if not isinstance(address, str) or not isinstance(username, str):
            raise SerializerError(SerializerErrorKind.SYNTAX_ERROR, f"'{where}': address and username must be strings")
        if not isinstance(port, int) or isinstance(port, bool) or not 0 < port < 65536:
            raise SerializerError(SerializerErrorKind.SYNTAX_ERROR, f"'{where}': invalid port {port!r}")
        if password is not None and not isinstance(password, str):
            raise SerializerError(SerializerErrorKind.SYNTAX_ERROR, f"'{where}': password must be a string")
        return Bookmark(address=address, port=port, protocol=protocol, username=username, password=password)
