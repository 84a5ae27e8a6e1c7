"""Bookmark data model."""

from dataclasses import dataclass, field

from termxfer.modules.file_transfer.protocol import FileTransferProtocol


@dataclass
class Bookmark:
    """A saved connection profile.

    ``password`` is the encrypted blob (base64 of nonce + ciphertext) or None.
    It never holds plaintext.
    """

    address: str
    port: int
    protocol: FileTransferProtocol
    username: str
    password: str | None = None

    @property
    def target(self) -> str:
        """Display form: proto://user@host:port."""
        user = f"{self.username}@" if self.username else ""
        return f"{self.protocol.value.lower()}://{user}{self.address}:{self.port}"

    def same_host(self, other: "Bookmark") -> bool:
        return (self.address, self.port, self.protocol, self.username) == (
            other.address,
            other.port,
            other.protocol,
            other.username,
        )


@dataclass
class UserHosts:
    """Named bookmarks plus recent connections keyed by ISO timestamp."""

    bookmarks: dict[str, Bookmark] = field(default_factory=dict)
    recents: dict[str, Bookmark] = field(default_factory=dict)
