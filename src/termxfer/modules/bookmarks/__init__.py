"""Saved connection profiles with encrypted passwords."""

from .client import BookmarksClient, ConnectionParams
from .crypto import DecryptionError, VaultKey, VaultKeyError
from .models import Bookmark, UserHosts
from .serializer import BookmarkSerializer, SerializerError, SerializerErrorKind

__all__ = [
    "Bookmark",
    "BookmarkSerializer",
    "BookmarksClient",
    "ConnectionParams",
    "DecryptionError",
    "SerializerError",
    "SerializerErrorKind",
    "UserHosts",
    "VaultKey",
    "VaultKeyError",
]
