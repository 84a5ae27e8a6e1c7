"""Symmetric encryption of stored passwords.

Passwords are sealed with AES-256-GCM under a key that lives in its own
owner-only file. Each encryption uses a fresh random 12-byte nonce; the stored
value is base64(nonce || ciphertext || tag).
"""

import base64
import binascii
import logging
import os
from pathlib import Path

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

logger = logging.getLogger(__name__)

KEY_LENGTH = 32
NONCE_LENGTH = 12


class VaultKeyError(Exception):
    """Raised when a key file holds no usable key."""

    pass


class DecryptionError(Exception):
    """Raised when a stored password cannot be decrypted with this key."""

    pass


class VaultKey:
    """The vault's AES-256-GCM key. Never logged, never rotated automatically."""

    def __init__(self, key: bytes):
        if len(key) != KEY_LENGTH:
            raise VaultKeyError(f"Vault key must be {KEY_LENGTH} bytes, got {len(key)}")
        self._aead = AESGCM(key)
        self._key = key

    def __repr__(self) -> str:
        return "VaultKey(****)"

    @classmethod
    def generate(cls) -> "VaultKey":
        return cls(AESGCM.generate_key(bit_length=256))

    @classmethod
    def load(cls, path: Path) -> "VaultKey":
        """Read raw key bytes from ``path``.

        Raises:
            OSError: File cannot be read
            VaultKeyError: File content has the wrong length
        """
        return cls(path.read_bytes())

    def write(self, path: Path) -> None:
        """Write raw key bytes to ``path`` with owner-only permissions.

        Raises:
            OSError: File cannot be written
        """
        path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
        fd = os.open(path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, 0o600)
        try:
            os.write(fd, self._key)
        finally:
            os.close(fd)
        path.chmod(0o600)
        logger.debug(f"Vault key written to: {path}")

    def encrypt(self, plaintext: str) -> str:
        nonce = os.urandom(NONCE_LENGTH)
        sealed = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.b64encode(nonce + sealed).decode("ascii")

    def decrypt(self, blob: str) -> str:
        """Open a value produced by :meth:`encrypt`.

        Raises:
            DecryptionError: Malformed blob, wrong key or tampered data
        """
        try:
            raw = base64.b64decode(blob.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as e:
            raise DecryptionError("Stored password is not valid base64") from e
        if len(raw) <= NONCE_LENGTH:
            raise DecryptionError("Stored password is truncated")
        try:
            plaintext = self._aead.decrypt(raw[:NONCE_LENGTH], raw[NONCE_LENGTH:], None)
        except InvalidTag as e:
            raise DecryptionError("Stored password does not match the vault key") from e
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecryptionError("Stored password is not valid UTF-8") from e
