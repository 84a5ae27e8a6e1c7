"""Unit tests for the bookmarks vault key."""

import base64
import stat

import pytest

from termxfer.modules.bookmarks.crypto import (
    KEY_LENGTH,
    NONCE_LENGTH,
    DecryptionError,
    VaultKey,
    VaultKeyError,
)


class TestVaultKey:
    """Tests for VaultKey."""

    def test_round_trip(self):
        """Test encrypt then decrypt returns the plaintext."""
        key = VaultKey.generate()

        assert key.decrypt(key.encrypt("pässwörd")) == "pässwörd"

    def test_fresh_nonce_per_encryption(self):
        """Test the same plaintext encrypts differently each time."""
        key = VaultKey.generate()

        first, second = key.encrypt("secret"), key.encrypt("secret")

        assert first != second
        assert base64.b64decode(first)[:NONCE_LENGTH] != base64.b64decode(second)[:NONCE_LENGTH]

    def test_wrong_key(self):
        """Test a blob sealed under another key is rejected."""
        blob = VaultKey.generate().encrypt("secret")

        with pytest.raises(DecryptionError, match="does not match"):
            VaultKey.generate().decrypt(blob)

    def test_tampered_blob(self):
        """Test flipping a ciphertext bit is detected."""
        key = VaultKey.generate()
        raw = bytearray(base64.b64decode(key.encrypt("secret")))
        raw[-1] ^= 0x01

        with pytest.raises(DecryptionError):
            key.decrypt(base64.b64encode(bytes(raw)).decode())

    @pytest.mark.parametrize("blob", ["not base64!", "", base64.b64encode(b"short").decode()])
    def test_malformed_blob(self, blob):
        """Test invalid or truncated blobs raise DecryptionError."""
        with pytest.raises(DecryptionError):
            VaultKey.generate().decrypt(blob)

    def test_wrong_key_length(self):
        """Test keys must be 256 bits."""
        with pytest.raises(VaultKeyError):
            VaultKey(b"\x00" * 16)

    def test_repr_hides_key(self):
        """Test the key never appears in its repr."""
        assert repr(VaultKey(b"k" * KEY_LENGTH)) == "VaultKey(****)"

    def test_write_and_load(self, tmp_path):
        """Test the key file is raw bytes with owner-only permissions."""
        path = tmp_path / "keys" / ".bookmarks.key"
        key = VaultKey.generate()

        key.write(path)
        loaded = VaultKey.load(path)

        assert len(path.read_bytes()) == KEY_LENGTH
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert loaded.decrypt(key.encrypt("secret")) == "secret"

    def test_load_wrong_length(self, tmp_path):
        """Test loading a truncated key file fails."""
        path = tmp_path / "bad.key"
        path.write_bytes(b"123")

        with pytest.raises(VaultKeyError):
            VaultKey.load(path)
