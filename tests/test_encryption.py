"""
Tests for the encryption module.
"""

from cryptography.fernet import Fernet

from geoprice.storage.encryption import (
    SecureStorage,
    _derive_key,
    decrypt,
    encrypt,
    is_encrypted,
)


class TestSecureStorage:
    """Tests for SecureStorage class."""

    def test_encrypt_decrypt_roundtrip(self):
        """Encrypted text should decrypt to original."""
        storage = SecureStorage()

        encrypted = storage.encrypt("ipinfo_token_12345")

        assert encrypted != "ipinfo_token_12345"
        assert storage.decrypt(encrypted) == "ipinfo_token_12345"

    def test_encrypt_empty_string(self):
        """Empty string should return empty string."""
        storage = SecureStorage()

        assert storage.encrypt("") == ""
        assert storage.decrypt("") == ""

    def test_is_encrypted_detection(self):
        storage = SecureStorage()

        assert not storage.is_encrypted("plain_token")
        assert not storage.is_encrypted("")
        assert storage.is_encrypted(storage.encrypt("plain_token"))

    def test_foreign_key_cannot_decrypt(self):
        """A token from another key reads as no secret."""
        token = SecureStorage(Fernet.generate_key()).encrypt("secret")

        assert SecureStorage(Fernet.generate_key()).decrypt(token) == ""


class TestKeyDerivation:
    def test_secret_env_controls_key(self, monkeypatch):
        monkeypatch.setenv("GEOPRICE_SECRET_KEY", "one")
        first = _derive_key()
        monkeypatch.setenv("GEOPRICE_SECRET_KEY", "two")
        second = _derive_key()

        assert first != second

    def test_same_secret_same_key(self, monkeypatch):
        monkeypatch.setenv("GEOPRICE_SECRET_KEY", "stable")

        assert _derive_key() == _derive_key()


class TestConvenienceFunctions:
    """Tests for module-level convenience functions."""

    def test_roundtrip(self):
        token = encrypt("test_value")

        assert is_encrypted(token)
        assert decrypt(token) == "test_value"
