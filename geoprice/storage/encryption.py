"""
Encryption utilities for secrets stored in the settings file.

Uses Fernet symmetric encryption. The key is derived from
``GEOPRICE_SECRET_KEY`` when set, otherwise from machine attributes.
"""

import base64
import hashlib
import logging
import os
import platform
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)

SECRET_KEY_ENV = "GEOPRICE_SECRET_KEY"

# Fernet tokens always start with this (version byte 0x80, base64)
FERNET_PREFIX = "gAAAAA"


def _get_key_material() -> str:
    """
    Get the secret used for key derivation.

    Prefers the explicit environment secret; containers have unstable
    hostnames, so the machine fallback is only for local installs.
    """
    secret = os.environ.get(SECRET_KEY_ENV, "")
    if secret:
        return secret

    components = [platform.node(), platform.machine(), platform.system()]
    try:
        components.append(os.getlogin())
    except OSError:
        pass
    return "|".join(components)


def _derive_key(salt: bytes = b"geoprice_settings_v1") -> bytes:
    """
    Derive a Fernet key.

    Args:
        salt: Salt for key derivation.

    Returns:
        URL-safe base64 encoded 32-byte key.
    """
    key_material = hashlib.pbkdf2_hmac(
        "sha256",
        _get_key_material().encode(),
        salt,
        iterations=100000,
        dklen=32,
    )
    return base64.urlsafe_b64encode(key_material)


class SecureStorage:
    """Encrypts and decrypts short secrets such as provider tokens."""

    def __init__(self, key: Optional[bytes] = None) -> None:
        self._fernet = Fernet(key or _derive_key())

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a string.

        Args:
            plaintext: String to encrypt.

        Returns:
            Fernet token, or "" for empty input.
        """
        if not plaintext:
            return ""
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt a Fernet token.

        A token written under a different key cannot be read; that is
        logged and treated as "no secret".
        """
        if not ciphertext:
            return ""
        try:
            return self._fernet.decrypt(ciphertext.encode()).decode()
        except InvalidToken:
            logger.warning("Stored secret could not be decrypted with the current key")
            return ""

    def is_encrypted(self, value: str) -> bool:
        """Check if a value looks like a Fernet token."""
        return bool(value) and value.startswith(FERNET_PREFIX)


# Module-level singleton
_storage: Optional[SecureStorage] = None


def get_secure_storage() -> SecureStorage:
    """Get or create the singleton secure storage."""
    global _storage
    if _storage is None:
        _storage = SecureStorage()
    return _storage


def encrypt(plaintext: str) -> str:
    """Encrypt a string (convenience function)."""
    return get_secure_storage().encrypt(plaintext)


def decrypt(ciphertext: str) -> str:
    """Decrypt a string (convenience function)."""
    return get_secure_storage().decrypt(ciphertext)


def is_encrypted(value: str) -> bool:
    """Check if value is encrypted (convenience function)."""
    return get_secure_storage().is_encrypted(value)
