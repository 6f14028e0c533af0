"""AES-256-CBC encryption for tenant secrets stored in the ledger.

Tokens have the form ``<iv_hex>:<ciphertext_hex>`` with a fresh 16-byte IV
per call. The key is the UTF-8 encoding of the configured ENCRYPTION_KEY
(32 characters), resolved once at start-up and handed to SecretCipher.
"""

import re
import secrets
from functools import lru_cache

import structlog
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from dynamic_api.config import Settings, get_settings
from dynamic_api.core.constants import ENCRYPTION_KEY_LENGTH, IV_LENGTH, TOKEN_SEPARATOR
from dynamic_api.core.errors import DecryptionError


logger = structlog.get_logger()

_HEX = re.compile(r"[0-9a-fA-F]+")
_BLOCK_BYTES = algorithms.AES.block_size // 8


def resolve_encryption_key(config: Settings) -> bytes:
    """Resolve the process-wide cipher key from configuration.

    Args:
        config: Application settings

    Returns:
        A 32-byte key

    Raises:
        ValueError: If no key is configured in production
    """
    if config.encryption_key:
        return config.encryption_key.encode("utf-8")

    if config.is_production:
        raise ValueError("ENCRYPTION_KEY must be set in production")

    logger.warning(
        "encryption_key_generated",
        reason="ENCRYPTION_KEY is not set",
        consequence="secrets stored by earlier processes can no longer be decrypted",
    )
    return secrets.token_hex(ENCRYPTION_KEY_LENGTH // 2).encode("ascii")


class SecretCipher:
    """Encrypts and decrypts tenant secrets with a fixed key.

    Usage:
        cipher = SecretCipher(key)
        token = cipher.encrypt("s3cret")
        assert cipher.decrypt(token) == "s3cret"
    """

    def __init__(self, key: bytes) -> None:
        if len(key) != ENCRYPTION_KEY_LENGTH:
            raise ValueError(f"Cipher key must be {ENCRYPTION_KEY_LENGTH} bytes, got {len(key)}")
        self._algorithm = algorithms.AES(key)

    def encrypt(self, plaintext: str) -> str:
        """Encrypt plaintext into an ``iv:ciphertext`` hex token."""
        iv = secrets.token_bytes(IV_LENGTH)

        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

        encryptor = Cipher(self._algorithm, modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()

        return f"{iv.hex()}{TOKEN_SEPARATOR}{ciphertext.hex()}"

    def decrypt(self, token: str) -> str:
        """Decrypt a token produced by :meth:`encrypt`.

        Raises:
            DecryptionError: If the token is malformed or does not decrypt
                to valid padded UTF-8 under this key
        """
        segments = token.split(TOKEN_SEPARATOR)
        if len(segments) != 2:
            raise DecryptionError(
                "Malformed ciphertext token",
                details={"reason": "segment_count", "segments": len(segments)},
            )

        iv_hex, ciphertext_hex = segments
        if not _HEX.fullmatch(iv_hex) or not _HEX.fullmatch(ciphertext_hex):
            raise DecryptionError("Malformed ciphertext token", details={"reason": "not_hex"})

        try:
            iv = bytes.fromhex(iv_hex)
            ciphertext = bytes.fromhex(ciphertext_hex)
        except ValueError as e:
            # Odd-length hex
            raise DecryptionError("Malformed ciphertext token", details={"reason": "not_hex"}) from e

        if len(iv) != IV_LENGTH:
            raise DecryptionError(
                "Malformed ciphertext token",
                details={"reason": "iv_length", "iv_bytes": len(iv)},
            )
        if len(ciphertext) % _BLOCK_BYTES:
            raise DecryptionError(
                "Malformed ciphertext token", details={"reason": "block_length"}
            )

        decryptor = Cipher(self._algorithm, modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()

        try:
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            data = unpadder.update(padded) + unpadder.finalize()
            return data.decode("utf-8")
        except ValueError as e:
            # Bad padding or bad UTF-8: wrong key or tampered token
            raise DecryptionError(
                "Ciphertext failed to decrypt", details={"reason": "padding"}
            ) from e


@lru_cache
def get_cipher() -> SecretCipher:
    """Dependency that provides the process-wide cipher.

    The first call resolves the key; the application lifespan makes that
    call during start-up so a generated-key warning appears immediately.
    """
    return SecretCipher(resolve_encryption_key(get_settings()))
