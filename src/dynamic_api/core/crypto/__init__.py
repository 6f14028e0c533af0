"""Symmetric encryption for secrets at rest."""

from dynamic_api.core.crypto.cipher import SecretCipher, get_cipher, resolve_encryption_key


__all__ = [
    "SecretCipher",
    "get_cipher",
    "resolve_encryption_key",
]
