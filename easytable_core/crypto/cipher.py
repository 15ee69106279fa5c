"""
AES-GCM Cipher
==============
The symmetric cipher capability handed to the auth codec at startup.
"""

import os
from typing import Callable, Optional, Protocol

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..exceptions import EncryptionFailedError
from .keys import SymmetricKey

NONCE_SIZE = 12
TAG_SIZE = 16


class Cipher(Protocol):
    """Authenticated cipher used to seal auth requests."""

    def new_nonce(self) -> bytes: ...

    def encrypt(self, key: SymmetricKey, nonce: bytes, plaintext: bytes) -> bytes: ...

    def decrypt(self, key: SymmetricKey, nonce: bytes, ciphertext: bytes) -> bytes: ...


class AesGcmCipher:
    """
    AES-256-GCM without associated data.

    ``encrypt`` returns ciphertext with the 16-byte tag appended, which is
    the standard GCM output layout.
    """

    def __init__(self, nonce_factory: Optional[Callable[[int], bytes]] = None):
        self._nonce_factory = nonce_factory or os.urandom

    def new_nonce(self) -> bytes:
        """Fresh random nonce; never reused across calls."""
        nonce = self._nonce_factory(NONCE_SIZE)
        if len(nonce) != NONCE_SIZE:
            raise EncryptionFailedError(f"Nonce must be {NONCE_SIZE} bytes")
        return nonce

    def encrypt(self, key: SymmetricKey, nonce: bytes, plaintext: bytes) -> bytes:
        try:
            return AESGCM(key.raw).encrypt(nonce, plaintext, None)
        except (ValueError, TypeError, OverflowError) as e:
            raise EncryptionFailedError(f"AES-GCM encryption failed: {e}") from e

    def decrypt(self, key: SymmetricKey, nonce: bytes, ciphertext: bytes) -> bytes:
        try:
            return AESGCM(key.raw).decrypt(nonce, ciphertext, None)
        except InvalidTag as e:
            raise EncryptionFailedError("AES-GCM authentication failed") from e
        except (ValueError, TypeError, OverflowError) as e:
            raise EncryptionFailedError(f"AES-GCM decryption failed: {e}") from e
