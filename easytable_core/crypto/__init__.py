"""
Crypto Module
=============
Key derivation and the AES-256-GCM cipher used by the auth protocol.
"""

from .keys import SymmetricKey, derive_key, KEY_SIZE
from .cipher import Cipher, AesGcmCipher, NONCE_SIZE, TAG_SIZE

__all__ = [
    # Keys
    "SymmetricKey",
    "derive_key",
    "KEY_SIZE",
    # Cipher
    "Cipher",
    "AesGcmCipher",
    "NONCE_SIZE",
    "TAG_SIZE",
]
