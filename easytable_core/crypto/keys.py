"""
Key Derivation
==============
Turns an operator-supplied secret into the 32-byte AES-256 key shared
with the quota service.
"""

import hashlib
import re
from dataclasses import dataclass, field

from ..exceptions import EncryptionFailedError

KEY_SIZE = 32

_HEX_KEY_RE = re.compile(r"[0-9a-fA-F]{64}")


@dataclass(frozen=True)
class SymmetricKey:
    """An immutable 32-byte symmetric key. Never printed or logged."""
    raw: bytes = field(repr=False)

    def __post_init__(self):
        if not isinstance(self.raw, (bytes, bytearray)) or len(self.raw) != KEY_SIZE:
            raise EncryptionFailedError(f"Symmetric key must be exactly {KEY_SIZE} bytes")
        object.__setattr__(self, "raw", bytes(self.raw))

    def __bytes__(self) -> bytes:
        return self.raw

    def __repr__(self) -> str:
        return "SymmetricKey(<redacted>)"


def derive_key(secret: str) -> SymmetricKey:
    """
    Derive the symmetric key from an operator secret.

    A secret of exactly 64 hex characters is taken as the raw key.
    Anything else is hashed with SHA-256 over its UTF-8 bytes.

    Args:
        secret: Operator-supplied key material

    Returns:
        SymmetricKey of 32 bytes
    """
    if _HEX_KEY_RE.fullmatch(secret):
        return SymmetricKey(bytes.fromhex(secret))
    return SymmetricKey(hashlib.sha256(secret.encode("utf-8")).digest())
