"""
Auth Module
===========
Encrypted request protocol for the quota/auth service.
"""

from .models import (
    AuthRequest,
    RevokeRequest,
    CheckRevokeRequest,
    QuotaRequest,
    DenyReason,
    QuotaDecision,
)
from .builder import RequestKind, build_request
from .codec import (
    serialize_request,
    pad_plaintext,
    encrypt_request,
    decrypt_envelope,
    parse_plaintext,
    BLOCK_SIZE,
)
from .client import AuthClient

__all__ = [
    # Models
    "AuthRequest",
    "RevokeRequest",
    "CheckRevokeRequest",
    "QuotaRequest",
    "DenyReason",
    "QuotaDecision",
    # Builder
    "RequestKind",
    "build_request",
    # Codec
    "serialize_request",
    "pad_plaintext",
    "encrypt_request",
    "decrypt_envelope",
    "parse_plaintext",
    "BLOCK_SIZE",
    # Client
    "AuthClient",
]
