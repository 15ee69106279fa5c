"""
Auth Codec
==========
Serializes, pads and seals auth requests into the envelope format the
quota service expects: ``nonce(12) || ciphertext || tag(16)``.
"""

import json
from typing import Optional

import structlog

from ..crypto import AesGcmCipher, Cipher, NONCE_SIZE, TAG_SIZE, SymmetricKey
from ..exceptions import EncryptionFailedError
from .models import AuthRequest

logger = structlog.get_logger(__name__)

BLOCK_SIZE = 16
PAD_BYTE = b" "


def serialize_request(request: AuthRequest) -> str:
    """Compact JSON text of the request's wire form."""
    return json.dumps(request.to_wire(), separators=(",", ":"), ensure_ascii=False)


def pad_plaintext(text: str) -> bytes:
    """
    UTF-8 encode ``text`` and append spaces up to a multiple of 16 bytes.

    GCM does not need the padding; the counterpart service does.
    """
    data = text.encode("utf-8")
    remainder = len(data) % BLOCK_SIZE
    if remainder:
        data += PAD_BYTE * (BLOCK_SIZE - remainder)
    return data


def encrypt_request(
    request: AuthRequest,
    key: SymmetricKey,
    cipher: Optional[Cipher] = None,
) -> bytes:
    """
    Seal a request into an encrypted envelope.

    Args:
        request: The request to send
        key: Derived symmetric key
        cipher: Cipher capability (AES-256-GCM by default)

    Returns:
        Envelope bytes: nonce followed by ciphertext and tag

    Raises:
        EncryptionFailedError: The cipher failed
    """
    cipher = cipher or AesGcmCipher()
    plaintext = pad_plaintext(serialize_request(request))
    nonce = cipher.new_nonce()
    sealed = cipher.encrypt(key, nonce, plaintext)

    logger.debug(
        "auth.request_encrypted",
        kind=request.wire_key,
        trace_id=request.trace_id,
        plaintext_size=len(plaintext),
        envelope_size=len(nonce) + len(sealed),
    )
    return nonce + sealed


def decrypt_envelope(
    envelope: bytes,
    key: SymmetricKey,
    cipher: Optional[Cipher] = None,
) -> bytes:
    """Open an envelope and return the padded plaintext."""
    if len(envelope) < NONCE_SIZE + TAG_SIZE:
        raise EncryptionFailedError("Envelope too short")
    cipher = cipher or AesGcmCipher()
    return cipher.decrypt(key, envelope[:NONCE_SIZE], envelope[NONCE_SIZE:])


def parse_plaintext(plaintext: bytes) -> AuthRequest:
    """Strip the space padding and parse a request back from its wire JSON."""
    return AuthRequest.from_wire(json.loads(plaintext.decode("utf-8").rstrip(" ")))
