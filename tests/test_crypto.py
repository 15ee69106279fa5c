"""
Unit Tests for Key Derivation and AES-GCM
=========================================
"""

import hashlib

import pytest

from tests.conftest import HEX_SECRET


class TestDeriveKey:
    """Tests for operator secret to key derivation."""

    def test_hex_secret_used_directly(self):
        """A 64-char hex secret should decode to exactly its 32 bytes."""
        from easytable_core.crypto import derive_key

        key = derive_key(HEX_SECRET)

        assert key.raw == bytes.fromhex(HEX_SECRET)
        assert len(key.raw) == 32

    def test_uppercase_hex_accepted(self):
        """Hex detection should be case-insensitive."""
        from easytable_core.crypto import derive_key

        assert derive_key(HEX_SECRET.upper()).raw == bytes.fromhex(HEX_SECRET)

    def test_passphrase_hashed(self):
        """Non-hex secrets should derive the SHA-256 digest."""
        from easytable_core.crypto import derive_key

        key = derive_key("correct horse battery staple")

        assert key.raw == hashlib.sha256(b"correct horse battery staple").digest()

    def test_near_hex_secrets_hashed(self):
        """63 hex chars, 65 hex chars or a non-hex char should all be hashed."""
        from easytable_core.crypto import derive_key

        for secret in (HEX_SECRET[:-1], HEX_SECRET + "0", HEX_SECRET[:-1] + "g"):
            assert derive_key(secret).raw == hashlib.sha256(secret.encode()).digest()

    def test_not_a_naive_byte_slice(self):
        """A 32-char text secret must not be used as raw key bytes."""
        from easytable_core.crypto import derive_key

        secret = "abcdefghijklmnopqrstuvwxyz012345"
        assert derive_key(secret).raw != secret.encode()[:32]

    def test_deterministic(self):
        """Same secret should always yield the same key."""
        from easytable_core.crypto import derive_key

        assert derive_key("s3cret") == derive_key("s3cret")
        assert derive_key("") == derive_key("")

    def test_key_repr_redacted(self):
        """Key material should never appear in repr."""
        from easytable_core.crypto import derive_key

        key = derive_key(HEX_SECRET)

        assert HEX_SECRET not in repr(key)
        assert "redacted" in repr(key)

    def test_wrong_length_rejected(self):
        """Keys must be exactly 32 bytes."""
        from easytable_core.crypto import SymmetricKey
        from easytable_core.exceptions import EncryptionFailedError

        with pytest.raises(EncryptionFailedError):
            SymmetricKey(b"short")


class TestAesGcmCipher:
    """Tests for the injected cipher capability."""

    def test_encrypt_decrypt(self):
        """Ciphertext should carry a 16-byte tag and decrypt back."""
        from easytable_core.crypto import AesGcmCipher, derive_key

        cipher = AesGcmCipher()
        key = derive_key("k")
        nonce = cipher.new_nonce()

        sealed = cipher.encrypt(key, nonce, b"0123456789abcdef")

        assert len(nonce) == 12
        assert len(sealed) == 16 + 16
        assert cipher.decrypt(key, nonce, sealed) == b"0123456789abcdef"

    def test_fresh_nonce_each_call(self):
        """Nonces should not repeat."""
        from easytable_core.crypto import AesGcmCipher

        cipher = AesGcmCipher()
        nonces = {cipher.new_nonce() for _ in range(100)}

        assert len(nonces) == 100

    def test_bad_nonce_factory_rejected(self):
        """A nonce factory returning the wrong size should fail."""
        from easytable_core.crypto import AesGcmCipher
        from easytable_core.exceptions import EncryptionFailedError

        cipher = AesGcmCipher(nonce_factory=lambda n: b"\x00" * (n - 1))

        with pytest.raises(EncryptionFailedError):
            cipher.new_nonce()

    def test_wrong_key_fails(self):
        """Decrypting with another key should raise EncryptionFailedError."""
        from easytable_core.crypto import AesGcmCipher, derive_key
        from easytable_core.exceptions import EncryptionFailedError

        cipher = AesGcmCipher()
        nonce = cipher.new_nonce()
        sealed = cipher.encrypt(derive_key("a"), nonce, b"payload")

        with pytest.raises(EncryptionFailedError):
            cipher.decrypt(derive_key("b"), nonce, sealed)
