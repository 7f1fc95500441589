"""
Tests for partition encryption.

Tests cover:
- Encrypt/decrypt under AES-GCM and ChaCha20-Poly1305
- Wrong key, tampering and garbage input as DecryptionError
- try_decrypt returning Matched / NotMine values
- Partition plaintext parsing
"""
import base64

import pytest

from console_credentials.exceptions import DecryptionError, MalformedStorage
from console_credentials.vault.crypto import (
    AeadEncryptionProvider,
    Matched,
    NotMine,
    derive_key,
    serialize_records,
    deserialize_records,
    SALT_SIZE,
    NONCE_SIZE,
    TAG_SIZE,
)


@pytest.fixture(params=["aesgcm", "chacha20"])
def provider(request):
    """AEAD provider with a cheap KDF for tests."""
    return AeadEncryptionProvider(cipher_backend=request.param, kdf_iterations=1000)


def _flip_last_byte(ciphertext: str) -> str:
    raw = bytearray(base64.b64decode(ciphertext))
    raw[-1] ^= 0x01
    return base64.b64encode(bytes(raw)).decode("ascii")


class TestEncryption:
    """Tests for AeadEncryptionProvider."""

    def test_encrypt_decrypt(self, provider):
        """Test decrypting with the same key returns the plaintext."""
        ct = provider.encrypt('{"a": "1"}', "hunter2")
        assert provider.decrypt(ct, "hunter2") == '{"a": "1"}'

    def test_bytes_and_text_keys_match(self, provider):
        """Test a bytes key is equivalent to its UTF-8 text."""
        ct = provider.encrypt("secret", "pässword")
        assert provider.decrypt(ct, "pässword".encode("utf-8")) == "secret"

    def test_ciphertext_layout(self, provider):
        """Test the ciphertext is base64 of salt, nonce and sealed payload."""
        ct = provider.encrypt("abc", "k")
        raw = base64.b64decode(ct)
        assert len(raw) == SALT_SIZE + NONCE_SIZE + 3 + TAG_SIZE

    def test_fresh_ciphertext_every_time(self, provider):
        """Test random salt and nonce give distinct ciphertexts."""
        assert provider.encrypt("abc", "k") != provider.encrypt("abc", "k")

    def test_wrong_key(self, provider):
        """Test a wrong key raises DecryptionError."""
        ct = provider.encrypt("abc", "right")
        with pytest.raises(DecryptionError):
            provider.decrypt(ct, "wrong")

    def test_tampered_ciphertext(self, provider):
        """Test a modified ciphertext fails authentication."""
        ct = provider.encrypt("abc", "k")
        with pytest.raises(DecryptionError):
            provider.decrypt(_flip_last_byte(ct), "k")

    def test_too_short(self, provider):
        """Test a truncated ciphertext is rejected."""
        short = base64.b64encode(b"\x00" * 10).decode("ascii")
        with pytest.raises(DecryptionError):
            provider.decrypt(short, "k")

    def test_not_base64(self, provider):
        """Test non-base64 input is rejected."""
        with pytest.raises(DecryptionError):
            provider.decrypt("@@not base64@@", "k")

    def test_unknown_backend(self):
        """Test an unsupported cipher backend is rejected."""
        with pytest.raises(ValueError):
            AeadEncryptionProvider(cipher_backend="des")

    def test_cipher_backends_are_not_interchangeable(self):
        """Test ChaCha20 ciphertext does not open under AES-GCM."""
        chacha = AeadEncryptionProvider(cipher_backend="chacha20", kdf_iterations=1000)
        aes = AeadEncryptionProvider(cipher_backend="aesgcm", kdf_iterations=1000)
        with pytest.raises(DecryptionError):
            aes.decrypt(chacha.encrypt("abc", "k"), "k")


class TestTryDecrypt:
    """Tests for trial decryption results."""

    def test_matched(self, provider):
        """Test a matching key yields Matched with the plaintext."""
        result = provider.try_decrypt(provider.encrypt("abc", "k"), "k")
        assert isinstance(result, Matched)
        assert result.plaintext == "abc"

    def test_not_mine(self, provider):
        """Test a foreign partition yields NotMine."""
        result = provider.try_decrypt(provider.encrypt("abc", "k"), "other")
        assert isinstance(result, NotMine)

    def test_matched_repr_hides_plaintext(self):
        """Test the plaintext does not leak through repr."""
        assert "abc" not in repr(Matched("abc"))


class TestKeyDerivation:
    """Tests for derive_key."""

    def test_deterministic_per_salt(self):
        """Test the same password and salt derive the same key."""
        salt = b"s" * SALT_SIZE
        assert derive_key("pw", salt, 1000) == derive_key("pw", salt, 1000)
        assert len(derive_key("pw", salt, 1000)) == 32

    def test_salt_changes_key(self):
        """Test a different salt derives a different key."""
        assert derive_key("pw", b"a" * SALT_SIZE, 1000) != derive_key("pw", b"b" * SALT_SIZE, 1000)


class TestRecordSerialization:
    """Tests for partition plaintext."""

    def test_records_roundtrip(self):
        """Test a record mapping survives serialization."""
        records = {"db": '{"user": "app"}', "token": '"abc"'}
        assert deserialize_records(serialize_records(records)) == records

    def test_not_json(self):
        """Test garbage plaintext is malformed."""
        with pytest.raises(MalformedStorage):
            deserialize_records("not json")

    def test_not_an_object(self):
        """Test a JSON array is not a record set."""
        with pytest.raises(MalformedStorage):
            deserialize_records("[1, 2]")

    def test_names_must_not_be_empty(self):
        """Test an empty record name is malformed."""
        with pytest.raises(MalformedStorage):
            deserialize_records('{"": "\\"x\\""}')

    def test_values_must_be_text(self):
        """Test record values must be serialized strings."""
        with pytest.raises(MalformedStorage):
            deserialize_records('{"port": 5432}')
