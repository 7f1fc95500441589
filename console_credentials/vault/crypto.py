"""
Vault Crypto Core — Key derivation, partition encryption and serialization.

Each partition is encrypted on its own:
    PBKDF2-HMAC-SHA256(secret_key, salt) → AES-GCM / ChaCha20-Poly1305
    → base64([salt 16B][nonce 12B][encrypted_payload + tag 16B])

Authenticated encryption is what makes trial decryption sound: a wrong key
or a damaged partition always fails the tag check, it never yields garbage.

Security Note:
    Never log plaintext, ciphertext or key values.
    Salts and nonces are random per encryption; every save produces a fresh
    ciphertext even when the records did not change.
"""
import os
import base64
import binascii
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Union

import orjson
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

from ..exceptions import DecryptionError, MalformedStorage
from ..keys import SecretKey
from .config import DEFAULT_KDF_ITERATIONS

logger = logging.getLogger("credentials.vault")

SALT_SIZE = 16
NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16
KEY_LENGTH = 32  # AES-256

_CIPHERS = {
    "aesgcm": AESGCM,
    "chacha20": ChaCha20Poly1305,
}


# ---------------------------------------------------------------------------
# Trial decryption results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Matched:
    """The partition decrypted under the tried key."""
    plaintext: str = field(repr=False)


@dataclass(frozen=True)
class NotMine:
    """The partition belongs to some other key (or is damaged)."""


NOT_MINE = NotMine()

PartitionMatch = Union[Matched, NotMine]


# ---------------------------------------------------------------------------
# Encryption providers
# ---------------------------------------------------------------------------

class EncryptionProvider(ABC):
    """Symmetric authenticated encryption of text under a secret key."""

    @abstractmethod
    def encrypt(self, plaintext: str, key: SecretKey) -> str:
        """Encrypt *plaintext* and return a text-safe ciphertext."""
        ...

    @abstractmethod
    def decrypt(self, ciphertext: str, key: SecretKey) -> str:
        """Decrypt *ciphertext*.

        Raises:
            DecryptionError: if the key is wrong or the ciphertext is damaged.
        """
        ...

    def try_decrypt(self, ciphertext: str, key: SecretKey) -> PartitionMatch:
        """Attempt decryption and report the outcome as a value."""
        try:
            return Matched(self.decrypt(ciphertext, key))
        except DecryptionError:
            return NOT_MINE


def _key_bytes(key: SecretKey) -> bytes:
    if isinstance(key, str):
        return key.encode("utf-8")
    return bytes(key)


def derive_key(secret_key: SecretKey, salt: bytes, iterations: int) -> bytes:
    """Derive a 32-byte encryption key from a password with PBKDF2-SHA256.

    Args:
        secret_key: Password or key material supplied by the caller.
        salt: Random per-ciphertext salt.
        iterations: PBKDF2 work factor.

    Returns:
        32-byte derived key.
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(_key_bytes(secret_key))


class AeadEncryptionProvider(EncryptionProvider):
    """Password-based AEAD encryption.

    Args:
        cipher_backend: ``"aesgcm"`` (default) or ``"chacha20"``.
        kdf_iterations: PBKDF2 iteration count. Every trial decryption pays
            this cost once, so it bounds how fast a shared blob can be scanned.
    """

    def __init__(
        self,
        cipher_backend: str = "aesgcm",
        kdf_iterations: int = DEFAULT_KDF_ITERATIONS,
    ) -> None:
        try:
            self._cipher_cls = _CIPHERS[cipher_backend]
        except KeyError:
            raise ValueError(
                f"Unsupported cipher backend: {cipher_backend}"
            ) from None
        self.cipher_backend = cipher_backend
        self.kdf_iterations = kdf_iterations

    @classmethod
    def from_config(cls, config: Any) -> "AeadEncryptionProvider":
        return cls(
            cipher_backend=config.cipher_backend,
            kdf_iterations=config.kdf_iterations,
        )

    def encrypt(self, plaintext: str, key: SecretKey) -> str:
        salt = os.urandom(SALT_SIZE)
        nonce = os.urandom(NONCE_SIZE)
        cipher = self._cipher_cls(derive_key(key, salt, self.kdf_iterations))
        ct = cipher.encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.b64encode(salt + nonce + ct).decode("ascii")

    def decrypt(self, ciphertext: str, key: SecretKey) -> str:
        try:
            raw = base64.b64decode(ciphertext, validate=True)
        except (binascii.Error, ValueError) as err:
            raise DecryptionError("ciphertext is not valid base64") from err
        _min = SALT_SIZE + NONCE_SIZE + TAG_SIZE
        if len(raw) < _min:
            raise DecryptionError(
                f"ciphertext too short: {len(raw)} bytes (minimum {_min})"
            )
        salt = raw[:SALT_SIZE]
        nonce = raw[SALT_SIZE:SALT_SIZE + NONCE_SIZE]
        ct = raw[SALT_SIZE + NONCE_SIZE:]
        cipher = self._cipher_cls(derive_key(key, salt, self.kdf_iterations))
        try:
            plaintext = cipher.decrypt(nonce, ct, None)
        except InvalidTag as err:
            raise DecryptionError("authentication tag mismatch") from err
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as err:
            raise DecryptionError("decrypted payload is not UTF-8") from err


# ---------------------------------------------------------------------------
# Record serialization
# ---------------------------------------------------------------------------

def serialize_records(records: dict[str, str]) -> str:
    """Serialize a name → serialized-value mapping to JSON text."""
    return orjson.dumps(records).decode("utf-8")


def deserialize_records(data: str) -> dict[str, str]:
    """Parse the plaintext of a decrypted partition.

    Raises:
        MalformedStorage: If the plaintext is not a JSON object of strings.
    """
    try:
        parsed = orjson.loads(data)
    except orjson.JSONDecodeError as err:
        raise MalformedStorage("partition plaintext is not valid JSON") from err
    if not isinstance(parsed, dict) or not all(
        k and isinstance(v, str) for k, v in parsed.items()
    ):
        raise MalformedStorage(
            "partition plaintext must map record names to serialized records"
        )
    return parsed
