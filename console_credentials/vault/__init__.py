"""Credential Vault — partitioned, password-protected credential storage.

Security Note (Threat Model):
    Anyone holding the blob learns how many partitions it has, and nothing
    else. Decrypted records live in process memory while a store is open.
    Sessions do not lock the blob; concurrent writers can lose updates.
"""

from .partitioned_store import PartitionedStore
from .key_rotation import rotate_secret_key
from .codec import PartitionCodec
from .crypto import (
    EncryptionProvider,
    AeadEncryptionProvider,
    Matched,
    NotMine,
)
from .config import VaultConfig, generate_secret_key

__all__ = [
    "PartitionedStore",
    "rotate_secret_key",
    "PartitionCodec",
    "EncryptionProvider",
    "AeadEncryptionProvider",
    "Matched",
    "NotMine",
    "VaultConfig",
    "generate_secret_key",
]
