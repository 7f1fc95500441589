"""
Vault Key Rotation — Move a key holder's records to a new secret key.

Opens the blob strictly with the old key, re-encrypts the matched record set
under the new key and writes it back. Partitions of other key holders are
carried over untouched. After rotation the old key no longer opens anything.

Security Note:
    Plaintext exists in memory only for the duration of the rotation.
    Never log key material.
"""
import logging

from ..exceptions import AuthenticationFailed
from ..keys import SecretKey
from .partitioned_store import PartitionedStore

logger = logging.getLogger("credentials.vault")


def rotate_secret_key(
    store: PartitionedStore,
    old_key: SecretKey,
    new_key: SecretKey,
) -> dict:
    """Re-encrypt the partition owned by *old_key* under *new_key*.

    Args:
        store: A (closed) store wired to the blob to rotate.
        old_key: Current secret key.
        new_key: Replacement secret key.

    Returns:
        Stats dict with keys: records, partitions.

    Raises:
        AuthenticationFailed: If no partition matches *old_key*, including
            when the blob is empty.
        ValueError: If *new_key* is empty or equal to *old_key*.
    """
    if not new_key:
        raise ValueError("New secret key cannot be empty")
    if new_key == old_key:
        raise ValueError("New secret key must differ from the old one")

    logger.info("Starting secret key rotation")
    with store.open(old_key, strict=True):
        if not store.matched:
            raise AuthenticationFailed("no partition matches the old secret key")
        store.rotate_key(new_key)
        stats = {
            "records": len(store.get_all()),
            "partitions": store.partition_count + 1,
        }
    logger.info("Key rotation complete: %s", stats)
    return stats
