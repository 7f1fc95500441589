"""
PartitionedStore — one key holder's view of a shared credential blob.

The backing blob holds an ordered list of partitions, each an independently
encrypted record set belonging to whoever knows its secret key. A store
session finds its own partition by trial decryption, keeps every other
partition untouched, and on save appends its re-encrypted records to the
tail of the list.

Public API:
- ``create_initial_partition(key)`` — join a blob with a fresh, empty partition
- ``open(key, strict)`` — locate the partition belonging to ``key``
- ``get`` / ``get_all`` / ``set`` / ``delete`` — work with the record set
- ``save()`` / ``rotate_key(new_key)`` — re-encrypt and write back
- ``destroy()`` — delete the whole blob (every key holder's partition)

Security Note:
    Never log keys, plaintext or ciphertext. Only log record names,
    operations and partition counts. Decrypted records live in process
    memory until ``close()``; use the store as a context manager so that
    happens on every exit path.

Concurrency Note:
    Sessions do not coordinate. Two sessions saving the same blob race and
    the later full write wins, which can drop a partition the other session
    added or rotated.
"""
import logging
from typing import Any, Optional

from ..data import RecordDict, serialize_value, deserialize_value
from ..exceptions import AuthenticationFailed, KeyAlreadyExists, MalformedStorage
from ..keys import EnvironmentKeySource, KeySource, SecretKey
from ..storage import StorageBackend, FileStorageBackend
from .codec import PartitionCodec
from .config import VaultConfig
from .crypto import (
    AeadEncryptionProvider,
    EncryptionProvider,
    Matched,
    serialize_records,
    deserialize_records,
)

logger = logging.getLogger("credentials.vault")


class PartitionedStore:
    """Credential records of one secret key inside a shared, partitioned blob.

    Collaborators are injected at construction; nothing is registered
    globally, so several stores (different blobs, providers or key sources)
    can coexist in one process.

    Args:
        backend: Where the blob is read from and written to.
        provider: Authenticated encryption used for every partition.
        key_source: Optional non-interactive key supplier (e.g. an
            environment variable).
        codec: Blob framing; defaults to ``PartitionCodec``.
        autosave: Save after every mutating call. When ``False`` the caller
            is responsible for calling ``save()``.
        detect_ambiguous_partitions: Keep scanning after the first match and
            raise ``MalformedStorage`` if a second partition also decrypts.
    """

    def __init__(
        self,
        backend: StorageBackend,
        provider: EncryptionProvider,
        key_source: Optional[KeySource] = None,
        codec: Optional[PartitionCodec] = None,
        *,
        autosave: bool = True,
        detect_ambiguous_partitions: bool = False,
    ):
        self._backend = backend
        self._provider = provider
        self._key_source = key_source
        self._codec = codec or PartitionCodec()
        self._autosave = autosave
        self._detect_ambiguous = detect_ambiguous_partitions
        self._records: Optional[RecordDict] = None
        self._key: Optional[SecretKey] = None
        self._other_partitions: list[str] = []
        self._matched = False

    @classmethod
    def from_config(cls, config: Optional[VaultConfig] = None) -> "PartitionedStore":
        """Build a store for a file blob, AEAD provider and environment key.

        Args:
            config: Vault settings; loaded from the environment when omitted.
        """
        config = config or VaultConfig.from_env()
        return cls(
            backend=FileStorageBackend(config.storage_path),
            provider=AeadEncryptionProvider.from_config(config),
            key_source=EnvironmentKeySource(config.key_env_var),
            autosave=config.autosave,
            detect_ambiguous_partitions=config.detect_ambiguous_partitions,
        )

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return (
            f"<PartitionedStore [{state}] records={len(self._records or ())} "
            f"other_partitions={len(self._other_partitions)}>"
        )

    def __enter__(self) -> "PartitionedStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Partition list I/O
    # ------------------------------------------------------------------

    def _read_partitions(self) -> list[str]:
        return self._codec.decode(self._backend.read())

    def _write_partitions(self, partitions: list[str]) -> None:
        self._backend.write(self._codec.encode(partitions))

    def _match(self, partitions: list[str], key: SecretKey) -> Optional[str]:
        """Trial-decrypt *partitions* in order and claim the first match.

        Non-matching partitions are kept (in order) as the other partitions.

        Returns:
            Plaintext of the matched partition, or ``None``.
        """
        plaintext: Optional[str] = None
        others: list[str] = []
        for index, partition in enumerate(partitions):
            if plaintext is not None and not self._detect_ambiguous:
                others.append(partition)
                continue
            result = self._provider.try_decrypt(partition, key)
            if not isinstance(result, Matched):
                others.append(partition)
                continue
            if plaintext is not None:
                raise MalformedStorage(
                    "more than one partition decrypts under the same key"
                )
            logger.debug("Key matched partition %d of %d", index + 1, len(partitions))
            plaintext = result.plaintext
        self._other_partitions = others
        return plaintext

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._records is not None

    @property
    def records(self) -> RecordDict:
        if self._records is None:
            raise RuntimeError("Credential store is not open")
        return self._records

    @property
    def matched(self) -> bool:
        """Whether open() found an existing partition for the key."""
        return self._matched

    @property
    def partition_count(self) -> int:
        """Partitions held by other keys (the session's own is not counted)."""
        return len(self._other_partitions)

    def create_initial_partition(self, key: SecretKey) -> "PartitionedStore":
        """Add a new, empty partition for *key* to the blob.

        Existing partitions are carried over without being decrypted, so a new
        key holder can join a shared blob without disturbing anyone.

        Raises:
            KeyAlreadyExists: If the key source already supplies a key.
        """
        if self._key_source is not None and self._key_source.has_key():
            raise KeyAlreadyExists(
                "cannot create a new key while a persistent key is available"
            )
        if not key:
            raise ValueError("Secret key cannot be empty")
        self.close()
        self._other_partitions = self._read_partitions()
        self._records = RecordDict(new=True)
        self._key = key
        self.save()
        logger.info(
            "Created credential partition (%d partition(s) in blob)",
            len(self._other_partitions) + 1,
        )
        return self

    def open(
        self,
        key: Optional[SecretKey] = None,
        strict: Optional[bool] = None,
    ) -> "PartitionedStore":
        """Load the partition that belongs to *key*.

        Args:
            key: Secret key. Taken from the key source when omitted.
            strict: Fail when no partition matches. Defaults to ``True`` for
                an explicit key and ``False`` for a key from the key source,
                so a persistent key starts an empty record set on first use.

        Returns:
            The store itself, open.

        Raises:
            AuthenticationFailed: If strict and no partition matches, or if no
                key is available for a non-empty blob.
            MalformedStorage: If the blob or the matched partition is not
                decodable, or (with ambiguity detection) two partitions match.
        """
        from_source = False
        if key is None and self._key_source is not None:
            key = self._key_source.get()
            from_source = key is not None
        if strict is None:
            strict = not from_source

        self.close()
        partitions = self._read_partitions()
        if not key:
            if partitions:
                raise AuthenticationFailed("a secret key is required to open the store")
            self._records = RecordDict(new=True)
            return self

        plaintext = self._match(partitions, key)
        if plaintext is not None:
            self._records = RecordDict(deserialize_records(plaintext))
            self._matched = True
        elif strict and partitions:
            self._other_partitions = []
            raise AuthenticationFailed("failed to decrypt a partition with the given key")
        else:
            self._records = RecordDict(new=True)
        self._key = key
        logger.info(
            "Opened credential store: %d record(s), %d other partition(s)",
            len(self._records), len(self._other_partitions),
        )
        return self

    def close(self) -> None:
        """Forget the key and the decrypted records."""
        if self._records is not None:
            self._records.invalidate()
        self._records = None
        self._key = None
        self._other_partitions = []
        self._matched = False

    def save(self) -> None:
        """Encrypt the record set and write it back at the tail of the blob.

        Raises:
            AuthenticationFailed: If the session has no key to encrypt with.
        """
        records = self.records
        if not self._key:
            raise AuthenticationFailed("cannot save without a secret key")
        partition = self._provider.encrypt(serialize_records(records.to_dict()), self._key)
        self._write_partitions([*self._other_partitions, partition])
        records.is_changed = False
        logger.debug(
            "Saved credential store: %d record(s), %d partition(s)",
            len(records), len(self._other_partitions) + 1,
        )

    def _saved(self) -> None:
        if self._autosave:
            self.save()

    def rotate_key(self, new_key: SecretKey) -> None:
        """Re-encrypt this session's records under *new_key*.

        The ciphertext under the old key was removed from the partition list
        at open time and is not written again.
        """
        if not new_key:
            raise ValueError("New secret key cannot be empty")
        if not self.is_open:
            raise RuntimeError("Credential store is not open")
        self._key = new_key
        self.save()
        logger.info("Rotated secret key for credential store")

    def destroy(self) -> None:
        """Delete the entire blob, including every other key's partition."""
        if self._records is not None:
            self._records.invalidate()
        self._other_partitions = []
        self._backend.delete()
        logger.info("Destroyed credential storage")

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def get(self, name: str, model: Optional[type] = None) -> Any:
        """Return the deserialized record *name*.

        Args:
            name: Record name.
            model: Optional pydantic model class to validate the value into.

        Raises:
            RecordNotFound: If *name* is not stored.
        """
        return deserialize_value(self.records[name], model=model)

    def get_serialized(self, name: str) -> str:
        return self.records[name]

    def get_all(self) -> list[str]:
        """Names of all stored records."""
        return self.records.names()

    def items(self) -> dict[str, str]:
        return self.records.to_dict()

    def set(self, name: str, value: Any) -> None:
        """Store *value* under *name*, replacing any existing record."""
        self.records[name] = serialize_value(value)
        self._saved()
        logger.debug("Credential set: name=%s", name)

    def set_record(self, record: Any) -> None:
        """Store a ``CredentialRecord`` under its own name."""
        self.set(record.name, record)

    def delete(self, name: str) -> None:
        """Remove record *name*; a missing name is not an error."""
        self.records.pop(name, None)
        self._saved()
        logger.debug("Credential delete: name=%s", name)
