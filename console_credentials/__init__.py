"""Console Credentials.

Named credential records kept behind a secret key, in one encrypted blob
that several key holders can share without seeing each other's records.
"""
from .version import __version__
from .exceptions import (
    CredentialStorageError,
    KeyAlreadyExists,
    AuthenticationFailed,
    MalformedStorage,
    RecordNotFound,
    DecryptionError,
)
from .data import RecordDict
from .keys import KeySource, EnvironmentKeySource, StaticKeySource
from .storage import StorageBackend, FileStorageBackend, MemoryStorageBackend
from .records import (
    CredentialRecord,
    RecordBuilder,
    RecordField,
    UsernamePassword,
    ApiToken,
    ConnectionString,
)
from .vault import (
    PartitionedStore,
    PartitionCodec,
    EncryptionProvider,
    AeadEncryptionProvider,
    VaultConfig,
    generate_secret_key,
    rotate_secret_key,
)

__all__ = (
    "__version__",
    "CredentialStorageError",
    "KeyAlreadyExists",
    "AuthenticationFailed",
    "MalformedStorage",
    "RecordNotFound",
    "DecryptionError",
    "RecordDict",
    "KeySource",
    "EnvironmentKeySource",
    "StaticKeySource",
    "StorageBackend",
    "FileStorageBackend",
    "MemoryStorageBackend",
    "CredentialRecord",
    "RecordBuilder",
    "RecordField",
    "UsernamePassword",
    "ApiToken",
    "ConnectionString",
    "PartitionedStore",
    "PartitionCodec",
    "EncryptionProvider",
    "AeadEncryptionProvider",
    "VaultConfig",
    "generate_secret_key",
    "rotate_secret_key",
)
