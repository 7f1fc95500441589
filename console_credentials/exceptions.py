"""Typed exception hierarchy for credential storage."""


class CredentialStorageError(Exception):
    """Base exception for all credential storage errors."""


class KeyAlreadyExists(CredentialStorageError):
    """A new secret key was requested while a persistent key is available."""


class AuthenticationFailed(CredentialStorageError):
    """No partition could be decrypted with the given secret key."""


class MalformedStorage(CredentialStorageError):
    """The backing blob (or a decrypted partition) is not decodable."""


class RecordNotFound(CredentialStorageError, KeyError):
    """The requested record name is not present."""
    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Credential record not found: {self.name!r}"


class DecryptionError(CredentialStorageError):
    """Ciphertext could not be authenticated with the given key."""
