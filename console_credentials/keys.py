"""Key Sources — supply a secret key without prompting.

Security Note:
    Never log key material. Only log where a key came from.
"""
from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Optional, Union

SecretKey = Union[str, bytes]


class KeySource(ABC):
    """Abstract base for non-interactive secret key providers."""

    @abstractmethod
    def get(self) -> Optional[SecretKey]:
        """Return the secret key, or ``None`` if none is available."""
        ...

    def has_key(self) -> bool:
        """Return ``True`` if a non-empty key is available."""
        return bool(self.get())


class EnvironmentKeySource(KeySource):
    """Read the secret key from an environment variable.

    An unset or empty variable means "no key".
    """

    def __init__(self, name: str) -> None:
        self.name = name

    def get(self) -> Optional[SecretKey]:
        return os.environ.get(self.name) or None

    def __repr__(self) -> str:
        return f"<EnvironmentKeySource {self.name}>"


class StaticKeySource(KeySource):
    """Hand out a fixed key (embedding, tests)."""

    def __init__(self, key: Optional[SecretKey]) -> None:
        self._key = key

    def get(self) -> Optional[SecretKey]:
        return self._key or None

    def __repr__(self) -> str:
        return "<StaticKeySource>"
