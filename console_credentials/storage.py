"""
Storage Backends — where the encrypted credential blob lives.

A backend only moves one opaque text blob around; it never sees plaintext,
keys or partition boundaries.

- ``FileStorageBackend`` — a single file, written atomically.
- ``MemoryStorageBackend`` — an in-process blob (embedding, tests).
"""
from __future__ import annotations

import os
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from .exceptions import MalformedStorage

logger = logging.getLogger("credentials.storage")


class StorageBackend(ABC):
    """Abstract base for blob storage.

    The partitioned store depends on this type only, so alternative media
    (registry, keychain item, database row) can be injected without changing
    the partition protocol.
    """

    @abstractmethod
    def read(self) -> Optional[str]:
        """Return the stored blob, or ``None`` if nothing is stored."""
        ...

    @abstractmethod
    def write(self, blob: str) -> None:
        """Replace the stored blob."""
        ...

    @abstractmethod
    def delete(self) -> None:
        """Remove the stored blob.  No-op if nothing is stored."""
        ...


class FileStorageBackend(StorageBackend):
    """Keep the blob in a single file.

    Writes go to a sibling temporary file which is fsynced and then moved
    over the target with ``os.replace``, so readers never observe a partial
    blob.

    Args:
        path: Location of the blob file. Parent directories are created on
            first write.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> Optional[str]:
        if not self._path.exists():
            return None
        try:
            return self._path.read_text(encoding="ascii")
        except UnicodeDecodeError as err:
            raise MalformedStorage(
                f"credential blob {self._path} is not ASCII text"
            ) from err

    def write(self, blob: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        with open(tmp, "w", encoding="ascii") as f:
            f.write(blob)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, self._path)
        logger.debug("Wrote credential blob to %s (%d bytes)", self._path, len(blob))

    def delete(self) -> None:
        self._path.unlink(missing_ok=True)
        logger.info("Deleted credential blob %s", self._path)


class MemoryStorageBackend(StorageBackend):
    """Keep the blob in memory."""

    def __init__(self, blob: Optional[str] = None) -> None:
        self.blob = blob

    def read(self) -> Optional[str]:
        return self.blob

    def write(self, blob: str) -> None:
        self.blob = blob

    def delete(self) -> None:
        self.blob = None
