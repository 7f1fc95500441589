"""
Partition Codec — the backing blob ↔ ordered list of partitions.

Blob format:
    base64( JSON array of partition ciphertext strings )

The codec never looks inside a partition; ciphertext format belongs to the
encryption provider.
"""
import base64
import binascii
from typing import Optional

import orjson

from ..exceptions import MalformedStorage


class PartitionCodec:
    """Encode and decode the partition list stored by a backend."""

    def encode(self, partitions: list[str]) -> str:
        """Serialize *partitions* (in order) to the stored text form."""
        return base64.b64encode(orjson.dumps(list(partitions))).decode("ascii")

    def decode(self, blob: Optional[str]) -> list[str]:
        """Parse a stored blob.

        Args:
            blob: Text read from the backend, or ``None`` when nothing is stored.

        Returns:
            Partition ciphertexts in stored order; empty for an absent blob.

        Raises:
            MalformedStorage: If the blob is present but not a base64 encoded
                JSON array of strings.
        """
        if blob is None:
            return []
        try:
            raw = base64.b64decode(blob.strip(), validate=True)
            partitions = orjson.loads(raw)
        except (binascii.Error, ValueError) as err:
            # orjson.JSONDecodeError is a ValueError
            raise MalformedStorage("credential blob is not decodable") from err
        if not isinstance(partitions, list) or not all(
            isinstance(p, str) for p in partitions
        ):
            raise MalformedStorage(
                "credential blob must hold a list of partition strings"
            )
        return partitions
