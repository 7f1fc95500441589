"""Tests for the partition list blob format."""
import base64

import pytest

from console_credentials.exceptions import MalformedStorage
from console_credentials.vault.codec import PartitionCodec


@pytest.fixture
def codec():
    return PartitionCodec()


class TestPartitionCodec:
    """Tests for PartitionCodec."""

    def test_absent_blob_is_empty(self, codec):
        """Test that a missing blob decodes to no partitions."""
        assert codec.decode(None) == []

    def test_order_preserved(self, codec):
        """Test partitions keep their order."""
        partitions = ["c2Vjb25k", "Zmlyc3Q=", "dGhpcmQ="]
        assert codec.decode(codec.encode(partitions)) == partitions

    def test_empty_list(self, codec):
        """Test an empty list is a valid blob."""
        assert codec.decode(codec.encode([])) == []

    def test_blob_is_base64_json(self, codec):
        """Test the stored form is base64 text of a JSON array."""
        blob = codec.encode(["a", "b"])
        assert base64.b64decode(blob) == b'["a","b"]'

    def test_trailing_newline_tolerated(self, codec):
        """Test surrounding whitespace from editors is ignored."""
        blob = codec.encode(["a"]) + "\n"
        assert codec.decode(blob) == ["a"]

    @pytest.mark.parametrize("blob", [
        "",
        "%%%",
        base64.b64encode(b"not json").decode(),
        base64.b64encode(b'{"a": "b"}').decode(),
        base64.b64encode(b'["a", 1]').decode(),
    ])
    def test_malformed(self, codec, blob):
        """Test undecodable blobs raise MalformedStorage."""
        with pytest.raises(MalformedStorage):
            codec.decode(blob)
