"""
Tests for document discovery and raw reads.
"""

import gzip

import pytest

from topicloader.ingestion.document_source import DocumentSource
from topicloader.models.errors import SetupError, SourceError


class TestDocumentSource:
    """Test document source"""

    def test_discover_sorted_matches(self, documents_folder):
        """Test discovery is sorted and limited to the patterns"""
        for name in ("b.json", "a.json", "c.json.gz", "notes.txt"):
            (documents_folder / name).write_bytes(b"{}")
        (documents_folder / "nested.json").mkdir()

        refs = DocumentSource(documents_folder).discover()

        assert [ref.name for ref in refs] == ["a.json", "b.json", "c.json.gz"]

    def test_discover_missing_folder(self, tmp_path):
        with pytest.raises(SetupError, match="does not exist"):
            DocumentSource(tmp_path / "nowhere").discover()

    def test_discover_without_folder(self):
        with pytest.raises(SetupError):
            DocumentSource().discover()

    @pytest.mark.asyncio
    async def test_read_plain_and_gzip(self, documents_folder):
        """Test gzip documents are decompressed transparently"""
        plain = documents_folder / "1.json"
        plain.write_bytes(b'{"id": 1}')
        packed = documents_folder / "2.json.gz"
        with gzip.open(packed, "wb") as f:
            f.write(b'{"id": 2}')

        source = DocumentSource(documents_folder)

        assert await source.read(plain) == b'{"id": 1}'
        assert await source.read(packed) == b'{"id": 2}'

    @pytest.mark.asyncio
    async def test_read_missing_file(self, documents_folder):
        ref = documents_folder / "gone.json"

        with pytest.raises(SourceError) as exc_info:
            await DocumentSource(documents_folder).read(ref)

        assert exc_info.value.ref == ref
        assert exc_info.value.stage == "read"

    @pytest.mark.asyncio
    async def test_read_corrupt_gzip(self, documents_folder):
        ref = documents_folder / "broken.json.gz"
        ref.write_bytes(b"definitely not gzip")

        with pytest.raises(SourceError):
            await DocumentSource(documents_folder).read(ref)

    @pytest.mark.asyncio
    async def test_read_corrupt_compressed_body(self, documents_folder):
        """Test a valid gzip header over a damaged deflate stream"""
        packed = bytearray(gzip.compress(b'{"id": 1}' * 50))
        packed[10:50] = b"\xff" * 40
        ref = documents_folder / "damaged.json.gz"
        ref.write_bytes(bytes(packed))

        with pytest.raises(SourceError) as exc_info:
            await DocumentSource(documents_folder).read(ref)

        assert exc_info.value.stage == "read"
        assert exc_info.value.ref == ref
