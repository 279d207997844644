"""Tests for blob externalization."""

import pytest

from table_backup.backup.blobs import BlobStore
from table_backup.errors import BlobReadError


class TestBlobStore:
    def test_write_then_read(self, tmp_path) -> None:
        store = BlobStore(tmp_path)
        name = store.write(b"payload")
        assert name.endswith(".blob")
        assert store.read(name) == b"payload"
        assert store.exists(name)

    def test_names_are_unique(self, tmp_path) -> None:
        store = BlobStore(tmp_path)
        assert store.write(b"same") != store.write(b"same")

    def test_custom_extension(self, tmp_path) -> None:
        name = BlobStore(tmp_path, extension=".bin").write(b"x")
        assert name.endswith(".bin")

    def test_chunked_write_preserves_bytes(self, tmp_path) -> None:
        store = BlobStore(tmp_path, chunk_size=7)
        payload = bytes(range(256)) * 3
        name = store.write(payload)
        assert (tmp_path / name).read_bytes() == payload
        assert store.read(name) == payload

    def test_creates_directory(self, tmp_path) -> None:
        store = BlobStore(tmp_path / "nested" / "dir")
        name = store.write(b"x")
        assert (tmp_path / "nested" / "dir" / name).exists()

    def test_invalid_chunk_size(self, tmp_path) -> None:
        with pytest.raises(ValueError):
            BlobStore(tmp_path, chunk_size=0)

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(BlobReadError, match="missing.blob"):
            BlobStore(tmp_path).read("missing.blob")

    @pytest.mark.parametrize("name", ["", "..", "../etc/passwd", "sub/file.blob"])
    def test_rejects_non_plain_names(self, tmp_path, name) -> None:
        store = BlobStore(tmp_path)
        with pytest.raises(BlobReadError):
            store.read(name)
        assert not store.exists(name)

    def test_discard_written(self, tmp_path) -> None:
        store = BlobStore(tmp_path)
        names = [store.write(b"a"), store.write(b"b")]
        (tmp_path / "keep.blob").write_bytes(b"other run")

        store.discard_written()

        assert not any((tmp_path / n).exists() for n in names)
        assert (tmp_path / "keep.blob").exists()
        assert store.written == []
