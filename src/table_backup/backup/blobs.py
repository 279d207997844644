"""Blob externalization.

Binary field values are written to sibling files of the main artifact, one
file per value, named ``<uuid4 hex><extension>``.  The field stores only
the file name; decoding re-reads it relative to the artifact directory.

Usage:
    from table_backup.backup.blobs import BlobStore

    store = BlobStore(Path("backups"))
    name = store.write(b"...payload...")   # '3f2a...e1.blob'
    data = store.read(name)
"""

import logging
from pathlib import Path
from uuid import uuid4

from table_backup.errors import BlobReadError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_EXTENSION = ".blob"


class BlobStore:
    """Directory of externalized binary payloads.

    Args:
        directory: Directory of the main artifact.
        extension: File extension for blob files.
        chunk_size: Bytes written per ``write()`` call on the file.

    Example:
        store = BlobStore(Path("/backups"), chunk_size=8192)
        ref = store.write(photo_bytes)
    """

    def __init__(
        self,
        directory: Path,
        extension: str = DEFAULT_EXTENSION,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.directory = Path(directory)
        self.extension = extension
        self.chunk_size = chunk_size
        self.written: list[Path] = []

    def write(self, data: bytes | bytearray | memoryview) -> str:
        """Stream ``data`` to a new blob file and return its file name."""
        name = f"{uuid4().hex}{self.extension}"
        path = self.directory / name
        self.directory.mkdir(parents=True, exist_ok=True)

        view = memoryview(data).cast("B")
        with open(path, "wb") as f:
            for offset in range(0, len(view), self.chunk_size):
                f.write(view[offset:offset + self.chunk_size])

        self.written.append(path)
        return name

    def read(self, name: str) -> bytes:
        """Read a blob file fully.

        Raises:
            BlobReadError: If ``name`` is not a plain file name, or the file
                is missing or unreadable.
        """
        if not name or Path(name).name != name or name in (".", ".."):
            raise BlobReadError(f"Invalid blob reference: {name!r}")

        path = self.directory / name
        chunks: list[bytes] = []
        try:
            with open(path, "rb") as f:
                while chunk := f.read(self.chunk_size):
                    chunks.append(chunk)
        except OSError as e:
            raise BlobReadError(f"Cannot read blob {name}: {e}") from e
        return b"".join(chunks)

    def exists(self, name: str) -> bool:
        """True when ``name`` is a plain file name present in the directory."""
        return bool(name) and Path(name).name == name and (self.directory / name).is_file()

    def discard_written(self) -> None:
        """Delete every blob file created by this store (failed export cleanup)."""
        for path in self.written:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Could not remove blob %s: %s", path, e)
        self.written.clear()
