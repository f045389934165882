"""
Document discovery and raw reads.
"""

import asyncio
import gzip
import logging
import zlib
from pathlib import Path
from typing import Iterable, List, Optional

from ..models.errors import SetupError, SourceError

logger = logging.getLogger(__name__)

DEFAULT_PATTERNS = ("*.json", "*.json.gz")


class DocumentSource:
    """
    Folder of exported topics, one document per file.

    Files ending in ``.gz`` are decompressed transparently.
    """

    def __init__(
        self,
        folder: Optional[Path] = None,
        patterns: Iterable[str] = DEFAULT_PATTERNS,
    ):
        self.folder = Path(folder).expanduser() if folder else None
        self.patterns = list(patterns)

    def discover(self) -> List[Path]:
        """
        List every matching document in a stable (sorted) order.

        Raises:
            SetupError: If no folder is configured or it does not exist
        """
        if self.folder is None:
            raise SetupError("No source folder configured")

        if not self.folder.is_dir():
            raise SetupError(f"source folder {self.folder} does not exist")

        documents = set()
        for pattern in self.patterns:
            documents.update(p for p in self.folder.glob(pattern) if p.is_file())

        refs = sorted(documents)
        logger.info(f"Found {len(refs)} documents in {self.folder}")
        return refs

    async def read(self, ref: Path) -> bytes:
        """
        Read the raw content of a document.

        Raises:
            SourceError: If the file cannot be read or decompressed
        """
        try:
            return await asyncio.to_thread(self._read_bytes, ref)
        except (OSError, EOFError, zlib.error) as e:
            raise SourceError(
                f"could not read the file {ref}: {e}", ref=ref, original_error=e
            ) from e

    @staticmethod
    def _read_bytes(ref: Path) -> bytes:
        if ref.suffix == ".gz":
            with gzip.open(ref, "rb") as f:
                return f.read()

        return ref.read_bytes()
