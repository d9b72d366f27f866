"""Durable storage for metadata documents, one JSON file per cache key."""

from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path

from ..logger import get_logger
from .key import CacheKey

logger = get_logger(__name__)


class FileMetadataStore:
    """Stores documents under ``<root>/<protocol>/<product>/<chain_id>.json``.

    Writes go to a temporary file in the target directory which is then
    renamed over the final path, so readers never see a partial document.
    Concurrent writers from different processes are last-writer-wins.
    """

    suffix = ".json"

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def path_for(self, key: CacheKey) -> Path:
        return (
            self.root / key.protocol_id / key.product_id / f"{key.chain_id}{self.suffix}"
        )

    async def read(self, key: CacheKey) -> str | None:
        """Return the stored text for ``key``, or None when nothing is stored."""
        return await asyncio.to_thread(self._read, self.path_for(key))

    async def write_atomic(self, key: CacheKey, text: str) -> Path:
        path = self.path_for(key)
        await asyncio.to_thread(self._write_atomic, path, text)
        logger.debug("Wrote metadata for %s to %s", key, path)
        return path

    async def delete(self, key: CacheKey) -> bool:
        """Remove the stored document. Returns False if there was none."""
        return await asyncio.to_thread(self._delete, self.path_for(key))

    @staticmethod
    def _read(path: Path) -> str | None:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    @staticmethod
    def _write_atomic(path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    @staticmethod
    def _delete(path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True
