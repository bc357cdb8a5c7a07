"""On-disk dataset cache with checksum-verified metadata.

Layout, per dataset kind::

    <cache_dir>/<kind>/entries.json
    <cache_dir>/<kind>/metadata.json
"""

from __future__ import annotations

import asyncio
import json
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from wlx.core.errors import CacheCorrupt, CacheWriteError
from wlx.core.models import CacheInfo, CacheMetadata
from wlx.utils.cache import atomic_write_text, canonical_json, checksum, get_cache_dir
from wlx.utils.paths import dataset_paths

logger = logging.getLogger(__name__)


@dataclass
class CachedDataset:
    records: list[dict]
    metadata: CacheMetadata


class DiskCacheStore:
    """Persist and restore dataset working sets.

    Records are plain dicts here; the loader converts them to entries.
    """

    def __init__(self, cache_dir: Path) -> None:
        self.cache_dir = Path(cache_dir)

    def paths(self, kind: str) -> dict[str, Path]:
        return dataset_paths(self.cache_dir, kind)

    async def save(self, kind: str, records: list[dict], metadata: CacheMetadata) -> CacheMetadata:
        return await asyncio.to_thread(self.save_sync, kind, records, metadata)

    async def load(self, kind: str) -> CachedDataset | None:
        return await asyncio.to_thread(self.load_sync, kind)

    async def clear(self, kind: str) -> bool:
        return await asyncio.to_thread(self.clear_sync, kind)

    async def describe(self, kind: str) -> CacheInfo:
        return await asyncio.to_thread(self.describe_sync, kind)

    def save_sync(self, kind: str, records: list[dict], metadata: CacheMetadata) -> CacheMetadata:
        """Write data then metadata, stamping checksum and entry count.

        Raises:
            CacheWriteError: If either file cannot be written.
            PermissionError: If the cache directory cannot be created.
        """
        get_cache_dir(self.cache_dir, kind)
        paths = self.paths(kind)

        text = canonical_json(records)
        metadata.checksum = checksum(records)
        metadata.total_entries = len(records)

        try:
            atomic_write_text(paths["data"], text)
        except OSError as e:
            raise CacheWriteError(f"Failed to write {paths['data']}: {e}") from e
        try:
            atomic_write_text(paths["metadata"], json.dumps(metadata.to_dict(), indent=2))
        except OSError as e:
            raise CacheWriteError(f"Failed to write {paths['metadata']}: {e}") from e

        logger.debug("Cached %d %s entries at %s", len(records), kind, paths["dir"])
        return metadata

    def load_sync(self, kind: str) -> CachedDataset | None:
        """Return the cached dataset, or None if missing, unreadable or corrupt."""
        paths = self.paths(kind)
        if not paths["data"].is_file() or not paths["metadata"].is_file():
            return None

        try:
            metadata = CacheMetadata.from_dict(
                json.loads(paths["metadata"].read_text(encoding="utf-8"))
            )
            records = json.loads(paths["data"].read_text(encoding="utf-8"))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Unreadable %s cache, ignoring it: %s", kind, e)
            return None

        if not isinstance(records, list):
            logger.warning("Unreadable %s cache, ignoring it: data is not a list", kind)
            return None

        actual = checksum(records)
        if actual != metadata.checksum:
            logger.warning(
                "%s",
                CacheCorrupt(
                    f"{kind} cache checksum mismatch "
                    f"(expected {metadata.checksum[:12]}, got {actual[:12]})"
                ),
            )
            return None

        return CachedDataset(records=records, metadata=metadata)

    def clear_sync(self, kind: str) -> bool:
        """Delete the cache directory for a kind. Returns True if it existed."""
        directory = self.paths(kind)["dir"]
        if not directory.exists():
            return False
        shutil.rmtree(directory)
        logger.info("Cleared %s cache", kind)
        return True

    def describe_sync(self, kind: str) -> CacheInfo:
        """Report metadata and data file size without hashing the data."""
        paths = self.paths(kind)
        if not paths["data"].is_file() or not paths["metadata"].is_file():
            return CacheInfo(exists=False)
        try:
            metadata = CacheMetadata.from_dict(
                json.loads(paths["metadata"].read_text(encoding="utf-8"))
            )
            json.loads(paths["data"].read_text(encoding="utf-8"))
        except (OSError, ValueError, KeyError, TypeError):
            return CacheInfo(exists=False)
        return CacheInfo(
            exists=True,
            metadata=metadata,
            size_bytes=paths["data"].stat().st_size,
        )
