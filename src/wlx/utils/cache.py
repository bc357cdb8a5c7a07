"""Checksums and atomic file writes for the on-disk dataset cache."""

from __future__ import annotations

import hashlib
import json
import os
import tempfile
from pathlib import Path


def canonical_json(records: list[dict]) -> str:
    """Serialize records deterministically (sorted keys, compact separators)."""
    return json.dumps(records, sort_keys=True, ensure_ascii=False, separators=(",", ":"))


def checksum(records: list[dict]) -> str:
    """SHA-256 hex digest over the canonical serialization of a record list."""
    return hashlib.sha256(canonical_json(records).encode("utf-8")).hexdigest()


def get_cache_dir(base_dir: Path, category: str) -> Path:
    """Get or create a cache subdirectory (e.g. "dictionary")."""
    cache_dir = Path(base_dir) / category
    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir


def atomic_write_text(path: Path, text: str) -> None:
    """Write text to path through a sibling temp file and os.replace.

    The previous content of ``path`` survives any failure before the rename.
    """
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Binary counterpart of :func:`atomic_write_text`."""
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
