"""Filesystem naming for cached datasets and downloaded audio."""

from __future__ import annotations

import re
from pathlib import Path

AUDIO_EXTENSION = ".wav"
DATA_FILE = "entries.json"
METADATA_FILE = "metadata.json"


def slugify(text: str) -> str:
    """Convert text to a filesystem-safe slug."""
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s]+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text[:80].strip("-")


def audio_file_name(audio_id: str) -> str:
    """Deterministic local file name for an audio id (audio_007 -> audio_007.wav)."""
    return f"{slugify(audio_id) or 'audio'}{AUDIO_EXTENSION}"


def dataset_paths(cache_dir: Path, kind: str) -> dict[str, Path]:
    """Standard cache paths for a dataset kind.

    Returns a dict with keys: dir, data, metadata.
    """
    base = Path(cache_dir) / kind
    return {
        "dir": base,
        "data": base / DATA_FILE,
        "metadata": base / METADATA_FILE,
    }
