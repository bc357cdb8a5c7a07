"""Error taxonomy for the lexicon engine.

Most of these never reach callers: the loader absorbs fetch and cache
failures, and batch downloads record per-item failures in their results.
"""

from __future__ import annotations


class WLXError(Exception):
    """Base class for engine errors."""


class RemoteUnavailable(WLXError):
    """A remote source failed before any record was collected."""


class PartialAcquisition(WLXError):
    """A remote source failed after some records were collected."""


class CacheCorrupt(WLXError):
    """A cached data file does not match its metadata checksum."""


class CacheWriteError(WLXError):
    """Writing a cache data or metadata file failed."""


class DownloadItemFailed(WLXError):
    """A single audio download failed."""

    def __init__(self, audio_id: str, reason: str) -> None:
        super().__init__(f"Failed to download audio '{audio_id}': {reason}")
        self.audio_id = audio_id
        self.reason = reason


class UnknownSource(WLXError):
    """No remote source with the given id."""


class UnknownEntry(WLXError):
    """No audio entry with the given id."""
