"""Shared data models for the Wayuu lexicon engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from wlx.utils.paths import audio_file_name


class Direction(str, Enum):
    """Lookup direction. Wayuu is the source language, Spanish the target."""

    WAYUU_TO_SPANISH = "wayuu-to-spanish"
    SPANISH_TO_WAYUU = "spanish-to-wayuu"


class DatasetKind(str, Enum):
    """The two coordinated working sets."""

    DICTIONARY = "dictionary"
    AUDIO = "audio"


class SourceKind(str, Enum):
    DICTIONARY = "dictionary"
    AUDIO = "audio"
    MIXED = "mixed"

    def serves(self, kind: DatasetKind) -> bool:
        """Whether a source of this kind feeds the given dataset."""
        return self is SourceKind.MIXED or self.value == kind.value


class DownloadPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    DownloadPriority.HIGH: 0,
    DownloadPriority.MEDIUM: 1,
    DownloadPriority.LOW: 2,
}


class SnapshotOrigin(str, Enum):
    CACHE = "cache"
    REMOTE = "remote"
    SAMPLE = "sample"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DictionaryEntry:
    """One row of the bilingual lexicon."""

    source_word: str  # Wayuu (guc)
    target_word: str  # Spanish (spa)
    dataset: str = ""

    def to_dict(self) -> dict:
        return {"guc": self.source_word, "spa": self.target_word, "dataset": self.dataset}

    @classmethod
    def from_dict(cls, data: dict) -> DictionaryEntry:
        return cls(
            source_word=data["guc"],
            target_word=data["spa"],
            dataset=data.get("dataset", ""),
        )


@dataclass
class AudioEntry:
    """An audio recording with its Wayuu transcription.

    Only ``is_downloaded``, ``local_path`` and ``file_size_bytes`` change
    after creation, and only through the audio asset manager.
    """

    id: str
    transcription: str
    duration_seconds: float = 0.0
    remote_url: str | None = None
    local_path: Path | None = None
    is_downloaded: bool = False
    file_size_bytes: int | None = None
    download_priority: DownloadPriority = DownloadPriority.MEDIUM
    batch_number: int | None = None
    source_id: str = ""

    @property
    def file_name(self) -> str:
        return audio_file_name(self.id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transcription": self.transcription,
            "duration_seconds": self.duration_seconds,
            "remote_url": self.remote_url,
            "local_path": str(self.local_path) if self.local_path else None,
            "is_downloaded": self.is_downloaded,
            "file_size_bytes": self.file_size_bytes,
            "download_priority": self.download_priority.value,
            "batch_number": self.batch_number,
            "source_id": self.source_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> AudioEntry:
        local_path = data.get("local_path")
        return cls(
            id=data["id"],
            transcription=data["transcription"],
            duration_seconds=float(data.get("duration_seconds") or 0.0),
            remote_url=data.get("remote_url"),
            local_path=Path(local_path) if local_path else None,
            is_downloaded=bool(data.get("is_downloaded", False)),
            file_size_bytes=data.get("file_size_bytes"),
            download_priority=DownloadPriority(data.get("download_priority", "medium")),
            batch_number=data.get("batch_number"),
            source_id=data.get("source_id", ""),
        )


@dataclass
class CacheMetadata:
    """Integrity metadata written next to a cached dataset."""

    last_updated: datetime
    total_entries: int
    dataset_version: str
    source_id: str
    checksum: str = ""

    def age_seconds(self, now: datetime | None = None) -> float:
        now = now or utcnow()
        return (now - self.last_updated).total_seconds()

    def to_dict(self) -> dict:
        return {
            "last_updated": self.last_updated.isoformat(),
            "total_entries": self.total_entries,
            "dataset_version": self.dataset_version,
            "source_id": self.source_id,
            "checksum": self.checksum,
        }

    @classmethod
    def from_dict(cls, data: dict) -> CacheMetadata:
        if "total_duration_seconds" in data:
            return AudioCacheMetadata.from_dict(data)
        return cls(
            last_updated=_parse_timestamp(data["last_updated"]),
            total_entries=int(data["total_entries"]),
            dataset_version=data.get("dataset_version", ""),
            source_id=data.get("source_id", ""),
            checksum=data.get("checksum", ""),
        )


@dataclass
class AudioCacheMetadata(CacheMetadata):
    total_duration_seconds: float = 0.0
    average_duration_seconds: float = 0.0

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["total_duration_seconds"] = self.total_duration_seconds
        data["average_duration_seconds"] = self.average_duration_seconds
        return data

    @classmethod
    def from_dict(cls, data: dict) -> AudioCacheMetadata:
        return cls(
            last_updated=_parse_timestamp(data["last_updated"]),
            total_entries=int(data["total_entries"]),
            dataset_version=data.get("dataset_version", ""),
            source_id=data.get("source_id", ""),
            checksum=data.get("checksum", ""),
            total_duration_seconds=float(data.get("total_duration_seconds", 0.0)),
            average_duration_seconds=float(data.get("average_duration_seconds", 0.0)),
        )


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class RemoteSourceConfig:
    """A remote dataset source known to the registry."""

    id: str
    name: str
    dataset: str
    config: str = "default"
    split: str = "train"
    kind: SourceKind = SourceKind.DICTIONARY
    is_active: bool = True
    priority: int = 0
    description: str = ""
    url: str = ""


@dataclass
class LookupResult:
    """A dictionary query response. Never persisted."""

    translated_text: str
    confidence: float
    source_dataset: str
    alternatives: list[str] = field(default_factory=list)
    context_info: str | None = None
    match_type: str = "exact"


@dataclass(frozen=True)
class DatasetSnapshot:
    """One fully-formed generation of a working set.

    Readers hold a reference to a snapshot; reloads publish a new one.
    """

    kind: DatasetKind
    records: tuple
    metadata: CacheMetadata
    origin: SnapshotOrigin
    generation: int
    loaded_at: datetime = field(default_factory=utcnow)

    def __len__(self) -> int:
        return len(self.records)


@dataclass
class FetchResult:
    """Outcome of a paginated remote fetch."""

    records: list
    total_reported: int = 0
    error: str | None = None
    skipped: int = 0
    pages: int = 0

    @property
    def ok(self) -> bool:
        return bool(self.records) or self.error is None

    @property
    def partial(self) -> bool:
        return bool(self.records) and self.error is not None


@dataclass
class CacheInfo:
    exists: bool
    metadata: CacheMetadata | None = None
    size_bytes: int | None = None

    @property
    def size_mb(self) -> float | None:
        if self.size_bytes is None:
            return None
        return round(self.size_bytes / (1024 * 1024), 2)


@dataclass
class OperationResult:
    """Structured outcome of an administrative operation."""

    success: bool
    message: str = ""
    source: RemoteSourceConfig | None = None
    is_active: bool | None = None
    data: dict | None = None


@dataclass
class ReloadResult:
    success: bool
    message: str
    total_entries: int | None = None


@dataclass
class DownloadResult:
    id: str
    success: bool
    local_path: Path | None = None
    error: str | None = None
    message: str = ""


@dataclass
class BatchDownloadResult:
    success: bool
    message: str
    results: list[DownloadResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)


@dataclass
class DownloadAllResult:
    success: bool
    message: str
    total: int
    downloaded: int
    skipped: int
    failed: int
    results: list[DownloadResult] = field(default_factory=list)


@dataclass
class DownloadStats:
    total_files: int
    downloaded_files: int
    pending_files: int
    total_size_bytes: int
    progress_percent: float


@dataclass
class ClearResult:
    success: bool
    message: str
    deleted_files: int = 0


@dataclass
class AudioPage:
    entries: list[AudioEntry]
    page: int
    page_size: int
    total: int
    total_pages: int

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


@dataclass
class AudioSearchResult:
    query: str
    entries: list[AudioEntry]
    total_matches: int


@dataclass
class EnrichedAudio:
    """An audio entry copy with its duration filled from the duration cache."""

    entry: AudioEntry
    calculated: bool
