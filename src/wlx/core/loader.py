"""Load coordination for the dictionary and audio working sets.

Each DatasetLoader owns one working set: a single DatasetSnapshot reference
that is replaced wholesale. Acquisition order on a cold start is disk cache,
then the remote sources, then the bundled samples, so the engine always
ends up with data. Stale snapshots keep serving while a detached refresh
fetches a new generation.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

from wlx.cache.store import DiskCacheStore
from wlx.core.config import WLXConfig
from wlx.core.errors import CacheWriteError
from wlx.core.events import EngineEvent, EventCallback
from wlx.core.models import (
    AudioCacheMetadata,
    AudioEntry,
    CacheInfo,
    CacheMetadata,
    DatasetKind,
    DatasetSnapshot,
    DictionaryEntry,
    ReloadResult,
    SnapshotOrigin,
    utcnow,
)
from wlx.core.singleflight import SingleFlight
from wlx.data.samples import SAMPLE_DATASET_VERSION, sample_audio, sample_dictionary
from wlx.fetch.remote import RemoteFetcher
from wlx.fetch.schema import parse_audio_row, parse_dictionary_row
from wlx.sources.registry import SourceRegistry

logger = logging.getLogger(__name__)

PublishHook = Callable[[DatasetSnapshot], Awaitable[None]]


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"


@dataclass(frozen=True)
class DatasetCodec:
    """How one dataset kind is parsed, stored and seeded."""

    kind: DatasetKind
    parse_row: Callable
    from_dict: Callable[[dict], object]
    sample: Callable[[], list]
    max_entries: int | None = None


def dictionary_codec(max_entries: int | None = None) -> DatasetCodec:
    return DatasetCodec(
        kind=DatasetKind.DICTIONARY,
        parse_row=parse_dictionary_row,
        from_dict=DictionaryEntry.from_dict,
        sample=sample_dictionary,
        max_entries=max_entries,
    )


def audio_codec(max_entries: int | None = None) -> DatasetCodec:
    return DatasetCodec(
        kind=DatasetKind.AUDIO,
        parse_row=parse_audio_row,
        from_dict=AudioEntry.from_dict,
        sample=sample_audio,
        max_entries=max_entries,
    )


def build_metadata(
    kind: DatasetKind,
    records: list,
    dataset_version: str,
    source_id: str,
    last_updated=None,
) -> CacheMetadata:
    """Metadata for a record list. Checksum is stamped by the store on save."""
    last_updated = last_updated or utcnow()
    if kind is DatasetKind.AUDIO:
        total = round(sum(r.duration_seconds for r in records), 2)
        return AudioCacheMetadata(
            last_updated=last_updated,
            total_entries=len(records),
            dataset_version=dataset_version,
            source_id=source_id,
            total_duration_seconds=total,
            average_duration_seconds=round(total / len(records), 2) if records else 0.0,
        )
    return CacheMetadata(
        last_updated=last_updated,
        total_entries=len(records),
        dataset_version=dataset_version,
        source_id=source_id,
    )


def dedupe_by_id(records: list) -> list:
    """Keep the first occurrence of each audio id."""
    seen: set[str] = set()
    unique = []
    for record in records:
        if record.id in seen:
            continue
        seen.add(record.id)
        unique.append(record)
    return unique


class DatasetLoader:
    """Owns one working set and every acquisition of it.

    Args:
        codec: Parsing and storage rules for the dataset kind.
        store: Disk cache store.
        fetcher: Remote fetcher.
        registry: Source registry, read at every remote acquisition.
        config: Engine config (cache age and refresh cooldown).
        flight: Single-flight map, shared between loaders.
        on_event: Optional progress callback.
    """

    def __init__(
        self,
        codec: DatasetCodec,
        store: DiskCacheStore,
        fetcher: RemoteFetcher,
        registry: SourceRegistry,
        config: WLXConfig,
        flight: SingleFlight | None = None,
        on_event: EventCallback | None = None,
    ) -> None:
        self.codec = codec
        self.kind = codec.kind
        self._store = store
        self._fetcher = fetcher
        self._registry = registry
        self._config = config
        self._flight = flight or SingleFlight()
        self._on_event = on_event
        self._snapshot: DatasetSnapshot | None = None
        self._generation = itertools.count(1)
        self._hooks: list[PublishHook] = []
        self._background: set[asyncio.Task] = set()
        self._refresh_task: asyncio.Task | None = None
        self._last_refresh_attempt: float | None = None

    # -- reads ---------------------------------------------------------------

    @property
    def snapshot(self) -> DatasetSnapshot | None:
        return self._snapshot

    @property
    def state(self) -> LoadState:
        if self._flight.in_flight(self.kind) is not None:
            return LoadState.LOADING
        if self._snapshot is None:
            return LoadState.IDLE
        return LoadState.LOADED

    def is_stale(self, snapshot: DatasetSnapshot) -> bool:
        if snapshot.origin is SnapshotOrigin.SAMPLE:
            return True
        return snapshot.metadata.age_seconds() > self._config.cache.max_age_seconds

    async def ensure_loaded(self) -> DatasetSnapshot:
        """Return the working set, loading it on first use.

        Concurrent first calls share one load. A present snapshot is
        returned immediately; if it is stale a background refresh starts.
        """
        snapshot = self._snapshot
        if snapshot is None:
            return await self._flight.do(self.kind, self._full_load)
        if self.is_stale(snapshot):
            self._schedule_refresh()
        return snapshot

    def on_publish(self, hook: PublishHook) -> None:
        self._hooks.append(hook)

    # -- admin ---------------------------------------------------------------

    async def force_reload(self, clear_cache: bool = False) -> ReloadResult:
        """Reload the working set; the previous snapshot serves until done."""
        label = self.kind.value.capitalize()
        logger.info(
            "Forcing %s reload%s", self.kind.value, " (clearing cache)" if clear_cache else ""
        )
        try:
            if clear_cache:
                await self._store.clear(self.kind.value)
            await self._flight.wait(self.kind)
            snapshot = await self._flight.do(self.kind, self._full_load)
        except Exception as e:
            logger.error("Failed to reload %s dataset: %s", self.kind.value, e)
            return ReloadResult(success=False, message=f"Failed to reload {self.kind.value} dataset: {e}")
        return ReloadResult(
            success=True,
            message=f"{label} dataset reloaded successfully with {len(snapshot)} entries",
            total_entries=len(snapshot),
        )

    async def refresh_now(self) -> DatasetSnapshot | None:
        """Refresh from the remote sources and wait for it.

        Returns the new snapshot, or None if no remote data could be fetched.
        """
        return await self._flight.do(self.kind, self._remote_refresh)

    async def clear_cache(self) -> bool:
        """Delete the on-disk cache. The in-memory working set is kept."""
        return await self._store.clear(self.kind.value)

    async def cache_info(self) -> CacheInfo:
        return await self._store.describe(self.kind.value)

    async def persist(self) -> bool:
        """Rewrite the cache from the current snapshot, keeping its timestamp."""
        snapshot = self._snapshot
        if snapshot is None or snapshot.origin is SnapshotOrigin.SAMPLE:
            return False
        metadata = build_metadata(
            self.kind,
            list(snapshot.records),
            snapshot.metadata.dataset_version,
            snapshot.metadata.source_id,
            last_updated=snapshot.metadata.last_updated,
        )
        return await self._write_through(list(snapshot.records), metadata)

    def info(self) -> dict:
        snapshot = self._snapshot
        data = {
            "kind": self.kind.value,
            "state": self.state.value,
            "total_entries": len(snapshot) if snapshot is not None else 0,
            "origin": None,
            "generation": None,
            "last_updated": None,
            "is_stale": None,
            "refreshing": self._refresh_task is not None and not self._refresh_task.done(),
        }
        if snapshot is not None:
            data.update(
                origin=snapshot.origin.value,
                generation=snapshot.generation,
                last_updated=snapshot.metadata.last_updated.isoformat(),
                is_stale=self.is_stale(snapshot),
            )
        return data

    async def wait_background(self) -> None:
        """Wait for detached refreshes to finish."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel detached refreshes and any acquisition still running."""
        for task in list(self._background):
            task.cancel()
        pending = self._flight.cancel(self.kind)
        await self.wait_background()
        if pending is not None:
            await asyncio.wait([pending])

    # -- acquisition ---------------------------------------------------------

    def _emit(self, progress: float, message: str, data: dict | None = None) -> None:
        if self._on_event:
            self._on_event(
                EngineEvent("load", self.kind, progress, message, data or {})
            )

    async def _full_load(self) -> DatasetSnapshot:
        self._emit(0.0, f"Loading {self.kind.value} dataset")
        snapshot = await self._load_from_cache()
        if snapshot is None:
            snapshot = await self._acquire_remote()
        if snapshot is None:
            logger.warning("No %s data from cache or remote, using bundled samples", self.kind.value)
            records = self.codec.sample()
            metadata = build_metadata(
                self.kind, records, SAMPLE_DATASET_VERSION, SAMPLE_DATASET_VERSION
            )
            snapshot = await self._publish(records, metadata, SnapshotOrigin.SAMPLE)
        self._emit(1.0, f"Loaded {len(snapshot)} {self.kind.value} entries", {"origin": snapshot.origin.value})
        return snapshot

    async def _load_from_cache(self) -> DatasetSnapshot | None:
        cached = await self._store.load(self.kind.value)
        if cached is None:
            return None
        try:
            records = [self.codec.from_dict(r) for r in cached.records]
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Cached %s records are malformed, ignoring cache: %s", self.kind.value, e)
            return None
        logger.info(
            "Loaded %d %s entries from cache (updated %s)",
            len(records),
            self.kind.value,
            cached.metadata.last_updated.isoformat(),
        )
        return await self._publish(records, cached.metadata, SnapshotOrigin.CACHE)

    async def _acquire_remote(self) -> DatasetSnapshot | None:
        sources = self._registry.get_active_sources(self.kind)
        if not sources:
            logger.warning("No active %s sources", self.kind.value)
            return None
        result = await self._fetcher.fetch_many(
            sources, self.codec.parse_row, max_entries=self.codec.max_entries
        )
        if not result.records:
            logger.error("Remote %s acquisition failed: %s", self.kind.value, result.error)
            return None

        records = result.records
        if self.kind is DatasetKind.AUDIO:
            records = dedupe_by_id(records)
        metadata = build_metadata(
            self.kind,
            records,
            dataset_version=",".join(s.dataset for s in sources),
            source_id=",".join(s.id for s in sources),
        )
        await self._write_through(records, metadata)
        return await self._publish(records, metadata, SnapshotOrigin.REMOTE)

    async def _remote_refresh(self) -> DatasetSnapshot | None:
        snapshot = await self._acquire_remote()
        if snapshot is None:
            logger.warning("Refresh of %s failed, keeping current data", self.kind.value)
        return snapshot

    async def _write_through(self, records: list, metadata: CacheMetadata) -> bool:
        try:
            await self._store.save(self.kind.value, [r.to_dict() for r in records], metadata)
        except (CacheWriteError, OSError) as e:
            logger.error("Could not cache %s dataset: %s", self.kind.value, e)
            return False
        return True

    async def _publish(
        self, records: list, metadata: CacheMetadata, origin: SnapshotOrigin
    ) -> DatasetSnapshot:
        snapshot = DatasetSnapshot(
            kind=self.kind,
            records=tuple(records),
            metadata=metadata,
            origin=origin,
            generation=next(self._generation),
        )
        for hook in self._hooks:
            await hook(snapshot)
        self._snapshot = snapshot
        logger.debug(
            "Published %s generation %d (%s, %d entries)",
            self.kind.value,
            snapshot.generation,
            origin.value,
            len(snapshot),
        )
        return snapshot

    # -- background refresh --------------------------------------------------

    def _schedule_refresh(self) -> None:
        if self._refresh_task is not None and not self._refresh_task.done():
            return
        if self._flight.in_flight(self.kind) is not None:
            return
        now = time.monotonic()
        cooldown = self._config.cache.refresh_cooldown_seconds
        if self._last_refresh_attempt is not None and now - self._last_refresh_attempt < cooldown:
            return
        self._last_refresh_attempt = now
        logger.info("%s dataset is stale, refreshing in background", self.kind.value.capitalize())
        task = asyncio.create_task(self._background_refresh())
        self._refresh_task = task
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _background_refresh(self) -> None:
        try:
            await self._flight.do(self.kind, self._remote_refresh)
        except Exception as e:
            logger.warning("Background refresh of %s failed: %s", self.kind.value, e)
