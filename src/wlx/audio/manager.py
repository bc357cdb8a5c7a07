"""Audio corpus lifecycle: listing, search, download and duration enrichment."""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import replace
from pathlib import Path
from typing import Callable, Sequence

import httpx

from wlx.audio.durations import DurationCache
from wlx.core.config import AudioConfig
from wlx.core.errors import DownloadItemFailed, UnknownEntry
from wlx.core.events import EngineEvent, EventCallback
from wlx.core.loader import DatasetLoader
from wlx.core.models import (
    AudioEntry,
    AudioPage,
    AudioSearchResult,
    BatchDownloadResult,
    ClearResult,
    DatasetKind,
    DatasetSnapshot,
    DownloadAllResult,
    DownloadResult,
    DownloadStats,
    EnrichedAudio,
)
from wlx.utils.audio import list_audio_files
from wlx.utils.cache import atomic_write_bytes

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
MAX_SEARCH_LIMIT = 50


def _clamp(value: int, low: int, high: int | None = None) -> int:
    value = max(low, value)
    return min(value, high) if high is not None else value


class AudioAssetManager:
    """Manage the audio working set and its local files.

    The manager is the only writer of an entry's download fields
    (``is_downloaded``, ``local_path``, ``file_size_bytes``).

    Args:
        loader: Loader of the audio working set.
        client: Shared async HTTP client for downloads.
        config: Audio settings.
        durations: Duration cache, loaded from disk by the caller.
        on_event: Optional progress callback.
        sleep: Awaitable used for the pause between download chunks.
    """

    def __init__(
        self,
        loader: DatasetLoader,
        client: httpx.AsyncClient,
        config: AudioConfig,
        durations: DurationCache,
        on_event: EventCallback | None = None,
        sleep: Callable[[float], object] = asyncio.sleep,
    ) -> None:
        self._loader = loader
        self._client = client
        self._config = config
        self.durations = durations
        self._on_event = on_event
        self._sleep = sleep
        self.audio_dir = Path(config.download_dir)
        loader.on_publish(self._reconcile_snapshot)

    def _emit(self, progress: float, message: str, data: dict | None = None) -> None:
        if self._on_event:
            self._on_event(EngineEvent("download", DatasetKind.AUDIO, progress, message, data or {}))

    async def entries(self) -> tuple[AudioEntry, ...]:
        snapshot = await self._loader.ensure_loaded()
        return snapshot.records

    async def get(self, audio_id: str) -> AudioEntry | None:
        for entry in await self.entries():
            if entry.id == audio_id:
                return entry
        return None

    # -- browsing ------------------------------------------------------------

    async def list(self, page: int = 1, page_size: int = 20) -> AudioPage:
        page = _clamp(page, 1)
        page_size = _clamp(page_size, 1, MAX_PAGE_SIZE)
        entries = await self.entries()
        start = (page - 1) * page_size
        return AudioPage(
            entries=list(entries[start : start + page_size]),
            page=page,
            page_size=page_size,
            total=len(entries),
            total_pages=math.ceil(len(entries) / page_size),
        )

    async def search_by_transcription(self, query: str, limit: int = 10) -> AudioSearchResult:
        limit = _clamp(limit, 1, MAX_SEARCH_LIMIT)
        needle = query.strip().lower()
        matches = [e for e in await self.entries() if needle in e.transcription.lower()]
        return AudioSearchResult(query=query, entries=matches[:limit], total_matches=len(matches))

    def enrich_with_durations(self, entries: Sequence[AudioEntry]) -> list[EnrichedAudio]:
        """Copies of entries with measured durations filled in where known."""
        enriched = []
        for entry in entries:
            info = self.durations.get(entry.id)
            if info is not None and info.calculated:
                enriched.append(
                    EnrichedAudio(entry=replace(entry, duration_seconds=info.duration_seconds), calculated=True)
                )
            else:
                enriched.append(EnrichedAudio(entry=replace(entry), calculated=False))
        return enriched

    # -- downloads -----------------------------------------------------------

    async def download_one(self, audio_id: str) -> DownloadResult:
        entry = await self.get(audio_id)
        if entry is None:
            error = UnknownEntry(f"Audio entry '{audio_id}' not found")
            return DownloadResult(id=audio_id, success=False, error=str(error))

        if entry.is_downloaded and entry.local_path is not None and entry.local_path.is_file():
            return DownloadResult(
                id=audio_id, success=True, local_path=entry.local_path, message="Already downloaded"
            )

        try:
            dest, size = await self._download(entry)
        except DownloadItemFailed as e:
            logger.warning("%s", e)
            return DownloadResult(id=audio_id, success=False, error=e.reason)

        await self._mark_downloaded(entry, dest, size)
        logger.debug("Downloaded %s (%d bytes)", audio_id, size)
        return DownloadResult(id=audio_id, success=True, local_path=dest, message="Downloaded")

    async def _mark_downloaded(self, entry: AudioEntry, dest: Path, size: int) -> None:
        # a 403 refresh elsewhere in the batch may have swapped the snapshot
        current = await self.get(entry.id)
        targets = [entry] if current is None or current is entry else [entry, current]
        for target in targets:
            target.is_downloaded = True
            target.local_path = dest
            target.file_size_bytes = size

    async def _download(self, entry: AudioEntry, refreshed: bool = False) -> tuple[Path, int]:
        if not entry.remote_url:
            raise DownloadItemFailed(entry.id, "No download URL available")

        dest = self.audio_dir / entry.file_name
        try:
            async with self._client.stream(
                "GET",
                entry.remote_url,
                timeout=self._config.download_timeout,
                follow_redirects=True,
            ) as response:
                if response.status_code == 403 and not refreshed:
                    expired = True
                else:
                    expired = False
                    response.raise_for_status()
                    payload = b"".join([chunk async for chunk in response.aiter_bytes()])
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise DownloadItemFailed(entry.id, str(e)) from e

        if expired:
            # Signed URLs expire; a fresh audio snapshot carries new ones.
            logger.info("Download URL for %s expired, refreshing audio dataset", entry.id)
            await self._loader.refresh_now()
            fresh = await self.get(entry.id)
            if fresh is None:
                raise DownloadItemFailed(entry.id, "Entry disappeared after refresh")
            return await self._download(fresh, refreshed=True)

        try:
            await asyncio.to_thread(self._write_file, dest, payload)
        except OSError as e:
            raise DownloadItemFailed(entry.id, f"Could not write {dest}: {e}") from e
        return dest, len(payload)

    @staticmethod
    def _write_file(dest: Path, payload: bytes) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)
        atomic_write_bytes(dest, payload)

    async def download_batch(
        self, audio_ids: Sequence[str], concurrency: int | None = None
    ) -> BatchDownloadResult:
        """Download ids in sequential chunks of ``concurrency`` concurrent items.

        One item failing never affects the others. The audio cache is
        persisted once the batch is done.
        """
        size = _clamp(concurrency or self._config.download_concurrency, 1)
        ids = list(audio_ids)
        chunks = [ids[i : i + size] for i in range(0, len(ids), size)]
        results: list[DownloadResult] = []

        for n, chunk in enumerate(chunks, start=1):
            chunk_results = await asyncio.gather(*(self.download_one(i) for i in chunk))
            results.extend(chunk_results)
            ok = sum(1 for r in chunk_results if r.success)
            self._emit(
                n / len(chunks),
                f"Chunk {n}/{len(chunks)}: {ok}/{len(chunk)} downloaded",
                {"chunk": n, "succeeded": ok, "failed": len(chunk) - ok},
            )
            if n < len(chunks):
                await self._sleep(self._config.batch_pause)

        if ids:
            await self._loader.persist()

        batch = BatchDownloadResult(success=True, message="", results=results)
        batch.success = batch.failed == 0
        batch.message = f"Downloaded {batch.succeeded} of {len(ids)} audio files"
        if batch.failed:
            batch.message += f" ({batch.failed} failed)"
        logger.info(batch.message)
        return batch

    async def download_all(self, concurrency: int | None = None) -> DownloadAllResult:
        """Download every pending entry, high priority first."""
        entries = await self.entries()
        pending = [e for e in entries if not e.is_downloaded]
        # sorted() is stable, so dataset order holds within a tier
        ordered = sorted(pending, key=lambda e: e.download_priority.rank)
        skipped = len(entries) - len(pending)

        batch = await self.download_batch([e.id for e in ordered], concurrency)
        return DownloadAllResult(
            success=batch.failed == 0,
            message=f"Downloaded {batch.succeeded} of {len(ordered)} pending audio files",
            total=len(entries),
            downloaded=batch.succeeded,
            skipped=skipped,
            failed=batch.failed,
            results=batch.results,
        )

    async def clear_downloaded(self) -> ClearResult:
        """Delete local audio files and reset every entry's download state."""
        deleted = await asyncio.to_thread(self._delete_files)
        for entry in await self.entries():
            entry.is_downloaded = False
            entry.local_path = None
            entry.file_size_bytes = None
        await self._loader.persist()
        logger.info("Cleared %d downloaded audio files", deleted)
        return ClearResult(success=True, message=f"Deleted {deleted} audio files", deleted_files=deleted)

    def _delete_files(self) -> int:
        files = list_audio_files(self.audio_dir)
        for path in files:
            path.unlink()
        return len(files)

    async def download_stats(self) -> DownloadStats:
        entries = await self.entries()
        downloaded = [e for e in entries if e.is_downloaded]
        total = len(entries)
        return DownloadStats(
            total_files=total,
            downloaded_files=len(downloaded),
            pending_files=total - len(downloaded),
            total_size_bytes=sum(e.file_size_bytes or 0 for e in downloaded),
            progress_percent=round(len(downloaded) / total * 100, 2) if total else 0.0,
        )

    async def audio_stats(self) -> dict:
        entries = await self.entries()
        total = len(entries)
        total_duration = sum(e.duration_seconds for e in entries)
        words = {w for e in entries for w in e.transcription.lower().split()}
        return {
            "total_entries": total,
            "total_duration_seconds": round(total_duration, 2),
            "total_duration_minutes": round(total_duration / 60, 2),
            "average_duration_seconds": round(total_duration / total, 2) if total else 0.0,
            "average_transcription_length": (
                round(sum(len(e.transcription) for e in entries) / total, 2) if total else 0.0
            ),
            "unique_wayuu_words": len(words),
            "downloaded_entries": sum(1 for e in entries if e.is_downloaded),
        }

    # -- reconciliation and durations ---------------------------------------

    async def reconcile_downloads(self) -> int:
        """Sync download fields of the current snapshot with the audio directory."""
        snapshot = await self._loader.ensure_loaded()
        return await asyncio.to_thread(self._reconcile, snapshot.records)

    async def _reconcile_snapshot(self, snapshot: DatasetSnapshot) -> None:
        await asyncio.to_thread(self._reconcile, snapshot.records)

    def _reconcile(self, entries: Sequence[AudioEntry]) -> int:
        present = 0
        for entry in entries:
            path = self.audio_dir / entry.file_name
            if path.is_file():
                entry.is_downloaded = True
                entry.local_path = path
                entry.file_size_bytes = path.stat().st_size
                present += 1
            else:
                entry.is_downloaded = False
                entry.local_path = None
                entry.file_size_bytes = None
        return present

    async def update_durations(self) -> None:
        await self.durations.update_from_entries(await self.entries(), self.audio_dir)

    async def recalculate_durations(self) -> dict:
        return await self.durations.recalculate_all(self.audio_dir)
