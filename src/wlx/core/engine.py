"""Engine facade: wires fetcher, cache, loaders, lookup and audio together.

Collaborators (CLI, HTTP controllers) talk to a LexiconEngine only::

    async with LexiconEngine(load_config()) as engine:
        result = await engine.lookup("aa", Direction.WAYUU_TO_SPANISH)
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from wlx import __version__
from wlx.audio.durations import DurationCache
from wlx.audio.manager import AudioAssetManager
from wlx.cache.store import DiskCacheStore
from wlx.core.config import WLXConfig, load_config
from wlx.core.events import EventCallback
from wlx.core.loader import DatasetLoader, audio_codec, dictionary_codec
from wlx.core.models import (
    CacheInfo,
    DatasetKind,
    Direction,
    LookupResult,
    OperationResult,
    ReloadResult,
)
from wlx.core.singleflight import SingleFlight
from wlx.fetch.remote import RemoteFetcher
from wlx.lookup.dictionary import DictionaryLookup
from wlx.sources.registry import SourceRegistry

logger = logging.getLogger(__name__)


class LexiconEngine:
    """Dictionary and audio engine over remote, cached and sample data.

    Args:
        config: Engine config. Loaded from the config layers if omitted.
        client: HTTP client to use. The engine creates (and closes) its own
            when omitted.
        on_event: Optional progress callback for loads and downloads.
    """

    def __init__(
        self,
        config: WLXConfig | None = None,
        client: httpx.AsyncClient | None = None,
        on_event: EventCallback | None = None,
    ) -> None:
        self.config = config or load_config()
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            headers={"User-Agent": self.config.fetch.user_agent}
        )
        self.store = DiskCacheStore(self.config.cache.dir)
        self.fetcher = RemoteFetcher(self.client, self.config.fetch)
        self.sources = SourceRegistry.from_settings(self.config.sources)
        flight = SingleFlight()

        self.dictionary_loader = DatasetLoader(
            dictionary_codec(self.config.fetch.max_dictionary_entries),
            self.store,
            self.fetcher,
            self.sources,
            self.config,
            flight=flight,
            on_event=on_event,
        )
        self.audio_loader = DatasetLoader(
            audio_codec(self.config.fetch.max_audio_entries),
            self.store,
            self.fetcher,
            self.sources,
            self.config,
            flight=flight,
            on_event=on_event,
        )

        durations = DurationCache(self.config.audio.duration_cache_file)
        durations.load()
        self.audio = AudioAssetManager(
            self.audio_loader, self.client, self.config.audio, durations, on_event=on_event
        )
        self._lookup: DictionaryLookup | None = None

    async def __aenter__(self) -> LexiconEngine:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def start(self) -> None:
        """Load both working sets concurrently."""
        await asyncio.gather(
            self.dictionary_loader.ensure_loaded(), self.audio_loader.ensure_loaded()
        )

    async def aclose(self) -> None:
        await asyncio.gather(self.dictionary_loader.aclose(), self.audio_loader.aclose())
        if self._owns_client:
            await self.client.aclose()

    def loader(self, kind: DatasetKind) -> DatasetLoader:
        if kind is DatasetKind.DICTIONARY:
            return self.dictionary_loader
        return self.audio_loader

    # -- lookup --------------------------------------------------------------

    async def _dictionary(self) -> DictionaryLookup:
        snapshot = await self.dictionary_loader.ensure_loaded()
        if self._lookup is None or self._lookup.generation != snapshot.generation:
            self._lookup = DictionaryLookup(snapshot.records, generation=snapshot.generation)
        return self._lookup

    async def lookup(
        self, text: str, direction: Direction = Direction.WAYUU_TO_SPANISH
    ) -> LookupResult | None:
        return (await self._dictionary()).lookup(text, direction)

    async def find_exact(self, text: str, direction: Direction) -> LookupResult | None:
        return (await self._dictionary()).find_exact(text, direction)

    async def find_fuzzy(self, text: str, direction: Direction) -> LookupResult | None:
        return (await self._dictionary()).find_fuzzy(text, direction)

    async def dictionary_stats(self) -> dict:
        return (await self._dictionary()).stats()

    # -- admin ---------------------------------------------------------------

    async def reload(self, kind: DatasetKind, clear_cache: bool = False) -> ReloadResult:
        return await self.loader(kind).force_reload(clear_cache=clear_cache)

    async def clear_cache(self, kind: DatasetKind) -> bool:
        return await self.loader(kind).clear_cache()

    async def cache_info(self, kind: DatasetKind) -> CacheInfo:
        return await self.loader(kind).cache_info()

    def dataset_info(self) -> dict:
        return {
            "version": __version__,
            "dictionary": self.dictionary_loader.info(),
            "audio": self.audio_loader.info(),
            "sources": [
                {"id": s.id, "dataset": s.dataset, "kind": s.kind.value, "active": s.is_active}
                for s in self.sources.list_all()
            ],
        }

    async def preview_source(self, source_id: str, length: int = 10) -> OperationResult:
        """Fetch the first rows of a registered source without loading it."""
        source = self.sources.get(source_id)
        if source is None:
            return OperationResult(success=False, message=f"Source '{source_id}' not found")
        try:
            page = await self.fetcher.preview(source, length)
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Preview of %s failed: %s", source.dataset, e)
            return OperationResult(success=False, message=f"Preview failed: {e}", source=source)
        return OperationResult(
            success=True,
            message=f"Fetched {len(page.rows)} rows from {source.dataset}",
            source=source,
            data={"rows": page.rows, "num_rows_total": page.num_rows_total},
        )
