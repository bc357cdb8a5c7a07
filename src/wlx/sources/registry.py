"""Registry of remote dataset sources."""

from __future__ import annotations

import logging
from dataclasses import fields, replace
from typing import Iterable

from wlx.core.config import SourceSettings
from wlx.core.errors import UnknownSource
from wlx.core.models import DatasetKind, OperationResult, RemoteSourceConfig, SourceKind

logger = logging.getLogger(__name__)

DEFAULT_SOURCES = (
    RemoteSourceConfig(
        id="wayuu_spa_dict",
        name="Wayuu-Spanish Dictionary",
        dataset="Gaxys/wayuu_spa_dict",
        kind=SourceKind.DICTIONARY,
        is_active=True,
        priority=1,
        description="Main Wayuu-Spanish dictionary with 2,183 entries",
        url="https://huggingface.co/datasets/Gaxys/wayuu_spa_dict",
    ),
    RemoteSourceConfig(
        id="wayuu_parallel_corpus",
        name="Wayuu-Spanish Parallel Corpus",
        dataset="weezygeezer/Wayuu-Spanish_Parallel-Corpus",
        kind=SourceKind.DICTIONARY,
        is_active=False,
        priority=2,
        description="Parallel corpus with ~42,687 Wayuu-Spanish sentence pairs",
        url="https://huggingface.co/datasets/weezygeezer/Wayuu-Spanish_Parallel-Corpus",
    ),
    RemoteSourceConfig(
        id="wayuu_audio",
        name="Wayuu Audio Dataset",
        dataset="orkidea/wayuu_CO_test",
        kind=SourceKind.AUDIO,
        is_active=True,
        priority=3,
        description="Wayuu audio recordings with transcriptions",
        url="https://huggingface.co/datasets/orkidea/wayuu_CO_test",
    ),
)

_IMMUTABLE_FIELDS = {"id"}


def source_from_settings(settings: SourceSettings, priority: int) -> RemoteSourceConfig:
    return RemoteSourceConfig(
        id=settings.id,
        name=settings.name,
        dataset=settings.dataset,
        config=settings.config,
        split=settings.split,
        kind=SourceKind(settings.kind),
        is_active=settings.is_active,
        priority=settings.priority if settings.priority is not None else priority,
        description=settings.description,
        url=settings.url,
    )


class SourceRegistry:
    """Ordered, mutable collection of remote sources.

    Lookups by unknown id return a failed OperationResult instead of raising.
    """

    def __init__(self, sources: Iterable[RemoteSourceConfig] | None = None) -> None:
        seed = DEFAULT_SOURCES if sources is None else sources
        self._sources: dict[str, RemoteSourceConfig] = {}
        for source in seed:
            self._sources[source.id] = replace(source)

    @classmethod
    def from_settings(cls, settings: list[SourceSettings]) -> SourceRegistry:
        """Build from config entries, or the defaults when the list is empty."""
        if not settings:
            return cls()
        return cls(source_from_settings(s, i + 1) for i, s in enumerate(settings))

    def _missing(self, source_id: str) -> OperationResult:
        error = UnknownSource(f"Source '{source_id}' not found")
        logger.debug("%s", error)
        return OperationResult(success=False, message=str(error))

    def get(self, source_id: str) -> RemoteSourceConfig | None:
        return self._sources.get(source_id)

    def list_all(self) -> list[RemoteSourceConfig]:
        return sorted(self._sources.values(), key=lambda s: s.priority)

    def list_active(self, kind: SourceKind | None = None) -> list[RemoteSourceConfig]:
        return [
            s
            for s in self.list_all()
            if s.is_active and (kind is None or s.kind is kind)
        ]

    def get_active_sources(self, kind: DatasetKind) -> list[RemoteSourceConfig]:
        """Active sources feeding a working set, by ascending priority."""
        return [s for s in self.list_all() if s.is_active and s.kind.serves(kind)]

    def add(self, source: RemoteSourceConfig) -> OperationResult:
        if source.id in self._sources:
            return OperationResult(
                success=False, message=f"Source '{source.id}' already exists"
            )
        priority = max((s.priority for s in self._sources.values()), default=0) + 1
        added = replace(source, priority=priority)
        self._sources[added.id] = added
        logger.info("Added source %s (%s)", added.id, added.dataset)
        return OperationResult(success=True, message=f"Source '{added.id}' added", source=added)

    def update(self, source_id: str, patch: dict) -> OperationResult:
        current = self._sources.get(source_id)
        if current is None:
            return self._missing(source_id)
        allowed = {f.name for f in fields(RemoteSourceConfig)} - _IMMUTABLE_FIELDS
        unknown = set(patch) - allowed - _IMMUTABLE_FIELDS
        if unknown:
            return OperationResult(
                success=False, message=f"Unknown source fields: {', '.join(sorted(unknown))}"
            )
        changes = {k: v for k, v in patch.items() if k in allowed}
        if "kind" in changes:
            try:
                changes["kind"] = SourceKind(changes["kind"])
            except ValueError:
                return OperationResult(
                    success=False, message=f"Invalid source kind {changes['kind']!r}"
                )
        if "priority" in changes and (
            isinstance(changes["priority"], bool) or not isinstance(changes["priority"], int)
        ):
            return OperationResult(
                success=False, message=f"Invalid source priority {changes['priority']!r}"
            )
        if "is_active" in changes and not isinstance(changes["is_active"], bool):
            return OperationResult(
                success=False, message=f"Invalid is_active value {changes['is_active']!r}"
            )
        updated = replace(current, **changes)
        self._sources[source_id] = updated
        return OperationResult(
            success=True, message=f"Source '{source_id}' updated", source=updated
        )

    def remove(self, source_id: str) -> OperationResult:
        removed = self._sources.pop(source_id, None)
        if removed is None:
            return self._missing(source_id)
        logger.info("Removed source %s", source_id)
        return OperationResult(success=True, message=f"Source '{source_id}' removed", source=removed)

    def toggle(self, source_id: str) -> OperationResult:
        current = self._sources.get(source_id)
        if current is None:
            return self._missing(source_id)
        toggled = replace(current, is_active=not current.is_active)
        self._sources[source_id] = toggled
        state = "activated" if toggled.is_active else "deactivated"
        logger.info("Source %s %s", source_id, state)
        return OperationResult(
            success=True,
            message=f"Source '{source_id}' {state}",
            source=toggled,
            is_active=toggled.is_active,
        )
