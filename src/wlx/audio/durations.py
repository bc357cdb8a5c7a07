"""Persistent cache of measured audio durations."""

from __future__ import annotations

import asyncio
import json
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

from wlx.core.models import AudioEntry, utcnow
from wlx.utils.audio import list_audio_files, probe_duration
from wlx.utils.cache import atomic_write_text

logger = logging.getLogger(__name__)

PROBE_BATCH_SIZE = 5


@dataclass
class DurationInfo:
    id: str
    duration_seconds: float = 0.0
    calculated: bool = False
    file_path: str | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "duration_seconds": self.duration_seconds,
            "calculated": self.calculated,
            "file_path": self.file_path,
            "error": self.error,
        }


class DurationCache:
    """Map of audio id to measured duration, persisted as JSON.

    Args:
        path: Cache file location.
        probe: Duration probe, ffprobe by default.
    """

    def __init__(self, path: Path, probe: Callable[[Path], float] = probe_duration) -> None:
        self.path = Path(path)
        self._probe = probe
        self.durations: dict[str, DurationInfo] = {}
        self.last_updated: str | None = None

    def load(self) -> None:
        if not self.path.is_file():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            self.durations = {
                audio_id: DurationInfo(id=audio_id, **info)
                for audio_id, info in data.get("durations", {}).items()
            }
            self.last_updated = data.get("last_updated")
        except (OSError, ValueError, TypeError) as e:
            logger.warning("Could not load audio duration cache: %s", e)
            self.durations = {}
        else:
            logger.debug("Loaded %d audio durations", self.total_calculated)

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.last_updated = utcnow().isoformat()
        atomic_write_text(self.path, json.dumps(self.to_dict(), indent=2, ensure_ascii=False))

    def get(self, audio_id: str) -> DurationInfo | None:
        return self.durations.get(audio_id)

    @property
    def total_calculated(self) -> int:
        return sum(1 for d in self.durations.values() if d.calculated)

    @property
    def total_duration_seconds(self) -> float:
        return round(sum(d.duration_seconds for d in self.durations.values() if d.calculated), 2)

    @property
    def average_duration_seconds(self) -> float:
        count = self.total_calculated
        return round(self.total_duration_seconds / count, 2) if count else 0.0

    def to_dict(self) -> dict:
        return {
            "last_updated": self.last_updated,
            "durations": {k: v.to_dict() for k, v in self.durations.items()},
            "total_calculated": self.total_calculated,
            "total_duration_seconds": self.total_duration_seconds,
            "average_duration_seconds": self.average_duration_seconds,
        }

    async def _measure(self, audio_id: str, path: Path) -> DurationInfo:
        try:
            seconds = await asyncio.to_thread(self._probe, path)
        except (FileNotFoundError, subprocess.CalledProcessError, ValueError) as e:
            logger.warning("Could not measure %s: %s", path.name, e)
            return DurationInfo(id=audio_id, error=str(e))
        return DurationInfo(id=audio_id, duration_seconds=seconds, calculated=True, file_path=str(path))

    async def _measure_all(self, items: list[tuple[str, Path]]) -> list[DurationInfo]:
        results: list[DurationInfo] = []
        for i in range(0, len(items), PROBE_BATCH_SIZE):
            batch = items[i : i + PROBE_BATCH_SIZE]
            results.extend(await asyncio.gather(*(self._measure(a, p) for a, p in batch)))
            logger.debug("Measured %d/%d audio files", min(i + PROBE_BATCH_SIZE, len(items)), len(items))
        return results

    async def update_from_entries(self, entries: Iterable[AudioEntry], audio_dir: Path) -> None:
        """Fill durations for entries, measuring downloaded files not yet known."""
        updated: dict[str, DurationInfo] = {}
        to_measure: list[tuple[str, Path]] = []
        for entry in entries:
            known = self.durations.get(entry.id)
            if known is not None and known.calculated:
                updated[entry.id] = known
            elif entry.duration_seconds > 0:
                updated[entry.id] = DurationInfo(
                    id=entry.id, duration_seconds=entry.duration_seconds, calculated=True
                )
            elif entry.is_downloaded:
                to_measure.append((entry.id, Path(audio_dir) / entry.file_name))
            else:
                updated[entry.id] = DurationInfo(id=entry.id, error="Audio file not downloaded")

        for info in await self._measure_all(to_measure):
            updated[info.id] = info

        self.durations = updated
        await asyncio.to_thread(self.save)
        logger.info(
            "Audio duration cache updated: %d calculated, %.1fs total",
            self.total_calculated,
            self.total_duration_seconds,
        )

    async def recalculate_all(self, audio_dir: Path) -> dict:
        """Re-measure every audio file in audio_dir, replacing the cache."""
        files = await asyncio.to_thread(list_audio_files, audio_dir)
        if not files:
            logger.warning("No audio files found in %s", audio_dir)
            return {"calculated": 0, "failed": 0, "total_duration_seconds": 0.0}

        results = await self._measure_all([(p.stem, p) for p in files])
        self.durations = {info.id: info for info in results}
        await asyncio.to_thread(self.save)

        failed = sum(1 for info in results if not info.calculated)
        logger.info(
            "Recalculated %d durations (%d failed), %.1fs total",
            self.total_calculated,
            failed,
            self.total_duration_seconds,
        )
        return {
            "calculated": self.total_calculated,
            "failed": failed,
            "total_duration_seconds": self.total_duration_seconds,
        }
