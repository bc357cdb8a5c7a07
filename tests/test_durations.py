"""Tests for the audio duration cache."""

import json
import subprocess

import pytest

from wlx.audio.durations import DurationCache, DurationInfo
from wlx.core.models import AudioEntry


class FakeProbe:
    def __init__(self, durations: dict[str, float], failing: set[str] | None = None):
        self.durations = durations
        self.failing = failing or set()
        self.calls = []

    def __call__(self, path):
        self.calls.append(path.name)
        if path.name in self.failing:
            raise subprocess.CalledProcessError(1, ["ffprobe"], stderr="bad header")
        return self.durations[path.name]


@pytest.fixture
def audio_dir(tmp_path):
    directory = tmp_path / "audio"
    directory.mkdir()
    return directory


class TestUpdateFromEntries:
    @pytest.mark.asyncio
    async def test_resolution_order(self, tmp_path, audio_dir):
        (audio_dir / "audio_002.wav").write_bytes(b"x")
        probe = FakeProbe({"audio_002.wav": 7.25})
        cache = DurationCache(tmp_path / "durations.json", probe=probe)
        cache.durations["audio_000"] = DurationInfo(id="audio_000", duration_seconds=3.0, calculated=True)

        entries = [
            AudioEntry(id="audio_000", transcription="a", duration_seconds=9.0),
            AudioEntry(id="audio_001", transcription="b", duration_seconds=4.5),
            AudioEntry(id="audio_002", transcription="c", is_downloaded=True),
            AudioEntry(id="audio_003", transcription="d"),
        ]
        await cache.update_from_entries(entries, audio_dir)

        assert cache.get("audio_000").duration_seconds == 3.0
        assert cache.get("audio_001").duration_seconds == 4.5
        assert cache.get("audio_002").duration_seconds == 7.25
        assert cache.get("audio_002").file_path.endswith("audio_002.wav")
        assert not cache.get("audio_003").calculated
        assert cache.get("audio_003").error == "Audio file not downloaded"
        assert probe.calls == ["audio_002.wav"]
        assert cache.total_calculated == 3
        assert cache.total_duration_seconds == 14.75

    @pytest.mark.asyncio
    async def test_probe_failure_recorded(self, tmp_path, audio_dir):
        (audio_dir / "audio_000.wav").write_bytes(b"x")
        probe = FakeProbe({}, failing={"audio_000.wav"})
        cache = DurationCache(tmp_path / "durations.json", probe=probe)
        await cache.update_from_entries(
            [AudioEntry(id="audio_000", transcription="a", is_downloaded=True)], audio_dir
        )
        info = cache.get("audio_000")
        assert not info.calculated
        assert info.error

    @pytest.mark.asyncio
    async def test_saved_to_disk(self, tmp_path, audio_dir):
        path = tmp_path / "durations.json"
        cache = DurationCache(path, probe=FakeProbe({}))
        await cache.update_from_entries(
            [AudioEntry(id="audio_000", transcription="a", duration_seconds=2.0)], audio_dir
        )
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["total_calculated"] == 1
        assert data["durations"]["audio_000"]["duration_seconds"] == 2.0
        assert data["last_updated"]


class TestPersistence:
    def test_load_round_trip(self, tmp_path):
        path = tmp_path / "durations.json"
        cache = DurationCache(path)
        cache.durations = {
            "audio_000": DurationInfo(id="audio_000", duration_seconds=2.5, calculated=True),
            "audio_001": DurationInfo(id="audio_001", error="Audio file not downloaded"),
        }
        cache.save()

        loaded = DurationCache(path)
        loaded.load()
        assert loaded.get("audio_000").duration_seconds == 2.5
        assert loaded.get("audio_001").error == "Audio file not downloaded"
        assert loaded.average_duration_seconds == 2.5

    def test_missing_file(self, tmp_path):
        cache = DurationCache(tmp_path / "nothing.json")
        cache.load()
        assert cache.durations == {}

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "durations.json"
        path.write_text("{oops", encoding="utf-8")
        cache = DurationCache(path)
        cache.load()
        assert cache.durations == {}
        assert cache.average_duration_seconds == 0.0


class TestRecalculate:
    @pytest.mark.asyncio
    async def test_measures_every_file(self, tmp_path, audio_dir):
        for name in ("audio_000.wav", "audio_001.mp3", "audio_002.wav", "notes.txt"):
            (audio_dir / name).write_bytes(b"x")
        probe = FakeProbe({"audio_000.wav": 1.5, "audio_001.mp3": 2.5}, failing={"audio_002.wav"})
        cache = DurationCache(tmp_path / "durations.json", probe=probe)
        cache.durations["stale"] = DurationInfo(id="stale", duration_seconds=99.0, calculated=True)

        summary = await cache.recalculate_all(audio_dir)
        assert summary == {"calculated": 2, "failed": 1, "total_duration_seconds": 4.0}
        assert set(cache.durations) == {"audio_000", "audio_001", "audio_002"}
        assert (tmp_path / "durations.json").is_file()

    @pytest.mark.asyncio
    async def test_batches_beyond_probe_batch_size(self, tmp_path, audio_dir):
        names = [f"audio_{i:03d}.wav" for i in range(12)]
        for name in names:
            (audio_dir / name).write_bytes(b"x")
        probe = FakeProbe({name: 1.0 for name in names})
        cache = DurationCache(tmp_path / "durations.json", probe=probe)
        summary = await cache.recalculate_all(audio_dir)
        assert summary["calculated"] == 12
        assert sorted(probe.calls) == names

    @pytest.mark.asyncio
    async def test_empty_directory(self, tmp_path, audio_dir):
        cache = DurationCache(tmp_path / "durations.json", probe=FakeProbe({}))
        summary = await cache.recalculate_all(audio_dir)
        assert summary == {"calculated": 0, "failed": 0, "total_duration_seconds": 0.0}
        assert not (tmp_path / "durations.json").exists()
