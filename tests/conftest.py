"""Shared test fixtures."""

from __future__ import annotations

import logging
from pathlib import Path

import httpx
import pytest

from wlx.core.config import AudioConfig, CacheConfig, FetchConfig, WLXConfig
from wlx.core.models import DictionaryEntry, RemoteSourceConfig, SourceKind

ROWS_URL = "https://datasets-server.huggingface.co/rows"
AUDIO_HOST = "https://cdn.example.org"

DICT_DATASET = "Gaxys/wayuu_spa_dict"
AUDIO_DATASET = "orkidea/wayuu_CO_test"


class FakeDatasetServer:
    """In-memory stand-in for the datasets-server rows API and the audio host.

    Attributes:
        datasets: dataset name -> list of row payloads.
        fail_offsets: (dataset, offset) pairs answered with HTTP 500.
        forbidden: audio URLs answered with HTTP 403.
        broken_audio: audio URLs answered with HTTP 500.
        requests: every request seen, in order.
    """

    def __init__(self) -> None:
        self.datasets: dict[str, list[dict]] = {}
        self.fail_offsets: set[tuple[str, int]] = set()
        self.rate_limited: dict[tuple[str, int], int] = {}
        self.forbidden: set[str] = set()
        self.broken_audio: set[str] = set()
        self.requests: list[httpx.Request] = []
        self.offline = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.offline:
            raise httpx.ConnectError("offline", request=request)
        url = str(request.url)
        if url.startswith(ROWS_URL):
            return self._rows(request)
        if url.startswith(AUDIO_HOST):
            if url in self.forbidden:
                return httpx.Response(403)
            if url in self.broken_audio:
                return httpx.Response(500)
            return httpx.Response(200, content=b"RIFF" + url.encode())
        return httpx.Response(404)

    def _rows(self, request: httpx.Request) -> httpx.Response:
        dataset = request.url.params["dataset"]
        offset = int(request.url.params["offset"])
        length = int(request.url.params["length"])
        if dataset not in self.datasets:
            return httpx.Response(404, json={"error": "not found"})
        if (dataset, offset) in self.fail_offsets:
            return httpx.Response(500, json={"error": "boom"})
        remaining = self.rate_limited.get((dataset, offset), 0)
        if remaining:
            self.rate_limited[(dataset, offset)] = remaining - 1
            return httpx.Response(429, headers={"Retry-After": "0"})
        rows = self.datasets[dataset]
        page = [
            {"row_idx": i, "row": rows[i], "truncated_cells": []}
            for i in range(offset, min(offset + length, len(rows)))
        ]
        return httpx.Response(200, json={"rows": page, "num_rows_total": len(rows)})

    def row_requests(self, dataset: str | None = None) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if str(r.url).startswith(ROWS_URL)
            and (dataset is None or r.url.params["dataset"] == dataset)
        ]

    def audio_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url).startswith(AUDIO_HOST)]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


def dictionary_rows(pairs: list[tuple[str, str]]) -> list[dict]:
    return [{"translation": {"guc": guc, "spa": spa}} for guc, spa in pairs]


def audio_rows(count: int, version: int = 1) -> list[dict]:
    return [
        {
            "audio": [{"src": f"{AUDIO_HOST}/audio/{i}.wav?v={version}", "type": "audio/wav"}],
            "transcription": f"wayuu transcription {i}",
        }
        for i in range(count)
    ]


@pytest.fixture
def fake_server() -> FakeDatasetServer:
    server = FakeDatasetServer()
    server.datasets[DICT_DATASET] = dictionary_rows(
        [("aa", "sí"), ("aainjaa", "hacer"), ("jama", "perro"), ("emaa", "agua")]
    )
    server.datasets[AUDIO_DATASET] = audio_rows(5)
    return server


@pytest.fixture
def config(tmp_path: Path) -> WLXConfig:
    return WLXConfig(
        cache=CacheConfig(dir=tmp_path / "data", max_age_hours=24, refresh_cooldown_seconds=300),
        fetch=FetchConfig(pacing_delay=0, rate_limit_wait=0),
        audio=AudioConfig(
            download_dir=tmp_path / "audio",
            duration_cache_file=tmp_path / "durations.json",
            batch_pause=0,
        ),
    )


@pytest.fixture
def dict_source() -> RemoteSourceConfig:
    return RemoteSourceConfig(
        id="wayuu_spa_dict", name="Dictionary", dataset=DICT_DATASET, kind=SourceKind.DICTIONARY, priority=1
    )


@pytest.fixture
def audio_source() -> RemoteSourceConfig:
    return RemoteSourceConfig(
        id="wayuu_audio", name="Audio", dataset=AUDIO_DATASET, kind=SourceKind.AUDIO, priority=3
    )


@pytest.fixture
def sample_entries() -> list[DictionaryEntry]:
    return [
        DictionaryEntry("aa", "sí", "test"),
        DictionaryEntry("aainjaa", "hacer", "test"),
        DictionaryEntry("aainjaa", "elaborar fabricar", "test"),
        DictionaryEntry("aainjaa", "construir", "test"),
        DictionaryEntry("jama", "perro", "test"),
        DictionaryEntry("anasu", "bueno", "test"),
    ]


@pytest.fixture(autouse=True)
def _reset_wlx_logger():
    """The CLI routes the wlx logger through rich; undo that between tests."""
    yield
    logger = logging.getLogger("wlx")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
