"""Tests for the paginated remote fetcher and row schemas."""

import httpx
import pytest

from conftest import AUDIO_DATASET, DICT_DATASET, dictionary_rows
from wlx.core.config import FetchConfig
from wlx.core.models import RemoteSourceConfig, SourceKind
from wlx.fetch.remote import RemoteFetcher
from wlx.fetch.schema import parse_audio_row, parse_dictionary_row


async def _no_sleep(seconds: float) -> None:
    return None


def _fetcher(server, **overrides) -> RemoteFetcher:
    config = FetchConfig(pacing_delay=0, rate_limit_wait=0, **overrides)
    return RemoteFetcher(server.client(), config, sleep=_no_sleep)


def _pairs(n: int) -> list[tuple[str, str]]:
    return [(f"guc{i}", f"spa{i}") for i in range(n)]


class TestFetchAll:
    @pytest.mark.asyncio
    async def test_paginates_until_short_page(self, fake_server, dict_source):
        fake_server.datasets[DICT_DATASET] = dictionary_rows(_pairs(250))
        result = await _fetcher(fake_server).fetch_all(dict_source, parse_dictionary_row)
        assert len(result.records) == 250
        assert result.total_reported == 250
        assert result.pages == 3
        assert result.error is None
        offsets = [int(r.url.params["offset"]) for r in fake_server.row_requests()]
        assert offsets == [0, 100, 200]

    @pytest.mark.asyncio
    async def test_stops_at_reported_total(self, fake_server, dict_source):
        fake_server.datasets[DICT_DATASET] = dictionary_rows(_pairs(200))
        result = await _fetcher(fake_server).fetch_all(dict_source, parse_dictionary_row)
        assert len(result.records) == 200
        assert len(fake_server.row_requests()) == 2

    @pytest.mark.asyncio
    async def test_max_entries_cap(self, fake_server, dict_source):
        fake_server.datasets[DICT_DATASET] = dictionary_rows(_pairs(500))
        result = await _fetcher(fake_server).fetch_all(
            dict_source, parse_dictionary_row, page_size=100, max_entries=150
        )
        assert len(result.records) == 150
        assert len(fake_server.row_requests()) == 2

    @pytest.mark.asyncio
    async def test_partial_failure_keeps_records(self, fake_server, dict_source):
        fake_server.datasets[DICT_DATASET] = dictionary_rows(_pairs(300))
        fake_server.fail_offsets.add((DICT_DATASET, 100))
        result = await _fetcher(fake_server).fetch_all(dict_source, parse_dictionary_row)
        assert len(result.records) == 100
        assert result.partial
        assert result.ok
        assert "500" in result.error

    @pytest.mark.asyncio
    async def test_first_page_failure(self, fake_server, dict_source):
        fake_server.fail_offsets.add((DICT_DATASET, 0))
        result = await _fetcher(fake_server).fetch_all(dict_source, parse_dictionary_row)
        assert result.records == []
        assert not result.ok
        assert result.error

    @pytest.mark.asyncio
    async def test_network_error(self, fake_server, dict_source):
        fake_server.offline = True
        result = await _fetcher(fake_server).fetch_all(dict_source, parse_dictionary_row)
        assert result.records == []
        assert "offline" in result.error

    @pytest.mark.asyncio
    async def test_malformed_rows_skipped(self, fake_server, dict_source):
        fake_server.datasets[DICT_DATASET] = [
            {"translation": {"guc": "aa", "spa": "sí"}},
            {"translation": {"guc": "", "spa": "vacío"}},
            {"unexpected": 1},
            {"guc": "jama", "spa": "perro"},
        ]
        result = await _fetcher(fake_server).fetch_all(dict_source, parse_dictionary_row)
        assert [e.source_word for e in result.records] == ["aa", "jama"]
        assert result.skipped == 2

    @pytest.mark.asyncio
    async def test_rate_limit_retried(self, fake_server, dict_source):
        fake_server.rate_limited[(DICT_DATASET, 0)] = 2
        result = await _fetcher(fake_server).fetch_all(dict_source, parse_dictionary_row)
        assert len(result.records) == 4
        assert len(fake_server.row_requests()) == 3

    @pytest.mark.asyncio
    async def test_rate_limit_gives_up(self, fake_server, dict_source):
        fake_server.rate_limited[(DICT_DATASET, 0)] = 10
        result = await _fetcher(fake_server, max_rate_limit_retries=1).fetch_all(
            dict_source, parse_dictionary_row
        )
        assert result.records == []
        assert "429" in result.error

    @pytest.mark.asyncio
    async def test_request_parameters(self, fake_server, dict_source):
        await _fetcher(fake_server).fetch_all(dict_source, parse_dictionary_row)
        request = fake_server.row_requests()[0]
        assert request.url.params["dataset"] == DICT_DATASET
        assert request.url.params["config"] == "default"
        assert request.url.params["split"] == "train"
        assert request.url.params["length"] == "100"
        assert request.headers["User-Agent"] == "WayuuTranslator/1.0"

    @pytest.mark.asyncio
    async def test_pacing_between_pages(self, fake_server, dict_source):
        fake_server.datasets[DICT_DATASET] = dictionary_rows(_pairs(250))
        delays = []

        async def record_sleep(seconds):
            delays.append(seconds)

        fetcher = RemoteFetcher(fake_server.client(), FetchConfig(pacing_delay=0.1), sleep=record_sleep)
        await fetcher.fetch_all(dict_source, parse_dictionary_row)
        assert delays == [0.1, 0.1]


class TestFetchMany:
    @pytest.mark.asyncio
    async def test_concatenates_in_order(self, fake_server, dict_source):
        fake_server.datasets["other/corpus"] = dictionary_rows([("wayuu", "persona")])
        other = RemoteSourceConfig(
            id="corpus", name="Corpus", dataset="other/corpus", kind=SourceKind.DICTIONARY, priority=2
        )
        result = await _fetcher(fake_server).fetch_many([dict_source, other], parse_dictionary_row)
        assert [e.source_word for e in result.records][-1] == "wayuu"
        assert len(result.records) == 5
        assert result.error is None

    @pytest.mark.asyncio
    async def test_one_source_failing(self, fake_server, dict_source):
        missing = RemoteSourceConfig(id="gone", name="Gone", dataset="gone/dataset", priority=2)
        result = await _fetcher(fake_server).fetch_many([dict_source, missing], parse_dictionary_row)
        assert len(result.records) == 4
        assert result.ok
        assert result.error.startswith("gone:")

    @pytest.mark.asyncio
    async def test_no_sources(self, fake_server):
        result = await _fetcher(fake_server).fetch_many([], parse_dictionary_row)
        assert not result.ok


@pytest.mark.asyncio
async def test_preview(fake_server, dict_source):
    page = await _fetcher(fake_server).preview(dict_source, length=2)
    assert len(page.rows) == 2
    assert page.num_rows_total == 4


@pytest.mark.asyncio
async def test_preview_raises_on_http_error(fake_server):
    missing = RemoteSourceConfig(id="gone", name="Gone", dataset="gone/dataset")
    with pytest.raises(httpx.HTTPStatusError):
        await _fetcher(fake_server).preview(missing)


class TestRowSchemas:
    def test_dictionary_row_sets_dataset(self, dict_source):
        entry = parse_dictionary_row({"row_idx": 0, "row": {"guc": " aa ", "spa": "sí"}}, dict_source)
        assert entry.source_word == "aa"
        assert entry.dataset == DICT_DATASET

    def test_dictionary_row_missing(self, dict_source):
        assert parse_dictionary_row({"row_idx": 0}, dict_source) is None

    def test_audio_row_list_form(self, audio_source):
        item = {
            "row_idx": 7,
            "row": {"audio": [{"src": "https://x/7.wav"}], "transcription": "tayakai", "duration": 3.5},
        }
        entry = parse_audio_row(item, audio_source)
        assert entry.id == "audio_007"
        assert entry.remote_url == "https://x/7.wav"
        assert entry.duration_seconds == 3.5
        assert entry.batch_number == 1
        assert entry.source_id == "wayuu_audio"

    def test_audio_row_dict_form_and_batch(self, audio_source):
        item = {"row_idx": 250, "row": {"audio": {"path": "p.wav"}, "transcription": "wayuu"}}
        entry = parse_audio_row(item, audio_source)
        assert entry.id == "audio_250"
        assert entry.remote_url == "p.wav"
        assert entry.batch_number == 3

    def test_audio_row_without_url(self, audio_source):
        item = {"row_idx": 1, "row": {"audio": [], "transcription": "wayuu"}}
        assert parse_audio_row(item, audio_source) is None

    def test_audio_row_needs_index(self, audio_source):
        item = {"row": {"audio": {"src": "u"}, "transcription": "wayuu"}}
        assert parse_audio_row(item, audio_source) is None
