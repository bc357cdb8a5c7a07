"""Tests for the engine event system."""

from wlx.core.events import EngineEvent, EventCallback
from wlx.core.models import DatasetKind


def test_load_event():
    event = EngineEvent("load", DatasetKind.DICTIONARY, 0.5, "Loading dictionary dataset")
    assert event.label == "load:dictionary"
    assert event.data == {}
    assert not event.done


def test_download_event_payload():
    event = EngineEvent(
        "download", DatasetKind.AUDIO, 1.0, "Chunk 2/2", {"chunk": 2, "succeeded": 5, "failed": 0}
    )
    assert event.label == "download:audio"
    assert event.data["chunk"] == 2
    assert event.done


def test_event_payloads_not_shared():
    first = EngineEvent("load", DatasetKind.AUDIO, 0.0, "a")
    first.data["origin"] = "cache"
    assert EngineEvent("load", DatasetKind.AUDIO, 0.0, "b").data == {}


def test_event_callback_type():
    """EventCallback is a callable type alias accepting EngineEvent."""
    collected: list[EngineEvent] = []

    def handler(event: EngineEvent) -> None:
        collected.append(event)

    cb: EventCallback = handler
    cb(EngineEvent("download", DatasetKind.AUDIO, 0.0, "Starting"))
    assert [e.label for e in collected] == ["download:audio"]
