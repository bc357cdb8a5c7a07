"""Row schemas for the datasets-server ``/rows`` endpoint.

Rows are validated at the fetch boundary. A row that fails validation is
dropped and counted; it never travels further as untyped data.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ValidationError, field_validator, model_validator

from wlx.core.models import AudioEntry, DictionaryEntry, DownloadPriority, RemoteSourceConfig


class RowsPage(BaseModel):
    """One page of the rows response. Only the fields the engine reads."""

    rows: list[dict[str, Any]] = []
    num_rows_total: int | None = None


class DictionaryRow(BaseModel):
    guc: str
    spa: str

    @model_validator(mode="before")
    @classmethod
    def _unnest_translation(cls, data: Any) -> Any:
        # Gaxys/wayuu_spa_dict nests both sides under "translation"
        if isinstance(data, dict) and isinstance(data.get("translation"), dict):
            return data["translation"]
        return data

    @field_validator("guc", "spa")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("empty field")
        return value


class AudioRow(BaseModel):
    audio_url: str
    transcription: str
    duration: float = 0.0
    priority: DownloadPriority = DownloadPriority.MEDIUM

    @model_validator(mode="before")
    @classmethod
    def _flatten_audio(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        audio = data.get("audio")
        if isinstance(audio, list):
            audio = audio[0] if audio else None
        url = None
        if isinstance(audio, dict):
            url = audio.get("src") or audio.get("path")
        elif isinstance(audio, str):
            url = audio
        flattened = dict(data)
        flattened["audio_url"] = url
        duration = data.get("duration", data.get("audio_duration"))
        flattened["duration"] = duration or 0.0
        return flattened

    @field_validator("audio_url", "transcription")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("empty field")
        return value


def parse_dictionary_row(item: dict, source: RemoteSourceConfig) -> DictionaryEntry | None:
    """Build a dictionary entry from one ``rows`` item, or None if malformed."""
    try:
        row = DictionaryRow.model_validate(item.get("row"))
    except ValidationError:
        return None
    return DictionaryEntry(source_word=row.guc, target_word=row.spa, dataset=source.dataset)


def parse_audio_row(item: dict, source: RemoteSourceConfig) -> AudioEntry | None:
    """Build an audio entry from one ``rows`` item, or None if malformed.

    The id comes from the server row index so reloads yield the same ids.
    """
    row_idx = item.get("row_idx")
    if not isinstance(row_idx, int):
        return None
    try:
        row = AudioRow.model_validate(item.get("row"))
    except ValidationError:
        return None
    return AudioEntry(
        id=f"audio_{row_idx:03d}",
        transcription=row.transcription,
        duration_seconds=row.duration,
        remote_url=row.audio_url,
        download_priority=row.priority,
        batch_number=row_idx // 100 + 1,
        source_id=source.id,
    )
