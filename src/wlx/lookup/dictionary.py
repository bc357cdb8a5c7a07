"""Exact and fuzzy dictionary queries over one snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from wlx.core.models import DictionaryEntry, Direction, LookupResult
from wlx.lookup.matching import normalize_text, similarity

FUZZY_THRESHOLD = 0.6
MAX_FUZZY_RESULTS = 5


@dataclass(frozen=True)
class _IndexedEntry:
    entry: DictionaryEntry
    source_norm: str
    target_norm: str
    target_words: tuple[str, ...]


class DictionaryLookup:
    """Query helper bound to one dictionary snapshot.

    Normalized forms are computed once when the lookup is built. Build a
    new one for each published snapshot.
    """

    def __init__(self, entries: Sequence[DictionaryEntry], generation: int = 0) -> None:
        self.generation = generation
        self._index = [
            _IndexedEntry(
                entry=e,
                source_norm=normalize_text(e.source_word),
                target_norm=normalize_text(e.target_word),
                target_words=tuple(normalize_text(w) for w in e.target_word.lower().split(" ")),
            )
            for e in entries
        ]

    def __len__(self) -> int:
        return len(self._index)

    def find_exact(self, text: str, direction: Direction) -> LookupResult | None:
        query = normalize_text(text)
        if not query:
            return None

        if direction is Direction.WAYUU_TO_SPANISH:
            matches = [i for i in self._index if i.source_norm == query]
        else:
            matches = [
                i
                for i in self._index
                if query in i.target_norm or query in i.target_words
            ]
        if not matches:
            return None

        translations = [_translation_of(i.entry, direction) for i in matches]
        alternatives = translations[1:]
        return LookupResult(
            translated_text=translations[0],
            confidence=1.0,
            source_dataset=matches[0].entry.dataset,
            alternatives=alternatives,
            context_info=f"Found {len(matches)} possible translations" if alternatives else None,
            match_type="exact",
        )

    def find_fuzzy(self, text: str, direction: Direction) -> LookupResult | None:
        query = normalize_text(text)
        if not query:
            return None

        scored: list[tuple[float, _IndexedEntry]] = []
        for item in self._index:
            if direction is Direction.WAYUU_TO_SPANISH:
                score = similarity(query, item.source_norm)
            else:
                score = similarity(query, item.target_norm)
                for word in item.target_words:
                    score = max(score, similarity(query, word))
            if score > FUZZY_THRESHOLD:
                scored.append((score, item))
        if not scored:
            return None

        # sorted() is stable, so ties keep dataset order
        top = sorted(scored, key=lambda pair: pair[0], reverse=True)[:MAX_FUZZY_RESULTS]
        best_score, best = top[0]
        return LookupResult(
            translated_text=_translation_of(best.entry, direction),
            confidence=best_score,
            source_dataset=best.entry.dataset,
            alternatives=[_translation_of(i.entry, direction) for _, i in top[1:]],
            context_info=f"Fuzzy match with {int(best_score * 100 + 0.5)}% similarity",
            match_type="fuzzy",
        )

    def lookup(self, text: str, direction: Direction) -> LookupResult | None:
        """Exact match first, fuzzy otherwise."""
        return self.find_exact(text, direction) or self.find_fuzzy(text, direction)

    def stats(self) -> dict:
        total = len(self._index)
        unique_wayuu = {i.source_norm for i in self._index}
        unique_spanish = {w for i in self._index for w in i.target_words if w}
        spanish_words = sum(len(i.entry.target_word.split()) for i in self._index)
        return {
            "total_entries": total,
            "unique_wayuu_words": len(unique_wayuu),
            "unique_spanish_words": len(unique_spanish),
            "average_spanish_words_per_entry": round(spanish_words / total, 2) if total else 0.0,
        }


def _translation_of(entry: DictionaryEntry, direction: Direction) -> str:
    if direction is Direction.WAYUU_TO_SPANISH:
        return entry.target_word
    return entry.source_word
