"""Progress events for dataset loads and audio downloads.

Loaders and the audio manager call an optional ``EventCallback`` as they
work. The CLI feeds these into rich progress bars.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Literal

from wlx.core.models import DatasetKind

Stage = Literal["load", "download"]


@dataclass
class EngineEvent:
    """A progress report for one dataset.

    Attributes:
        stage: ``"load"`` (cache, remote or sample acquisition) or
            ``"download"`` (one finished audio chunk).
        kind: Dataset the event is about.
        progress: Fraction done, 0.0 to 1.0.
        message: Human-readable status line.
        data: Stage payload. Loads report ``{"origin"}`` when finished;
            downloads report ``{"chunk", "succeeded", "failed"}``.
    """

    stage: Stage
    kind: DatasetKind
    progress: float
    message: str
    data: dict = field(default_factory=dict)

    @property
    def label(self) -> str:
        """Stage and dataset, e.g. ``load:dictionary``."""
        return f"{self.stage}:{self.kind.value}"

    @property
    def done(self) -> bool:
        return self.progress >= 1.0


EventCallback = Callable[[EngineEvent], None]
