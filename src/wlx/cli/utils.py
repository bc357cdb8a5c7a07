"""Shared CLI helpers."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import typer

from wlx.core.config import WLXConfig, load_config
from wlx.core.engine import LexiconEngine
from wlx.core.events import EventCallback
from wlx.core.models import DatasetKind

T = TypeVar("T")


def config_from(ctx: typer.Context) -> WLXConfig:
    """Load config with the global CLI overrides stored on the context."""
    overrides = (ctx.obj or {}).get("overrides", {})
    return load_config(**overrides)


def run_with_engine(
    ctx: typer.Context,
    fn: Callable[[LexiconEngine], Awaitable[T]],
    on_event: EventCallback | None = None,
) -> T:
    """Run fn against a fresh engine inside its own event loop."""

    async def _main() -> T:
        async with LexiconEngine(config_from(ctx), on_event=on_event) as engine:
            return await fn(engine)

    return asyncio.run(_main())


def kinds_for(kind: DatasetKind | None) -> list[DatasetKind]:
    """The selected dataset kind, or both."""
    return [kind] if kind is not None else [DatasetKind.DICTIONARY, DatasetKind.AUDIO]


def format_bytes(size: int | None) -> str:
    if size is None:
        return "-"
    for unit in ("B", "KB", "MB"):
        if size < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"
