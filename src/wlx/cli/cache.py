"""wlx cache commands: inspect and clear the on-disk dataset cache."""

from __future__ import annotations

from typing import Annotated, Optional

import typer
from rich.table import Table

from wlx.cli.utils import format_bytes, kinds_for, run_with_engine
from wlx.core.models import DatasetKind
from wlx.utils.console import console

cache_app = typer.Typer(help="Inspect or clear the dataset cache.", no_args_is_help=True)

KindOption = Annotated[
    Optional[DatasetKind],
    typer.Option("--kind", "-k", help="Only this dataset (default: both)."),
]


@cache_app.command("info")
def info(ctx: typer.Context, kind: KindOption = None) -> None:
    """Show cache metadata for each dataset."""
    kinds = kinds_for(kind)

    async def _info(engine):
        return [(k, await engine.cache_info(k)) for k in kinds]

    table = Table(title="Dataset Cache")
    table.add_column("Dataset", style="bold")
    table.add_column("Cached")
    table.add_column("Entries", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Last updated")
    table.add_column("Source")

    for k, cache in run_with_engine(ctx, _info):
        if not cache.exists:
            table.add_row(k.value, "[yellow]no[/yellow]", "-", "-", "-", "-")
            continue
        meta = cache.metadata
        table.add_row(
            k.value,
            "[green]yes[/green]",
            str(meta.total_entries),
            format_bytes(cache.size_bytes),
            meta.last_updated.strftime("%Y-%m-%d %H:%M UTC"),
            meta.source_id or "-",
        )
    console.print(table)


@cache_app.command("clear")
def clear(ctx: typer.Context, kind: KindOption = None) -> None:
    """Delete cached datasets. Downloaded audio files are kept."""
    kinds = kinds_for(kind)

    async def _clear(engine):
        return [(k, await engine.clear_cache(k)) for k in kinds]

    for k, removed in run_with_engine(ctx, _clear):
        if removed:
            console.print(f"[green]Cleared[/green] {k.value} cache")
        else:
            console.print(f"[dim]No {k.value} cache to clear[/dim]")
