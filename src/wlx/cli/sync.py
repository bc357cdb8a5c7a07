"""wlx sync command: reload datasets from cache or remote sources."""

from __future__ import annotations

from typing import Annotated, Optional

import typer
from rich.table import Table

from wlx.cli.utils import kinds_for, run_with_engine
from wlx.core.engine import LexiconEngine
from wlx.core.models import DatasetKind, ReloadResult
from wlx.utils.console import console


def sync(
    ctx: typer.Context,
    clear_cache: Annotated[
        bool,
        typer.Option("--clear-cache", help="Delete the cache first and fetch from the remote sources."),
    ] = False,
    kind: Annotated[
        Optional[DatasetKind],
        typer.Option("--kind", "-k", help="Only reload this dataset."),
    ] = None,
) -> None:
    """Reload the dictionary and audio datasets."""
    kinds = kinds_for(kind)

    async def _sync(engine: LexiconEngine) -> list[tuple[DatasetKind, ReloadResult, dict]]:
        results = []
        for k in kinds:
            result = await engine.reload(k, clear_cache=clear_cache)
            results.append((k, result, engine.loader(k).info()))
        return results

    results = run_with_engine(ctx, _sync)

    table = Table(title="Dataset Sync")
    table.add_column("Dataset", style="bold")
    table.add_column("Status")
    table.add_column("Entries", justify="right")
    table.add_column("Origin")
    for k, result, info in results:
        status = "[green]ok[/green]" if result.success else "[red]failed[/red]"
        entries = str(result.total_entries) if result.total_entries is not None else "-"
        table.add_row(k.value, status, entries, info.get("origin") or "-")
    console.print(table)

    if not all(result.success for _, result, _ in results):
        for _, result, _ in results:
            if not result.success:
                console.print(f"[red]{result.message}[/red]")
        raise typer.Exit(1)
