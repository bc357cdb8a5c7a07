"""wlx sources commands: inspect and toggle remote dataset sources."""

from __future__ import annotations

import json
from typing import Annotated

import typer
from rich.table import Table

from wlx.cli.utils import config_from, run_with_engine
from wlx.core.models import DatasetKind
from wlx.sources.registry import SourceRegistry
from wlx.utils.console import console

sources_app = typer.Typer(help="Inspect remote dataset sources.", no_args_is_help=True)


@sources_app.command("list")
def list_sources(ctx: typer.Context) -> None:
    """List configured sources by priority."""
    registry = SourceRegistry.from_settings(config_from(ctx).sources)
    table = Table(title="Dataset Sources")
    table.add_column("#", justify="right")
    table.add_column("ID", style="bold cyan")
    table.add_column("Dataset")
    table.add_column("Kind")
    table.add_column("Active", justify="center")
    for s in registry.list_all():
        table.add_row(
            str(s.priority), s.id, s.dataset, s.kind.value, "[green]yes[/green]" if s.is_active else "-"
        )
    console.print(table)


@sources_app.command("toggle")
def toggle(
    ctx: typer.Context,
    source_id: Annotated[str, typer.Argument(help="Source id.")],
    reload: Annotated[
        bool,
        typer.Option("--reload", help="Reload the affected datasets from the new source set."),
    ] = False,
) -> None:
    """Toggle a source for this run and optionally reload with it.

    Persistent changes belong in the [[sources]] section of wlx.toml.
    """

    async def _toggle(engine):
        result = engine.sources.toggle(source_id)
        reloads = []
        if result.success and reload:
            for kind in (DatasetKind.DICTIONARY, DatasetKind.AUDIO):
                if result.source.kind.serves(kind):
                    snapshot = await engine.loader(kind).refresh_now()
                    reloads.append((kind, snapshot))
        return result, reloads

    result, reloads = run_with_engine(ctx, _toggle)
    if not result.success:
        console.print(f"[red]{result.message}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]{result.message}[/green]")
    for kind, snapshot in reloads:
        if snapshot is None:
            console.print(f"[red]Could not refresh {kind.value} from the remote sources[/red]")
        else:
            console.print(f"Refreshed {kind.value}: {len(snapshot)} entries")


@sources_app.command("preview")
def preview(
    ctx: typer.Context,
    source_id: Annotated[str, typer.Argument(help="Source id.")],
    length: Annotated[int, typer.Option("--length", "-n", help="Rows to fetch.")] = 5,
) -> None:
    """Fetch and print the first rows of a source."""
    result = run_with_engine(ctx, lambda engine: engine.preview_source(source_id, length))
    if not result.success:
        console.print(f"[red]{result.message}[/red]")
        raise typer.Exit(1)
    console.print(f"[bold]{result.message}[/bold] (total {result.data['num_rows_total']})")
    for item in result.data["rows"]:
        console.print_json(json.dumps(item.get("row", item), ensure_ascii=False))
