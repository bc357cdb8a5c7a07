"""wlx audio commands: browse, search and download the audio corpus."""

from __future__ import annotations

from typing import Annotated, Optional

import typer
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from wlx.cli.utils import format_bytes, run_with_engine
from wlx.core.events import EngineEvent
from wlx.core.models import AudioEntry
from wlx.utils.console import console

audio_app = typer.Typer(help="Browse, search and download audio recordings.", no_args_is_help=True)


def _audio_table(title: str, entries: list[AudioEntry]) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="bold cyan")
    table.add_column("Transcription", max_width=60)
    table.add_column("Duration", justify="right")
    table.add_column("Local", justify="center")
    for e in entries:
        table.add_row(
            e.id,
            e.transcription,
            f"{e.duration_seconds:.1f}s" if e.duration_seconds else "-",
            "yes" if e.is_downloaded else "-",
        )
    return table


@audio_app.command("list")
def list_entries(
    ctx: typer.Context,
    page: Annotated[int, typer.Option("--page", "-p", help="Page number (from 1).")] = 1,
    page_size: Annotated[int, typer.Option("--page-size", "-n", help="Entries per page (max 100).")] = 20,
) -> None:
    """List audio entries, one page at a time."""

    async def _list(engine):
        result = await engine.audio.list(page, page_size)
        enriched = engine.audio.enrich_with_durations(result.entries)
        return result, [e.entry for e in enriched]

    result, entries = run_with_engine(ctx, _list)
    console.print(_audio_table(f"Audio (page {result.page}/{max(result.total_pages, 1)})", entries))
    console.print(f"[dim]{result.total} entries total[/dim]")


@audio_app.command("search")
def search(
    ctx: typer.Context,
    query: Annotated[str, typer.Argument(help="Text to find in transcriptions.")],
    limit: Annotated[int, typer.Option("--limit", "-n", help="Maximum results (max 50).")] = 10,
) -> None:
    """Search audio transcriptions (case-insensitive substring)."""
    result = run_with_engine(ctx, lambda engine: engine.audio.search_by_transcription(query, limit))
    if not result.entries:
        console.print(f"[yellow]No transcriptions contain[/yellow] {query!r}")
        raise typer.Exit(1)
    console.print(_audio_table(f"{result.total_matches} matches for {query!r}", result.entries))


@audio_app.command("download")
def download(
    ctx: typer.Context,
    ids: Annotated[
        Optional[list[str]],
        typer.Argument(help="Audio ids to download (e.g. audio_000)."),
    ] = None,
    all_: Annotated[
        bool,
        typer.Option("--all", help="Download every pending entry, high priority first."),
    ] = False,
    concurrency: Annotated[
        Optional[int],
        typer.Option("--concurrency", "-c", help="Concurrent downloads per chunk."),
    ] = None,
) -> None:
    """Download audio files to the local audio directory."""
    if not ids and not all_:
        console.print("[red]Pass audio ids or --all.[/red]")
        raise typer.Exit(1)

    with Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Downloading audio", total=1.0)

        def on_event(event: EngineEvent) -> None:
            if event.stage == "download":
                progress.update(task, completed=event.progress, description=event.message)

        async def _download(engine):
            if all_:
                return await engine.audio.download_all(concurrency)
            return await engine.audio.download_batch(ids, concurrency)

        result = run_with_engine(ctx, _download, on_event=on_event)

    for item in result.results:
        if not item.success:
            console.print(f"[red]{item.id}:[/red] {item.error}")
    color = "green" if result.success else "yellow"
    console.print(f"[{color}]{result.message}[/{color}]")
    if not result.success:
        raise typer.Exit(1)


@audio_app.command("stats")
def stats(ctx: typer.Context) -> None:
    """Show corpus and download statistics."""

    async def _stats(engine):
        return await engine.audio.audio_stats(), await engine.audio.download_stats()

    corpus, downloads = run_with_engine(ctx, _stats)
    console.print(f"[bold]Entries:[/bold] {corpus['total_entries']:,}")
    console.print(f"[bold]Total duration:[/bold] {corpus['total_duration_minutes']:.1f} min")
    console.print(f"[bold]Average duration:[/bold] {corpus['average_duration_seconds']:.1f}s")
    console.print(f"[bold]Unique Wayuu words:[/bold] {corpus['unique_wayuu_words']:,}")
    console.print(
        f"[bold]Downloaded:[/bold] {downloads.downloaded_files}/{downloads.total_files} "
        f"({downloads.progress_percent:.1f}%, {format_bytes(downloads.total_size_bytes)})"
    )


@audio_app.command("clear")
def clear(
    ctx: typer.Context,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation.")] = False,
) -> None:
    """Delete every downloaded audio file."""
    if not yes:
        typer.confirm("Delete all downloaded audio files?", abort=True)
    result = run_with_engine(ctx, lambda engine: engine.audio.clear_downloaded())
    console.print(f"[green]{result.message}[/green]")


@audio_app.command("durations")
def durations(
    ctx: typer.Context,
    recalculate: Annotated[
        bool,
        typer.Option("--recalculate", help="Re-measure every file in the audio directory."),
    ] = False,
) -> None:
    """Measure downloaded audio durations with ffprobe."""

    async def _durations(engine):
        if recalculate:
            return await engine.audio.recalculate_durations()
        await engine.audio.update_durations()
        cache = engine.audio.durations
        return {
            "calculated": cache.total_calculated,
            "failed": len(cache.durations) - cache.total_calculated,
            "total_duration_seconds": cache.total_duration_seconds,
        }

    summary = run_with_engine(ctx, _durations)
    console.print(
        f"[bold]Calculated:[/bold] {summary['calculated']}  "
        f"[bold]Without duration:[/bold] {summary['failed']}  "
        f"[bold]Total:[/bold] {summary['total_duration_seconds']:.1f}s"
    )
