"""wlx lookup command: translate a word or phrase with the dictionary."""

from __future__ import annotations

from typing import Annotated

import typer

from wlx.cli.utils import run_with_engine
from wlx.core.engine import LexiconEngine
from wlx.core.models import Direction, LookupResult
from wlx.utils.console import console


def lookup(
    ctx: typer.Context,
    text: Annotated[str, typer.Argument(help="Word or phrase to look up.")],
    direction: Annotated[
        Direction,
        typer.Option("--direction", "-d", help="Lookup direction."),
    ] = Direction.WAYUU_TO_SPANISH,
    exact_only: Annotated[
        bool,
        typer.Option("--exact-only", help="Skip fuzzy matching."),
    ] = False,
) -> None:
    """Look up a Wayuu or Spanish word in the dictionary."""

    async def _lookup(engine: LexiconEngine) -> LookupResult | None:
        if exact_only:
            return await engine.find_exact(text, direction)
        return await engine.lookup(text, direction)

    result = run_with_engine(ctx, _lookup)
    if result is None:
        console.print(f"[yellow]No translation found for[/yellow] {text!r}")
        raise typer.Exit(1)

    console.print(f"[bold green]{result.translated_text}[/bold green]")
    console.print(
        f"[dim]{result.match_type} match, confidence {result.confidence:.2f}"
        + (f", {result.source_dataset}" if result.source_dataset else "")
        + "[/dim]"
    )
    if result.context_info:
        console.print(f"[dim]{result.context_info}[/dim]")
    if result.alternatives:
        console.print("[bold]Alternatives:[/bold] " + ", ".join(result.alternatives))
