"""wlx CLI entry point."""

from pathlib import Path
from typing import Annotated, Optional

import typer
from dotenv import load_dotenv

from wlx import __version__
from wlx.cli.audio import audio_app
from wlx.cli.cache import cache_app
from wlx.cli.lookup import lookup
from wlx.cli.sources import sources_app
from wlx.cli.sync import sync
from wlx.utils.console import setup_logging

app = typer.Typer(
    name="wlx",
    help="Wayuu-Spanish lexicon: dictionary lookup and audio corpus management.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"wlx {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    cache_dir: Annotated[
        Optional[Path],
        typer.Option("--cache-dir", help="Dataset cache directory (default ./data)."),
    ] = None,
    audio_dir: Annotated[
        Optional[Path],
        typer.Option("--audio-dir", help="Directory for downloaded audio files."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging."),
    ] = False,
) -> None:
    """Wayuu-Spanish lexicon: dictionary lookup and audio corpus management."""
    # Shell exports take precedence over .env
    load_dotenv(override=False)
    setup_logging(verbose)
    ctx.obj = {
        "overrides": {
            "cache.dir": str(cache_dir) if cache_dir else None,
            "audio.download_dir": str(audio_dir) if audio_dir else None,
        }
    }


app.command("lookup")(lookup)
app.command("sync")(sync)
app.add_typer(cache_app, name="cache")
app.add_typer(audio_app, name="audio")
app.add_typer(sources_app, name="sources")
