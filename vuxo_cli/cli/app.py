"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TransferSpeedColumn,
)

from vuxo_cli import __version__
from vuxo_cli.api.client import VuxoClient
from vuxo_cli.core.download_manager import DownloadManager
from vuxo_cli.core.download_queue import DownloadQueue
from vuxo_cli.exceptions import VuxoCliError
from vuxo_cli.models.config import AppConfig
from vuxo_cli.models.track import Track
from vuxo_cli.storage.config_manager import ConfigManager
from vuxo_cli.storage.library import UserLibrary
from vuxo_cli.utils.pagination import paginate

from .formatters import (
    format_error_with_suggestions,
    print_config,
    print_profile,
    print_results_table,
    print_summary_panel,
    print_tracks,
)

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("vuxo_cli")

app = typer.Typer(
    name="vuxo-cli",
    help=(
        "Search and download music from vuxo7.com, or run the Telegram bot. Use"
        " 'vuxo-cli <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)
library_app = typer.Typer(help="Manage a user's favorites, history and playlists.")
app.add_typer(library_app, name="library")

_state: dict = {"env_file": None}


def load_config(cli_options: dict | None = None) -> AppConfig:
    """Loads the configuration, exiting with a formatted error on failure."""
    try:
        return ConfigManager(dotenv_path=_state["env_file"]).load_config(cli_options)
    except VuxoCliError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e


def _run(coro):
    """Runs a coroutine, rendering application errors as a panel."""
    try:
        return asyncio.run(coro)
    except VuxoCliError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    env_file: Path | None = typer.Option(
        None, "--env-file", help="Load settings from this .env file."
    ),
):
    """vuxo-cli"""
    if version:
        console.print(f"[bold]vuxo-cli[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    _state["env_file"] = env_file

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("vuxo_cli").setLevel(log_level)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


async def _fetch(config: AppConfig, keyword: str | None) -> tuple[str, list[Track]]:
    async with VuxoClient(config) as client:
        if keyword is None:
            return "Top hits", await client.get_top_hits()
        return keyword, await client.search_tracks(keyword)


@app.command()
def top(
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page to show."),
):
    """Show the site's current top hits."""
    config = load_config()
    title, tracks = _run(_fetch(config, None))
    print_results_table(console, title, paginate(tracks, page - 1), len(tracks))


@app.command()
def search(
    keyword: str = typer.Argument(..., help="Song or artist to search for."),
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page to show."),
):
    """Search for tracks by keyword."""
    config = load_config()
    title, tracks = _run(_fetch(config, keyword))
    if not tracks:
        console.print("[yellow]Nothing found.[/yellow]")
        raise typer.Exit()
    print_results_table(console, title, paginate(tracks, page - 1), len(tracks))


def _select_tracks(
    tracks: list[Track], picks: list[int], whole_page: bool, page: int
) -> list[Track]:
    if whole_page:
        return list(paginate(tracks, page - 1).items)
    selected = []
    for number in dict.fromkeys(picks):
        if not 1 <= number <= len(tracks):
            console.print(
                f"[yellow]⚠️  No track #{number} (results have {len(tracks)}).[/yellow]"
            )
            continue
        selected.append(tracks[number - 1])
    return selected


@app.command(name="download")
def download_command(
    keyword: str | None = typer.Argument(
        None, help="Search keyword. Omit and pass --top for top hits."
    ),
    use_top: bool = typer.Option(False, "--top", help="Pick from the top hits."),
    picks: list[int] = typer.Option(  # noqa: B008
        [],
        "--pick",
        "-n",
        help="Track number as shown by `search`. Repeat for several tracks.",
    ),
    whole_page: bool = typer.Option(
        False, "--all", help="Download every track on the selected page."
    ),
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page used by --all."),
    output: Path = typer.Option(  # noqa: B008
        Path("."), "--output", "-o", help="Directory to save tracks into."
    ),
    workers: int | None = typer.Option(
        None,
        "--workers",
        "-w",
        help="Number of simultaneous downloads (overrides MAX_PARALLEL_DOWNLOADS).",
    ),
):
    """Download tracks from a search or the top hits."""
    if (use_top and keyword is not None) or (not use_top and keyword is None):
        console.print("[red]✗ Give either a keyword or --top.[/red]")
        raise typer.Exit(code=1)
    if not picks and not whole_page:
        console.print("[red]✗ Choose tracks with --pick N or --all.[/red]")
        raise typer.Exit(code=1)

    cli_options = {"max_parallel_downloads": workers} if workers else None
    config = load_config(cli_options)

    async def _download_async():
        async with VuxoClient(config) as client:
            if use_top:
                tracks = await client.get_top_hits()
            else:
                tracks = await client.search_tracks(keyword)

            selected = _select_tracks(tracks, picks, whole_page, page)
            if not selected:
                console.print("[yellow]Nothing to download.[/yellow]")
                return None

            console.print(
                f"[bold cyan]🎵 Downloading {len(selected)} track(s) to "
                f"'{output}'...[/bold cyan]"
            )
            progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(bar_width=20),
                DownloadColumn(),
                TransferSpeedColumn(),
                console=console,
                transient=True,
            )
            queue = DownloadQueue(config.max_parallel_downloads)
            start_time = time.monotonic()
            with progress:
                manager = DownloadManager(client, queue, output, progress)
                stats = await manager.download_tracks(selected)
            return stats, time.monotonic() - start_time

    result = _run(_download_async())
    if result is None:
        return
    stats, duration = result
    print_summary_panel(console, stats, duration)
    if stats.tracks_failed:
        raise typer.Exit(code=1)


@app.command()
def bot():
    """Run the Telegram bot (requires BOT_TOKEN)."""
    from vuxo_cli.bot.app import run_bot

    config = load_config()
    try:
        _run(run_bot(config))
    except KeyboardInterrupt:
        console.print("\n[yellow]Bot stopped.[/yellow]")


@app.command(name="show-config")
def show_config():
    """Display the effective configuration."""
    print_config(console, load_config())


# Library commands


def _library() -> UserLibrary:
    return UserLibrary(load_config().database_path)


def _track_from_options(performer: str, title: str, url: str) -> dict:
    return {"performer": performer, "title": title, "audio_url": url}


@library_app.command("show")
def library_show(user_id: int = typer.Argument(..., help="Numeric user id.")):
    """Show everything stored for a user."""
    profile = _run(_library().get_user(user_id))
    if profile is None:
        console.print(f"[yellow]No user {user_id} in the library.[/yellow]")
        raise typer.Exit(code=1)
    print_profile(console, profile)


@library_app.command("recent")
def library_recent(user_id: int = typer.Argument(..., help="Numeric user id.")):
    """Show a user's recently played tracks, newest first."""
    profile = _run(_library().get_user(user_id))
    print_tracks(console, "Recently Played", profile.recently_played if profile else [])


@library_app.command("fav-add")
def library_fav_add(
    user_id: int = typer.Argument(..., help="Numeric user id."),
    performer: str = typer.Option(..., "--performer"),
    title: str = typer.Option(..., "--title"),
    url: str = typer.Option("", "--url", help="Audio URL."),
):
    """Add a track to a user's favorites."""
    added = _run(
        _library().add_to_favorites(user_id, _track_from_options(performer, title, url))
    )
    if added:
        console.print("[green]✓ Added to favorites.[/green]")
    else:
        console.print("[yellow]Already in favorites.[/yellow]")


@library_app.command("fav-remove")
def library_fav_remove(
    user_id: int = typer.Argument(..., help="Numeric user id."),
    track_id: str = typer.Argument(..., help="Track id as shown by `library show`."),
):
    """Remove a track from a user's favorites."""
    if _run(_library().remove_from_favorites(user_id, track_id)):
        console.print("[green]✓ Removed from favorites.[/green]")
    else:
        console.print("[yellow]That track is not in the favorites.[/yellow]")


@library_app.command("playlist-create")
def library_playlist_create(
    user_id: int = typer.Argument(..., help="Numeric user id."),
    name: str = typer.Argument(..., help="Playlist name (max 64 characters)."),
    description: str = typer.Option("", "--description", "-d"),
):
    """Create a new playlist."""
    _run(_library().create_playlist(user_id, name, description))
    console.print(f"[green]✓ Playlist '{name}' created.[/green]")


@library_app.command("playlist-add")
def library_playlist_add(
    user_id: int = typer.Argument(..., help="Numeric user id."),
    name: str = typer.Argument(..., help="Playlist name."),
    performer: str = typer.Option(..., "--performer"),
    title: str = typer.Option(..., "--title"),
    url: str = typer.Option("", "--url", help="Audio URL."),
):
    """Add a track to a playlist."""
    added = _run(
        _library().add_to_playlist(
            user_id, name, _track_from_options(performer, title, url)
        )
    )
    if added:
        console.print(f"[green]✓ Added to '{name}'.[/green]")
    else:
        console.print(f"[yellow]Already in '{name}'.[/yellow]")


@library_app.command("playlist-delete")
def library_playlist_delete(
    user_id: int = typer.Argument(..., help="Numeric user id."),
    name: str = typer.Argument(..., help="Playlist name."),
):
    """Delete a playlist."""
    if _run(_library().delete_playlist(user_id, name)):
        console.print(f"[green]✓ Playlist '{name}' deleted.[/green]")
    else:
        console.print(f"[yellow]No playlist named '{name}'.[/yellow]")
