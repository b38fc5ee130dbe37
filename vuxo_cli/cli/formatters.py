"""
Functions for formatting and displaying data in the console using Rich.
"""

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from vuxo_cli.exceptions import LibraryError
from vuxo_cli.models.config import AppConfig
from vuxo_cli.models.stats import DownloadStats
from vuxo_cli.models.track import LibraryTrack
from vuxo_cli.models.user import UserProfile
from vuxo_cli.utils.formatting import format_duration, format_size
from vuxo_cli.utils.pagination import Page


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ConfigurationError": [
            "• Check the variables in your environment or .env file.",
            "• Run `vuxo-cli show-config` to see the effective settings.",
        ],
        "InvalidQueryError": [
            "• Use letters or digits in the search keyword.",
        ],
        "PlaylistNotFoundError": [
            "• The site may have changed its page layout.",
            "• Set DEBUG_HTML=1 to save the last page for inspection.",
        ],
        "HttpStatusError": [
            "• The site might be temporarily unavailable.",
            "• Please try again in a few minutes.",
        ],
        "RequestTimeoutError": [
            "• The site did not answer in time.",
            "• Check your internet connection or raise REQUEST_TIMEOUT.",
        ],
        "FileTooLargeError": [
            "• The track is larger than MAX_FILE_SIZE and was not downloaded.",
        ],
        "ClientConnectorError": [
            "• A network connection issue occurred.",
            "• Check your internet connection.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )
    if isinstance(error, LibraryError):
        suggestions = [f"• Library error kind: {error.kind.value}"]

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_results_table(console: Console, title: str, page: Page, total: int):
    """Displays one page of search results with list-wide numbering."""
    table = Table(
        title=f"{escape(title)} [dim]({total} tracks, page "
        f"{page.number + 1}/{page.total_pages})[/dim]",
        box=box.SIMPLE_HEAVY,
    )
    table.add_column("#", style="dim", justify="right")
    table.add_column("Performer", style="cyan")
    table.add_column("Title", style="white")

    for i, track in enumerate(page.items, start=page.start + 1):
        table.add_row(str(i), escape(track.performer), escape(track.title))
    console.print(table)


def print_config(console: Console, config: AppConfig):
    """Displays the current configuration, hiding sensitive data."""
    content = ""
    for key, value in config.model_dump().items():
        if key == "bot_token":
            value = "[hidden]" if value else "[not set]"
        elif isinstance(value, dict):
            value = ", ".join(value) or "-"
        content += f"{key} = {escape(str(value))}\n"

    console.print(
        Panel(content.strip(), title="Configuration", border_style="cyan")
    )


def _track_table(title: str, tracks: list[LibraryTrack]) -> Table:
    table = Table(title=title, box=box.SIMPLE)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Track", style="cyan")
    table.add_column("Track ID", style="dim")
    for i, track in enumerate(tracks, 1):
        table.add_row(str(i), escape(track.name), track.track_id)
    return table


def print_profile(console: Console, profile: UserProfile):
    """Displays a user's favorites, history and playlists."""
    display = " ".join(p for p in (profile.first_name, profile.last_name) if p)
    if profile.username:
        display += f" (@{profile.username})"
    console.print(
        f"\n[bold]User {profile.user_id}[/bold] {escape(display)}".rstrip()
    )

    if profile.favorites:
        console.print(_track_table("Favorites", profile.favorites))
    else:
        console.print("[dim]No favorites yet.[/dim]")

    if profile.recently_played:
        console.print(_track_table("Recently Played", profile.recently_played))

    for playlist in profile.playlists:
        title = f"Playlist: {escape(playlist.name)}"
        if playlist.description:
            title += f" [dim]- {escape(playlist.description)}[/dim]"
        console.print(_track_table(title, playlist.tracks))


def print_tracks(console: Console, title: str, tracks: list[LibraryTrack]):
    if tracks:
        console.print(_track_table(title, tracks))
    else:
        console.print(f"[dim]{title}: nothing here yet.[/dim]")


def print_summary_panel(console: Console, stats: DownloadStats, duration_s: float):
    """Displays the final summary of a download session."""
    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=14)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row(
        "✓ Downloaded:", f"[bold green]{stats.tracks_downloaded}[/bold green]"
    )
    if stats.tracks_skipped_exists > 0:
        stats_table.add_row(
            "○ Skipped:", f"[yellow]{stats.tracks_skipped_exists} (exists)[/yellow]"
        )
    if stats.tracks_failed > 0:
        stats_table.add_row("✗ Failed:", f"[bold red]{stats.tracks_failed}[/bold red]")
    stats_table.add_row("Size:", format_size(stats.total_size_downloaded))
    stats_table.add_row("Duration:", format_duration(duration_s))

    for name, error in stats.failures:
        stats_table.add_row("", f"[red]{escape(name)}[/red] [dim]{escape(error)}[/dim]")

    border = "green" if stats.tracks_failed == 0 else "yellow"
    console.print(
        Panel(stats_table, title="[bold]Download Summary[/bold]", border_style=border)
    )
