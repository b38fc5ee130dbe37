"""
Downloads a batch of tracks to a directory through the download queue.
"""

import asyncio
import logging
from pathlib import Path

import aiohttp
from rich.markup import escape
from rich.progress import Progress, TaskID

from vuxo_cli.api.client import VuxoClient
from vuxo_cli.exceptions import VuxoCliError
from vuxo_cli.media.downloader import save_stream
from vuxo_cli.models.stats import DownloadStats
from vuxo_cli.models.track import Track
from vuxo_cli.utils.path import create_dir, track_filename

from .download_queue import DownloadQueue

log = logging.getLogger(__name__)


class DownloadManager:
    """Orchestrates saving several tracks concurrently, bounded by the queue."""

    def __init__(
        self,
        client: VuxoClient,
        queue: DownloadQueue,
        output_dir: Path,
        progress: Progress | None = None,
    ):
        self.client = client
        self.queue = queue
        self.output_dir = output_dir
        self.progress = progress
        self.stats = DownloadStats()

    async def download_tracks(self, tracks: list[Track]) -> DownloadStats:
        """Downloads every track; one failure never stops the others."""
        create_dir(self.output_dir)
        # One task per destination file.
        by_filename: dict[str, Track] = {}
        for track in tracks:
            filename = track_filename(track)
            if filename in by_filename:
                log.info(f"[dim]Skipping duplicate '{escape(filename)}'[/dim]")
                self.stats.tracks_skipped_exists += 1
                continue
            by_filename[filename] = track
        await asyncio.gather(*(self._download_one(t) for t in by_filename.values()))
        return self.stats

    async def _download_one(self, track: Track) -> None:
        destination = self.output_dir / track_filename(track)
        if destination.exists():
            log.info(f"[dim]Skipping '{escape(destination.name)}' (already exists)[/dim]")
            self.stats.tracks_skipped_exists += 1
            return

        task_id: TaskID | None = None
        if self.progress:
            task_id = self.progress.add_task(
                escape(track.name), total=None, start=False
            )

        async def _fetch() -> int:
            stream = await self.client.open_audio_stream(track.audio_url)
            if self.progress and task_id is not None:
                self.progress.update(task_id, total=stream.content_length)
                self.progress.start_task(task_id)
            return await save_stream(
                stream,
                destination,
                on_chunk=self._advance(task_id),
            )

        try:
            size = await self.queue.run(_fetch)
        except (VuxoCliError, aiohttp.ClientError, OSError) as e:
            log.error(f"[red]✗ {escape(track.name)}: {escape(str(e))}[/red]")
            self.stats.record_failure(track.name, e)
            if self.progress and task_id is not None:
                self.progress.remove_task(task_id)
            return

        self.stats.tracks_downloaded += 1
        self.stats.total_size_downloaded += size
        log.info(f"[green]✓ {escape(track.name)}[/green]")

    def _advance(self, task_id: TaskID | None):
        if not self.progress or task_id is None:
            return None
        progress = self.progress

        def on_chunk(size: int) -> None:
            progress.advance(task_id, size)

        return on_chunk
