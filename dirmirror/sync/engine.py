"""Sync driver: applies agendas and repeats passes on a fixed interval."""

import logging
import time
from pathlib import Path
from typing import Callable, Optional, Union

from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

from ..exceptions import MirrorError, RemoteDownloadError
from ..models import FileInfo
from ..output import OutputFormatter
from ..transport.base import Downloader, Lister
from ..utils import format_size
from .agenda import Agenda, LocalLister, compute_agenda
from .pair import MirrorPair
from .scanner import list_local, remove_local

logger = logging.getLogger(__name__)


class SyncEngine:
    """Keeps a local directory up to date with a remote directory.

    One pass computes an agenda, removes every stale local path and then
    downloads every missing remote entry, all strictly in order. The first
    error aborts the pass.
    """

    def __init__(
        self,
        lister: Lister,
        downloader: Downloader,
        output: Optional[OutputFormatter] = None,
        local_lister: LocalLister = list_local,
        remover: Callable[[Path], None] = remove_local,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize sync engine.

        Args:
            lister: Remote directory lister
            downloader: Remote file downloader
            output: Output formatter for displaying progress/status
            local_lister: Primitive listing a local directory
            remover: Primitive recursively removing a local path
            sleep: Sleep function used between passes
            clock: Monotonic clock used to schedule passes
        """
        self.lister = lister
        self.downloader = downloader
        self.output = output or OutputFormatter()
        self.local_lister = local_lister
        self.remover = remover
        self._sleep = sleep
        self._clock = clock

    def compute_agenda(self, pair: MirrorPair) -> Agenda:
        """Compute the agenda for a mirror pair without applying it."""
        return compute_agenda(pair.local, pair.remote, self.lister, self.local_lister)

    def sync_once(self, pair: MirrorPair, dry_run: bool = False) -> dict:
        """Perform one synchronization pass.

        Args:
            pair: Mirror pair to synchronize
            dry_run: If True, only show the agenda without applying it

        Returns:
            Dictionary with sync statistics. For a dry run the counts are
            the planned top-level deletions and downloads.

        Raises:
            MirrorError: The first error of the pass; nothing after it is
                applied
        """
        start_time = time.time()
        agenda = self.compute_agenda(pair)
        logger.debug(
            f"Agenda computed in {time.time() - start_time:.2f}s: "
            f"{len(agenda.to_delete)} deletion(s), "
            f"{len(agenda.to_download)} download(s)"
        )

        self._display_sync_plan(agenda, dry_run)

        stats = self._create_empty_stats()
        if dry_run:
            stats["deletes_local"] = len(agenda.to_delete)
            stats["downloads"] = len(agenda.to_download)
            stats["bytes"] = agenda.download_bytes
            return stats

        if agenda.is_empty:
            return stats

        # All deletions are applied before the first download.
        for path in agenda.to_delete:
            logger.info(f"Removing local path: {path}")
            self.remover(path)
            stats["deletes_local"] += 1

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total}"),
            transient=True,
            disable=self.output.quiet or self.output.json_output,
        ) as progress:
            task = progress.add_task("Downloading...", total=len(agenda.to_download))
            for item in agenda.to_download:
                progress.update(task, description=f"Downloading {item.remote.name}")
                self.download(item.remote, item.destination, stats)
                progress.advance(task)

        if not self.output.quiet:
            self._display_summary(stats)

        return stats

    def download(
        self,
        remote: FileInfo,
        destination: Union[str, Path],
        stats: Optional[dict] = None,
    ) -> None:
        """Recursively copy a remote entry to a local path.

        Files are handed to the downloader. Directories are created locally
        and every child is downloaded without further comparison, since
        nothing can exist below a path that was missing when the agenda was
        computed.

        Raises:
            RemoteListError: If a remote directory cannot be listed
            RemoteDownloadError: If a file or directory cannot be created
        """
        destination = Path(destination)
        if stats is None:
            stats = self._create_empty_stats()

        logger.info(f"Downloading: {remote} -> {destination}")

        if not remote.is_dir:
            self.downloader.download(remote.path, destination)
            stats["downloads"] += 1
            stats["bytes"] += remote.size
            return

        try:
            destination.mkdir()
        except FileExistsError:
            if not destination.is_dir():
                raise RemoteDownloadError(
                    remote.path, f"{destination} exists and is not a directory"
                ) from None
        except OSError as e:
            raise RemoteDownloadError(
                remote.path, f"cannot create {destination}: {e}"
            ) from e
        else:
            stats["directories"] += 1

        for entry in self.lister.list(remote.path):
            self.download(entry, destination / entry.name, stats)

    def run_forever(self, pair: MirrorPair, max_passes: Optional[int] = None) -> int:
        """Run synchronization passes until one fails.

        The interval is measured from the start of a pass. A pass that takes
        longer than the interval is followed immediately by the next one.

        Args:
            pair: Mirror pair to synchronize
            max_passes: Stop after this many successful passes (None runs
                until a failure)

        Returns:
            Number of completed passes (only when max_passes is set)

        Raises:
            MirrorError: The error of the first failed pass; the loop does
                not retry
        """
        passes = 0
        while max_passes is None or passes < max_passes:
            next_start = self._clock() + pair.interval
            try:
                self.sync_once(pair)
            except MirrorError as e:
                logger.debug(f"Pass {passes + 1} failed: {e}")
                raise
            passes += 1
            logger.debug(f"Pass {passes} complete")

            if max_passes is not None and passes >= max_passes:
                break

            delay = next_start - self._clock()
            if delay > 0:
                logger.debug(f"Sleeping {delay:.1f}s until next pass")
                self._sleep(delay)
        return passes

    def _create_empty_stats(self) -> dict:
        """Create an empty statistics dictionary."""
        return {
            "deletes_local": 0,
            "downloads": 0,
            "directories": 0,
            "bytes": 0,
        }

    def _display_sync_plan(self, agenda: Agenda, dry_run: bool) -> None:
        """Display the agenda to the user.

        Args:
            agenda: Agenda of this pass
            dry_run: Whether this is a dry run
        """
        if self.output.quiet:
            return

        if agenda.is_empty:
            self.output.info("Everything is in sync.")
            return

        self.output.info("Sync plan:")
        if agenda.to_delete:
            self.output.info(f"  ✗ Delete local: {len(agenda.to_delete)} path(s)")
        if agenda.to_download:
            self.output.info(
                f"  ↓ Download: {len(agenda.to_download)} item(s), "
                f"{format_size(agenda.download_bytes)} in top-level files"
            )

        if dry_run:
            for path in agenda.to_delete:
                self.output.info(f"  - {path}")
            for item in agenda.to_download:
                self.output.info(f"  + {item.remote} -> {item.destination}")
            self.output.info("Dry run: no changes were made")

    def _display_summary(self, stats: dict) -> None:
        """Display pass summary.

        Args:
            stats: Statistics dictionary
        """
        self.output.success("Sync complete!")
        if stats["deletes_local"] > 0:
            self.output.info(f"  Deleted locally: {stats['deletes_local']}")
        if stats["downloads"] > 0:
            self.output.info(
                f"  Downloaded: {stats['downloads']} file(s), "
                f"{format_size(stats['bytes'])}"
            )
        if stats["directories"] > 0:
            self.output.info(f"  Created directories: {stats['directories']}")
