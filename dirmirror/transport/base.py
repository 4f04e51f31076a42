"""Capability interfaces a transport must provide."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from ..models import FileInfo


@runtime_checkable
class Lister(Protocol):
    """Provides remote directory listings."""

    def list(self, path: str) -> list[FileInfo]:
        """Read the immediate children of a remote directory.

        Each returned entry carries its own full remote path, so it can be
        passed back into ``list`` or into a downloader.

        Raises:
            RemoteListError: If the directory cannot be listed
        """
        ...


@runtime_checkable
class Downloader(Protocol):
    """Downloads single remote files (never directories)."""

    def download(self, remote_path: str, local_path: Path) -> None:
        """Fetch one remote file and write it to ``local_path``.

        The local file is created or overwritten. A partially written file
        must not be left behind on failure.

        Raises:
            RemoteDownloadError: If fetching or writing the file fails
        """
        ...


class Transport(Lister, Downloader, Protocol):
    """A Lister that is also a Downloader and owns a connection."""

    def close(self) -> None:
        """Release the underlying connection."""
        ...
