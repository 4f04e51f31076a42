"""Local filesystem primitives used by the diff engine and the driver."""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from ..exceptions import LocalDeleteError, LocalListError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalEntry:
    """Represents one child of a local directory."""

    path: Path
    """Absolute (or root-relative) local path of the entry"""

    is_dir: bool
    """True for real directories; symlinks are never followed"""

    size: int
    """Size in bytes as reported by lstat (0 for directories)"""

    @property
    def name(self) -> str:
        return self.path.name


def list_local(directory: Union[str, Path]) -> list[LocalEntry]:
    """List the immediate children of a local directory.

    Entries are returned sorted by name so that passes are deterministic.

    Args:
        directory: Directory to list

    Returns:
        List of LocalEntry objects

    Raises:
        LocalListError: If the directory is missing or unreadable
    """
    directory = Path(directory)
    entries: list[LocalEntry] = []
    try:
        with os.scandir(directory) as it:
            for item in it:
                is_dir = item.is_dir(follow_symlinks=False)
                size = 0 if is_dir else item.stat(follow_symlinks=False).st_size
                entries.append(
                    LocalEntry(path=directory / item.name, is_dir=is_dir, size=size)
                )
    except OSError as e:
        raise LocalListError(directory, e.strerror or str(e)) from e

    entries.sort(key=lambda entry: entry.name)
    return entries


def remove_local(path: Union[str, Path]) -> None:
    """Remove a local path; directories are removed with all their contents.

    A path that no longer exists is not an error.

    Raises:
        LocalDeleteError: If the path cannot be removed
    """
    path = Path(path)
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink(missing_ok=True)
    except OSError as e:
        raise LocalDeleteError(path, e.strerror or str(e)) from e
