"""Data models for remote directory entries."""

import posixpath
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class FileInfo:
    """Describes one entry of a remote directory listing."""

    is_dir: bool
    """True if and only if the remote entry is a directory"""

    path: str
    """Slash-separated path in the remote filesystem"""

    size: int = 0
    """Size in bytes (not used for directories)"""

    @property
    def name(self) -> str:
        """Final segment of the remote path."""
        return posixpath.basename(self.path.rstrip("/")) or self.path

    @classmethod
    def from_dict(cls, data: dict[str, Any], parent: str) -> "FileInfo":
        """Create a FileInfo from a JSON directory index record.

        Args:
            data: Record with ``name``, ``type`` and optional ``size`` keys
            parent: Remote path of the directory that was listed

        Returns:
            FileInfo with its full remote path
        """
        is_dir = data.get("type") == "directory"
        size = 0 if is_dir else int(data.get("size") or 0)
        return cls(
            is_dir=is_dir,
            path=posixpath.join(parent, str(data["name"])),
            size=size,
        )

    def __str__(self) -> str:
        if self.is_dir:
            return f"{self.path}/"
        return f"{self.path} ({self.size} bytes)"
