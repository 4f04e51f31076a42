"""Exceptions raised by dirmirror.

Every error aborts the current synchronization pass and is propagated to
the caller unchanged.
"""

from pathlib import Path
from typing import Union


class MirrorError(Exception):
    """Base exception for all dirmirror errors."""

    pass


class MirrorConfigError(MirrorError):
    """Raised when the configuration is missing or invalid."""

    pass


class LocalError(MirrorError):
    """Base class for failures on the local filesystem."""

    def __init__(self, path: Union[str, Path], message: str):
        self.path = Path(path)
        super().__init__(f"{message}: {path}")


class LocalListError(LocalError):
    """Raised when a local directory cannot be read during diffing."""

    def __init__(self, path: Union[str, Path], reason: str = ""):
        message = "Cannot list local directory"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(path, message)


class LocalDeleteError(LocalError):
    """Raised when a local path cannot be removed."""

    def __init__(self, path: Union[str, Path], reason: str = ""):
        message = "Cannot remove local path"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(path, message)


class RemoteError(MirrorError):
    """Base class for transport failures."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{message}: {path}")


class RemoteListError(RemoteError):
    """Raised when a remote listing fails (network, auth, missing path)."""

    def __init__(self, path: str, reason: str = ""):
        message = "Cannot list remote directory"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(path, message)


class RemoteDownloadError(RemoteError):
    """Raised when fetching a remote file or writing it locally fails."""

    def __init__(self, path: str, reason: str = ""):
        message = "Download failed"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(path, message)
