"""dirmirror - keep a local directory mirrored from a remote server."""

from .exceptions import (
    LocalDeleteError,
    LocalListError,
    MirrorConfigError,
    MirrorError,
    RemoteDownloadError,
    RemoteError,
    RemoteListError,
)
from .models import FileInfo
from .sync import Agenda, MirrorPair, SyncEngine, compute_agenda

__version__ = "0.1.0"

__all__ = [
    "FileInfo",
    "Agenda",
    "MirrorPair",
    "SyncEngine",
    "compute_agenda",
    "MirrorError",
    "MirrorConfigError",
    "LocalListError",
    "LocalDeleteError",
    "RemoteError",
    "RemoteListError",
    "RemoteDownloadError",
]
