"""Sync engine for dirmirror - one-way mirroring of a remote tree."""

from .agenda import Agenda, DownloadItem, compute_agenda
from .comparator import entries_match
from .engine import SyncEngine
from .pair import MirrorPair
from .scanner import LocalEntry, list_local, remove_local

__all__ = [
    "Agenda",
    "DownloadItem",
    "compute_agenda",
    "entries_match",
    "SyncEngine",
    "MirrorPair",
    "LocalEntry",
    "list_local",
    "remove_local",
]
