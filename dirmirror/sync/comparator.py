"""The match rule deciding whether a local and a remote entry are the same."""

from typing import Optional

from ..models import FileInfo
from .scanner import LocalEntry


def entries_match(local: LocalEntry, remote: FileInfo) -> bool:
    """Check whether a local entry and a remote entry are the same object.

    Entries match when their names and types are equal and, for files,
    their sizes are equal too. Modification times and contents are never
    compared.
    """
    if local.name != remote.name:
        return False
    if local.is_dir != remote.is_dir:
        return False
    if not local.is_dir and local.size != remote.size:
        return False
    return True


def find_remote_match(
    local: LocalEntry, remotes: list[FileInfo]
) -> Optional[FileInfo]:
    """Return the first remote entry matching ``local``, or None."""
    for remote in remotes:
        if entries_match(local, remote):
            return remote
    return None


def has_local_match(remote: FileInfo, locals_: list[LocalEntry]) -> bool:
    """Check whether any local entry matches ``remote``."""
    return any(entries_match(local, remote) for local in locals_)
