"""Diff engine computing the agenda of one synchronization pass."""

import logging
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Union

from ..models import FileInfo
from ..transport.base import Lister
from .comparator import find_remote_match, has_local_match
from .scanner import LocalEntry, list_local

logger = logging.getLogger(__name__)

LocalLister = Callable[[Path], list[LocalEntry]]


@dataclass(frozen=True)
class DownloadItem:
    """A remote entry to materialize at a local destination."""

    remote: FileInfo
    """Remote file or directory"""

    destination: Path
    """Local path where the entry should be created"""


@dataclass
class Agenda:
    """Deletions and downloads that make the local tree match the remote one.

    An agenda holds one entry per top-level difference: a remote directory
    missing locally appears once, and its contents are fetched when the
    download is applied.
    """

    to_delete: list[Path] = field(default_factory=list)
    """Local files or subtrees without a remote counterpart"""

    to_download: list[DownloadItem] = field(default_factory=list)
    """Remote entries without a local counterpart"""

    @property
    def is_empty(self) -> bool:
        return not self.to_delete and not self.to_download

    @property
    def download_bytes(self) -> int:
        """Total size of the top-level files to download."""
        return sum(
            item.remote.size for item in self.to_download if not item.remote.is_dir
        )


@dataclass(frozen=True)
class _SearchNode:
    local_path: Path
    remote_path: str


def compute_agenda(
    local_root: Union[str, Path],
    remote_root: str,
    lister: Lister,
    local_lister: LocalLister = list_local,
) -> Agenda:
    """Compare a local tree with a remote tree, breadth first.

    Only directories that exist on both sides are descended into. Any
    listing failure aborts the computation.

    Args:
        local_root: Local directory to mirror into
        remote_root: Remote directory to mirror from
        lister: Remote directory lister
        local_lister: Local directory lister

    Returns:
        Agenda for this pass

    Raises:
        LocalListError: If a local directory cannot be read
        RemoteListError: If a remote directory cannot be listed

    Examples:
        >>> agenda = compute_agenda(Path("/srv/mirror"), "/pub", ftp)
        >>> [str(p) for p in agenda.to_delete]
        ['/srv/mirror/stale.txt']
    """
    agenda = Agenda()
    nodes = deque([_SearchNode(Path(local_root), remote_root)])

    while nodes:
        node = nodes.popleft()
        local_listing = local_lister(node.local_path)
        remote_listing = lister.list(node.remote_path)
        logger.debug(
            f"Comparing {node.local_path} ({len(local_listing)} entries) "
            f"with {node.remote_path} ({len(remote_listing)} entries)"
        )

        for local in local_listing:
            remote_match = find_remote_match(local, remote_listing)
            local_path = node.local_path / local.name
            if remote_match is None:
                agenda.to_delete.append(local_path)
            elif local.is_dir:
                nodes.append(_SearchNode(local_path, remote_match.path))

        for remote in remote_listing:
            if not has_local_match(remote, local_listing):
                destination = node.local_path / remote.name
                agenda.to_download.append(DownloadItem(remote, destination))

    return agenda
