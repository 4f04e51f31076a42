"""Shared fixtures: an in-memory remote tree and a local directory."""

import posixpath
from pathlib import Path

import pytest

from dirmirror.exceptions import RemoteDownloadError, RemoteListError
from dirmirror.models import FileInfo
from dirmirror.output import OutputFormatter


class FakeTransport:
    """In-memory remote tree implementing Lister and Downloader."""

    def __init__(self):
        self.dirs: dict[str, list[FileInfo]] = {"/": []}
        self.fail_list: set[str] = set()
        self.fail_download: set[str] = set()
        self.list_calls: list[str] = []
        self.download_calls: list[tuple[str, Path]] = []
        self.closed = False

    def _add(self, entry: FileInfo) -> None:
        parent = posixpath.dirname(entry.path)
        if parent not in self.dirs:
            self.add_dir(parent)
        self.dirs[parent] = [e for e in self.dirs[parent] if e.name != entry.name]
        self.dirs[parent].append(entry)

    def add_dir(self, path: str) -> "FakeTransport":
        self._add(FileInfo(is_dir=True, path=path))
        self.dirs.setdefault(path, [])
        return self

    def add_file(self, path: str, size: int) -> "FakeTransport":
        self._add(FileInfo(is_dir=False, path=path, size=size))
        return self

    def remove(self, path: str) -> None:
        parent = posixpath.dirname(path)
        self.dirs[parent] = [e for e in self.dirs[parent] if e.path != path]
        for key in [k for k in self.dirs if k == path or k.startswith(path + "/")]:
            del self.dirs[key]

    def find(self, path: str) -> FileInfo:
        for entry in self.dirs[posixpath.dirname(path)]:
            if entry.path == path:
                return entry
        raise KeyError(path)

    def list(self, path: str) -> list[FileInfo]:
        self.list_calls.append(path)
        if path in self.fail_list:
            raise RemoteListError(path, "connection reset")
        if path not in self.dirs:
            raise RemoteListError(path, "no such directory")
        return list(self.dirs[path])

    def download(self, remote_path: str, local_path: Path) -> None:
        self.download_calls.append((remote_path, Path(local_path)))
        if remote_path in self.fail_download:
            raise RemoteDownloadError(remote_path, "connection reset")
        entry = self.find(remote_path)
        Path(local_path).write_bytes(b"x" * entry.size)

    def close(self) -> None:
        self.closed = True


def make_local_tree(root: Path, files: dict[str, int]) -> None:
    """Create files of the given sizes below root; keys ending in / are dirs."""
    for rel_path, size in files.items():
        path = root / rel_path
        if rel_path.endswith("/"):
            path.mkdir(parents=True, exist_ok=True)
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"y" * size)


def snapshot(root: Path) -> dict[str, int]:
    """Map every path below root to its size (-1 for directories)."""
    result = {}
    for path in sorted(root.rglob("*")):
        rel_path = path.relative_to(root).as_posix()
        result[rel_path] = -1 if path.is_dir() else path.stat().st_size
    return result


@pytest.fixture
def remote():
    """An empty in-memory remote tree rooted at /."""
    return FakeTransport()


@pytest.fixture
def local_root(tmp_path):
    """An empty local mirror directory."""
    root = tmp_path / "local"
    root.mkdir()
    return root


@pytest.fixture
def quiet_output():
    """Output formatter that prints nothing."""
    return OutputFormatter(quiet=True)
