"""FTP transport: a Lister and Downloader operating on a remote host."""

from __future__ import annotations

import ftplib
import logging
from dataclasses import dataclass
from pathlib import Path

from ..exceptions import RemoteDownloadError, RemoteListError
from ..models import FileInfo
from ..utils import DEFAULT_FTP_PORT, DEFAULT_TIMEOUT, join_remote

logger = logging.getLogger(__name__)

# Replies meaning the server does not implement a command
_UNSUPPORTED_REPLIES = ("500", "501", "502", "504")


@dataclass
class FTPConfig:
    """Connection settings for an FTP server."""

    host: str
    user: str
    password: str = ""
    port: int = DEFAULT_FTP_PORT
    timeout: float = DEFAULT_TIMEOUT


def parse_list_line(line: str, directory: str) -> FileInfo | None:
    """Parse one line of Unix-style ``LIST`` output.

    Args:
        line: Raw listing line, e.g.
            ``-rw-r--r--   1 user group  1024 Jan 01 12:00 notes.txt``
        directory: Remote directory the listing belongs to

    Returns:
        FileInfo, or None for lines that describe no entry (``total``,
        ``.`` and ``..``) and for symbolic links
    """
    parts = line.split(None, 8)
    if len(parts) < 9 or parts[0].lower().startswith("total"):
        return None

    mode, size_field, name = parts[0], parts[4], parts[8]
    # Remote symbolic links are not mirrored.
    if mode.startswith("l"):
        logger.debug(f"Skipping symbolic link: {name}")
        return None
    if name in (".", ".."):
        return None

    is_dir = mode.startswith("d")
    try:
        size = 0 if is_dir else int(size_field)
    except ValueError:
        logger.debug(f"Unparseable size in listing line: {line!r}")
        size = 0
    return FileInfo(is_dir=is_dir, path=join_remote(directory, name), size=size)


class FTPTransport:
    """Lists and downloads remote files over FTP.

    The connection is opened lazily. Before every operation an existing
    connection is probed with ``NOOP``; a dead connection is dropped and
    re-established. A failed listing drops the connection as well, so the
    next call starts from a fresh login.

    Examples:
        >>> ftp = FTPTransport(FTPConfig("ftp.example.com", "anonymous"))
        >>> with ftp:
        ...     entries = ftp.list("/pub")
    """

    def __init__(self, config: FTPConfig):
        self.config = config
        self._connection: ftplib.FTP | None = None
        self._use_mlsd = True

    def __enter__(self) -> FTPTransport:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Shut down the FTP connection, if any."""
        if self._connection is None:
            return
        connection, self._connection = self._connection, None
        try:
            connection.quit()
        except ftplib.all_errors as e:
            logger.debug(f"QUIT failed, closing socket: {e}")
            connection.close()

    def _connect(self) -> None:
        logger.debug(
            f"Connecting to {self.config.host}:{self.config.port} "
            f"as {self.config.user}"
        )
        connection = ftplib.FTP(timeout=self.config.timeout)
        try:
            connection.connect(self.config.host, self.config.port)
            connection.login(self.config.user, self.config.password)
        except ftplib.all_errors:
            connection.close()
            raise
        self._connection = connection

    def _ensure_connected(self) -> ftplib.FTP:
        if self._connection is not None:
            try:
                self._connection.voidcmd("NOOP")
            except ftplib.all_errors as e:
                logger.debug(f"Connection lost ({e}), reconnecting")
                self.close()
        if self._connection is None:
            self._connect()
        assert self._connection is not None
        return self._connection

    def list(self, path: str) -> list[FileInfo]:
        """Return the contents of a remote directory.

        Raises:
            RemoteListError: If connecting or listing fails
        """
        try:
            connection = self._ensure_connected()
            if self._use_mlsd:
                try:
                    return self._list_mlsd(connection, path)
                except ftplib.error_perm as e:
                    if not str(e).startswith(_UNSUPPORTED_REPLIES):
                        raise
                    logger.debug("Server rejected MLSD, falling back to LIST")
                    self._use_mlsd = False
            return self._list_unix(connection, path)
        except ftplib.all_errors as e:
            self.close()
            raise RemoteListError(path, str(e)) from e

    def _list_mlsd(self, connection: ftplib.FTP, path: str) -> list[FileInfo]:
        entries = []
        for name, facts in connection.mlsd(path, facts=["type", "size"]):
            entry_type = facts.get("type", "").lower()
            if entry_type in ("cdir", "pdir") or name in (".", ".."):
                continue
            if entry_type.startswith("os.unix=slink"):
                logger.debug(f"Skipping symbolic link: {name}")
                continue
            is_dir = entry_type == "dir"
            size = 0 if is_dir else int(facts.get("size") or 0)
            entries.append(
                FileInfo(is_dir=is_dir, path=join_remote(path, name), size=size)
            )
        return entries

    def _list_unix(self, connection: ftplib.FTP, path: str) -> list[FileInfo]:
        lines: list[str] = []
        connection.dir(path, lines.append)
        entries = []
        for line in lines:
            entry = parse_list_line(line, path)
            if entry is not None:
                entries.append(entry)
        return entries

    def download(self, remote_path: str, local_path: Path) -> None:
        """Retrieve a remote file and store it at a local path.

        Raises:
            RemoteDownloadError: If the transfer fails or the local file
                cannot be written
        """
        local_path = Path(local_path)
        try:
            connection = self._ensure_connected()
        except ftplib.all_errors as e:
            raise RemoteDownloadError(remote_path, str(e)) from e

        try:
            f = open(local_path, "wb")
        except OSError as e:
            raise RemoteDownloadError(remote_path, f"cannot write file: {e}") from e

        try:
            with f:
                connection.retrbinary(f"RETR {remote_path}", f.write)
        except ftplib.all_errors as e:
            local_path.unlink(missing_ok=True)
            raise RemoteDownloadError(remote_path, str(e)) from e
