"""HTTP transport for trees served as JSON directory indexes.

The server is expected to answer a GET on a directory URL (with a trailing
slash) with a JSON array such as nginx produces with
``autoindex_format json``::

    [
        {"name": "docs", "type": "directory", "mtime": "..."},
        {"name": "a.txt", "type": "file", "mtime": "...", "size": 10}
    ]
"""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import quote

import httpx

from ..exceptions import RemoteDownloadError, RemoteListError
from ..models import FileInfo
from ..utils import DEFAULT_TIMEOUT, DOWNLOAD_CHUNK_SIZE

logger = logging.getLogger(__name__)


class HTTPTransport:
    """Lists and downloads remote files over HTTP(S)."""

    def __init__(
        self,
        base_url: str,
        username: str | None = None,
        password: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
        port: int | None = None,
    ):
        """Initialize the HTTP transport.

        Args:
            base_url: Server root, e.g. ``https://mirror.example.com``
            username: Optional user name for HTTP basic auth
            password: Optional password for HTTP basic auth
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
            port: Optional port replacing the one in ``base_url``
        """
        if "://" not in base_url:
            base_url = f"https://{base_url}"
        if port:
            base_url = str(httpx.URL(base_url).copy_with(port=port))
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.password = password
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.Client | None = None

    def __enter__(self) -> HTTPTransport:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            auth = None
            if self.username:
                auth = httpx.BasicAuth(self.username, self.password or "")
            self._client = httpx.Client(
                auth=auth,
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
        self._client = None

    def _url(self, path: str, directory: bool = False) -> str:
        remote = "/" + path.strip("/")
        if directory and remote != "/":
            remote += "/"
        return self.base_url + quote(remote)

    def list(self, path: str) -> list[FileInfo]:
        """Return the contents of a remote directory.

        Raises:
            RemoteListError: On network errors, error statuses or a
                malformed index
        """
        url = self._url(path, directory=True)
        logger.debug(f"Listing {url}")
        try:
            response = self._get_client().get(url)
            response.raise_for_status()
            records = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise RemoteListError(path, f"HTTP {status}") from e
        except httpx.RequestError as e:
            raise RemoteListError(path, f"network error: {e}") from e
        except ValueError as e:
            raise RemoteListError(path, "invalid JSON directory index") from e

        if not isinstance(records, list):
            raise RemoteListError(path, "directory index is not a JSON array")

        parent = "/" + path.strip("/")
        try:
            return [
                FileInfo.from_dict(record, parent)
                for record in records
                if record.get("name") not in (".", "..")
            ]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise RemoteListError(path, f"malformed index entry: {e}") from e

    def download(self, remote_path: str, local_path: Path) -> None:
        """Stream a remote file to a local path.

        Raises:
            RemoteDownloadError: If the request fails or the file cannot be
                written; the partial file is removed
        """
        local_path = Path(local_path)
        url = self._url(remote_path)
        logger.debug(f"Fetching {url} -> {local_path}")

        try:
            with self._get_client().stream("GET", url) as response:
                response.raise_for_status()
                with open(local_path, "wb") as f:
                    for chunk in response.iter_bytes(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        f.write(chunk)
        except httpx.HTTPStatusError as e:
            raise RemoteDownloadError(
                remote_path, f"HTTP {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            local_path.unlink(missing_ok=True)
            raise RemoteDownloadError(remote_path, f"network error: {e}") from e
        except OSError as e:
            if local_path.is_file():
                local_path.unlink()
            raise RemoteDownloadError(remote_path, f"cannot write file: {e}") from e
