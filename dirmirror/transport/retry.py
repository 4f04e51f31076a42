"""Retry policy wrapping a transport.

Retries are an explicit, opt-in layer around the Lister and Downloader
calls. The diff engine and the sync driver never retry on their own.
"""

from __future__ import annotations

import logging
import random
import time
from pathlib import Path
from typing import Callable, TypeVar

from ..exceptions import MirrorError, RemoteError
from ..models import FileInfo
from ..utils import DEFAULT_RETRY_DELAY
from .base import Transport

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryingTransport:
    """Retries failed remote calls with exponential backoff.

    Examples:
        >>> transport = RetryingTransport(FTPTransport(cfg), max_retries=3)
        >>> transport.list("/pub")  # retried up to 3 times on failure
    """

    def __init__(
        self,
        inner: Transport,
        max_retries: int = 3,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the retry wrapper.

        Args:
            inner: Transport whose calls are retried
            max_retries: Maximum number of retries after the first attempt
            retry_delay: Initial delay between retries in seconds
            sleep: Sleep function (injectable for tests)
        """
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        self.inner = inner
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep

    def __enter__(self) -> RetryingTransport:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay before next retry using exponential backoff.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        base_delay = self.retry_delay * (2**attempt)
        # Add jitter: +/- 25% of base delay
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    def _call(self, description: str, func: Callable[[], T]) -> T:
        for attempt in range(self.max_retries + 1):
            try:
                return func()
            except RemoteError as e:
                if attempt >= self.max_retries:
                    raise
                delay = self._calculate_retry_delay(attempt)
                logger.warning(
                    f"{description} failed "
                    f"(attempt {attempt + 1}/{self.max_retries + 1}), "
                    f"retrying in {delay:.1f}s: {e}"
                )
                self._sleep(delay)
        raise MirrorError(f"{description} failed after all retry attempts")

    def list(self, path: str) -> list[FileInfo]:
        return self._call(f"Listing {path}", lambda: self.inner.list(path))

    def download(self, remote_path: str, local_path: Path) -> None:
        self._call(
            f"Download of {remote_path}",
            lambda: self.inner.download(remote_path, local_path),
        )

    def close(self) -> None:
        self.inner.close()
