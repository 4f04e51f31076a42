"""Remote transports for dirmirror."""

from .base import Downloader, Lister, Transport
from .ftp import FTPConfig, FTPTransport
from .http import HTTPTransport
from .retry import RetryingTransport

__all__ = [
    "Lister",
    "Downloader",
    "Transport",
    "FTPConfig",
    "FTPTransport",
    "HTTPTransport",
    "RetryingTransport",
]
