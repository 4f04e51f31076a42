"""Utility functions for dirmirror."""

import posixpath

# =============================================================================
# Defaults
# =============================================================================

# Default FTP control port
DEFAULT_FTP_PORT: int = 21

# Network timeout for transport calls (seconds)
DEFAULT_TIMEOUT: float = 30.0

# Retries are disabled unless requested; a failed pass stops the loop
DEFAULT_MAX_RETRIES: int = 0
DEFAULT_RETRY_DELAY: float = 2.0  # seconds

# Chunk size for streamed downloads
DOWNLOAD_CHUNK_SIZE: int = 64 * 1024


# =============================================================================
# Path helpers
# =============================================================================


def join_remote(directory: str, name: str) -> str:
    """Join a remote directory and a child name with forward slashes.

    Args:
        directory: Remote directory path
        name: Child entry name

    Returns:
        Joined slash-separated path

    Examples:
        >>> join_remote("/pub", "file.txt")
        '/pub/file.txt'
        >>> join_remote("/", "file.txt")
        '/file.txt'
    """
    return posixpath.join(directory, name)


def normalize_remote(path: str) -> str:
    """Strip trailing slashes from a remote path, keeping the root intact."""
    if not path:
        return "/"
    stripped = path.rstrip("/")
    return stripped or "/"


def format_size(size_bytes: int) -> str:
    """Format bytes to human-readable size.

    Args:
        size_bytes: Size in bytes

    Returns:
        Human-readable size string (e.g., "1.5 MB")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"
