"""Configuration management for dirmirror.

Settings are resolved in this order: environment variables, the config
file at ``~/.config/dirmirror/config`` and finally built-in defaults.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .exceptions import MirrorConfigError
from .utils import DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

SUPPORTED_PROTOCOLS = ("ftp", "http")


class Config:
    """Reads dirmirror settings from the environment and the config file."""

    ENV_PREFIX = "DIRMIRROR_"

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_path: Path of the config file (defaults to
                ~/.config/dirmirror/config)
        """
        self._config_path = config_path
        self._file_values: Optional[dict[str, str]] = None

    def get_config_path(self) -> Path:
        """Get the path of the config file."""
        if self._config_path is not None:
            return self._config_path
        return Path.home() / ".config" / "dirmirror" / "config"

    def _load_file(self) -> dict[str, str]:
        """Parse ``KEY=VALUE`` lines from the config file (cached)."""
        if self._file_values is not None:
            return self._file_values

        values: dict[str, str] = {}
        path = self.get_config_path()
        if path.is_file():
            try:
                with open(path, encoding="utf-8") as f:
                    for line_number, raw in enumerate(f, start=1):
                        line = raw.strip()
                        if not line or line.startswith("#"):
                            continue
                        if "=" not in line:
                            raise MirrorConfigError(
                                f"Invalid line {line_number} in {path}: {raw.rstrip()}"
                            )
                        key, value = line.split("=", 1)
                        values[key.strip().upper()] = value.strip().strip('"')
            except OSError as e:
                raise MirrorConfigError(f"Cannot read config file {path}: {e}") from e
            logger.debug(f"Loaded {len(values)} setting(s) from {path}")

        self._file_values = values
        return values

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Look up a setting by name (without the DIRMIRROR_ prefix)."""
        env_value = os.environ.get(f"{self.ENV_PREFIX}{key.upper()}")
        if env_value is not None:
            return env_value
        return self._load_file().get(f"{self.ENV_PREFIX}{key.upper()}", default)

    def _get_number(self, key: str, default, cast):
        value = self.get(key)
        if value is None or value == "":
            return default
        try:
            number = cast(value)
        except ValueError as e:
            raise MirrorConfigError(f"Invalid value for {key}: {value!r}") from e
        if number < 0:
            raise MirrorConfigError(f"{key} must not be negative: {value!r}")
        return number

    @property
    def protocol(self) -> str:
        """Transport protocol (``ftp`` or ``http``)."""
        protocol = (self.get("protocol") or "ftp").lower()
        if protocol not in SUPPORTED_PROTOCOLS:
            raise MirrorConfigError(
                f"Unsupported protocol {protocol!r}, "
                f"expected one of: {', '.join(SUPPORTED_PROTOCOLS)}"
            )
        return protocol

    @property
    def port(self) -> Optional[int]:
        """Port override for the transport, None for the protocol default."""
        return self._get_number("port", None, int)

    @property
    def retries(self) -> int:
        """Number of retries for failed remote calls."""
        return self._get_number("retries", DEFAULT_MAX_RETRIES, int)

    @property
    def timeout(self) -> float:
        """Network timeout in seconds."""
        return self._get_number("timeout", DEFAULT_TIMEOUT, float)

    @property
    def password(self) -> Optional[str]:
        """Password from the environment or config file, if any."""
        return self.get("password")


config = Config()
