"""Mirror pair configuration."""

from dataclasses import dataclass
from pathlib import Path

from ..exceptions import MirrorConfigError
from ..utils import normalize_remote


@dataclass
class MirrorPair:
    """A remote directory mirrored onto a local directory.

    Examples:
        >>> pair = MirrorPair(local="/srv/mirror", remote="/pub/", interval=60)
        >>> pair.remote
        '/pub'
    """

    local: Path
    """Local directory that receives the mirror"""

    remote: str
    """Remote directory that is mirrored"""

    interval: float = 60.0
    """Seconds between the starts of two passes"""

    def __post_init__(self) -> None:
        if isinstance(self.local, str):
            self.local = Path(self.local)
        self.remote = normalize_remote(self.remote)
        if self.interval <= 0:
            raise MirrorConfigError(
                f"Interval must be positive, got {self.interval!r}"
            )
