from pathlib import Path
from typing import Any

from poolsync.exceptions.base import PoolsyncError


class CheckpointError(PoolsyncError):
    """
    Raised when a checkpoint file is missing or cannot be parsed.
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(message=f"Could not load checkpoint {path}: {reason}")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.path, self.reason)
