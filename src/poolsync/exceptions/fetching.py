"""
Data fetching exceptions for the poolsync package.

`RecordDecodingError` is the single recoverable ("skip") category: the pipeline catches it, logs
the item and continues. Anything else raised while fetching is fatal and reaches the caller.
"""

from typing import Any

from poolsync.exceptions.base import PoolsyncError


class FetchingError(PoolsyncError):
    """
    Base exception for data fetching errors.
    """


class RecordDecodingError(FetchingError):
    """
    Raised when a single log or batch record cannot be decoded into pool data.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(message=f"Could not decode record: {reason}")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.reason,)
