from typing import Any

from poolsync.exceptions.base import PoolsyncError


class EVMRevertError(PoolsyncError, ArithmeticError):
    """
    Raised when a simulated EVM math operation would revert, e.g. on overflow, underflow, division
    by zero, or an invalid signed/unsigned conversion.
    """

    def __init__(self, error: str) -> None:
        self.error = error
        super().__init__(message=f"EVM Revert: {error}")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.error,)


class InvalidUint256(EVMRevertError):
    def __init__(self) -> None:
        super().__init__(error="Not a valid uint256")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, ()
