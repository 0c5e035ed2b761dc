from typing import Any

from eth_typing import ChecksumAddress

from poolsync.exceptions.base import PoolsyncError


class LiquidityPoolError(PoolsyncError):
    """
    Exception raised inside liquidity pool helpers.
    """


class InvalidSwapInputAmount(LiquidityPoolError):
    def __init__(self) -> None:
        """
        Raised if a swap input amount is invalid.
        """

        super().__init__(message="The swap input is invalid.")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, ()


class LiquidityMapWordMissing(LiquidityPoolError):
    """
    A word bitmap is not included in the liquidity map.
    """

    def __init__(self, word: int) -> None:
        self.word = word
        super().__init__(message=f"Word {word} is unknown.")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.word,)


class LiquidityNetMissing(LiquidityPoolError):
    """
    An initialized tick was crossed, but its net liquidity is not included in the liquidity map.
    """

    def __init__(self, tick: int) -> None:
        self.tick = tick
        super().__init__(message=f"Liquidity net at tick {tick} is unknown.")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.tick,)


class PoolNotSynced(LiquidityPoolError):
    """
    Raised when a price or swap is requested from a pool that has not been populated, or holds no
    reserves / liquidity.
    """

    def __init__(self, pool: ChecksumAddress) -> None:
        self.pool = pool
        super().__init__(message=f"Pool {pool} is not synced.")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.pool,)
