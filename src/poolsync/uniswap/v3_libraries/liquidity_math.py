from poolsync.constants import MAX_INT128, MAX_UINT128, MIN_INT128
from poolsync.exceptions import EVMRevertError


def add_delta(x: int, y: int) -> int:
    """
    Add a signed liquidity delta to an unsigned liquidity value.

    Reverts with "LS" (liquidity sub) if the result drops below zero, and "LA" (liquidity add) if
    it exceeds the uint128 range, matching the error strings of the LiquidityMath.sol library.

    ref: https://github.com/Uniswap/v3-core/blob/main/contracts/libraries/LiquidityMath.sol
    """

    if not 0 <= x <= MAX_UINT128:
        raise EVMRevertError(error="x is not a valid uint128")
    if not MIN_INT128 <= y <= MAX_INT128:
        raise EVMRevertError(error="y is not a valid int128")

    z = x + y
    if z < 0:
        raise EVMRevertError(error="LS")
    if z > MAX_UINT128:
        raise EVMRevertError(error="LA")
    return z
