from poolsync.constants import MAX_UINT256
from poolsync.exceptions import EVMRevertError
from poolsync.uniswap.v3_libraries.functions import mulmod


def _check_uint256(value: int, name: str) -> None:
    if not 0 <= value <= MAX_UINT256:
        raise EVMRevertError(error=f"{name} is not a valid uint256")


def muldiv(a: int, b: int, denominator: int) -> int:
    """
    Calculate floor(a * b / denominator).

    The contract version works around a 512-bit intermediate product. Python integers are unbounded,
    so only the input and output ranges need to be enforced.

    ref: https://github.com/Uniswap/v3-core/blob/main/contracts/libraries/FullMath.sol
    """

    _check_uint256(a, "a")
    _check_uint256(b, "b")
    _check_uint256(denominator, "denominator")
    if denominator == 0:
        raise EVMRevertError(error="muldiv by zero")

    result = a * b // denominator
    if result > MAX_UINT256:
        raise EVMRevertError(error="muldiv result overflows uint256")
    return result


def muldiv_rounding_up(a: int, b: int, denominator: int) -> int:
    result = muldiv(a, b, denominator)
    if mulmod(a, b, denominator) == 0:
        return result
    if result == MAX_UINT256:
        raise EVMRevertError(error="muldiv_rounding_up result overflows uint256")
    return result + 1
