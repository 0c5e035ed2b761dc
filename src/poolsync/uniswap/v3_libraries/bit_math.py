from poolsync.constants import MAX_UINT256
from poolsync.exceptions import EVMRevertError

# Equivalent to the Uniswap V3 BitMath.sol library. Python integers expose their bit length
# directly, so the binary search used by the contract is unnecessary.
# ref: https://github.com/Uniswap/v3-core/blob/main/contracts/libraries/BitMath.sol


def _check_uint256_nonzero(number: int) -> None:
    if number <= 0:
        raise EVMRevertError(error="required: number > 0")
    if number > MAX_UINT256:
        raise EVMRevertError(error="required: number <= max(uint256)")


def least_significant_bit(number: int) -> int:
    """
    Return the index of the lowest set bit, e.g. 0b1000100 -> 2
    """

    _check_uint256_nonzero(number)
    # Two's complement isolates the lowest set bit
    return (number & -number).bit_length() - 1


def most_significant_bit(number: int) -> int:
    """
    Return the index of the highest set bit, e.g. 0b1000100 -> 6
    """

    _check_uint256_nonzero(number)
    return number.bit_length() - 1
