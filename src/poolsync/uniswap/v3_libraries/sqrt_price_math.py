"""
Token amount and price movement helpers for a swap within a single liquidity range. Only the
exact-input direction is needed here, so the price-from-output helpers of the contract are omitted.

ref: https://github.com/Uniswap/v3-core/blob/main/contracts/libraries/SqrtPriceMath.sol
"""

import functools

from poolsync.constants import MAX_UINT160, MAX_UINT256
from poolsync.exceptions import EVMRevertError
from poolsync.uniswap.v3_libraries.constants import Q96, Q96_RESOLUTION, V3_LIB_CACHE_SIZE
from poolsync.uniswap.v3_libraries.full_math import muldiv, muldiv_rounding_up
from poolsync.uniswap.v3_libraries.functions import to_uint160
from poolsync.uniswap.v3_libraries.unsafe_math import div_rounding_up


def _sorted_prices(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int) -> tuple[int, int]:
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        return sqrt_ratio_b_x96, sqrt_ratio_a_x96
    return sqrt_ratio_a_x96, sqrt_ratio_b_x96


@functools.lru_cache(maxsize=V3_LIB_CACHE_SIZE)
def get_amount0_delta(
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    liquidity: int,
    round_up: bool,
) -> int:
    """
    Amount of token0 between two prices: liquidity / sqrt(lower) - liquidity / sqrt(upper)
    """

    lower, upper = _sorted_prices(sqrt_ratio_a_x96, sqrt_ratio_b_x96)
    if lower == 0:
        raise EVMRevertError(error="required: sqrt_ratio_a_x96 > 0")

    numerator1 = liquidity << Q96_RESOLUTION
    numerator2 = upper - lower

    if round_up:
        return div_rounding_up(muldiv_rounding_up(numerator1, numerator2, upper), lower)
    return muldiv(numerator1, numerator2, upper) // lower


@functools.lru_cache(maxsize=V3_LIB_CACHE_SIZE)
def get_amount1_delta(
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    liquidity: int,
    round_up: bool,
) -> int:
    """
    Amount of token1 between two prices: liquidity * (sqrt(upper) - sqrt(lower))
    """

    lower, upper = _sorted_prices(sqrt_ratio_a_x96, sqrt_ratio_b_x96)

    if round_up:
        return muldiv_rounding_up(liquidity, upper - lower, Q96)
    return muldiv(liquidity, upper - lower, Q96)


@functools.lru_cache(maxsize=V3_LIB_CACHE_SIZE)
def get_next_sqrt_price_from_amount0_rounding_up(
    sqrt_price_x96: int,
    liquidity: int,
    amount: int,
) -> int:
    """
    Price after adding `amount` of token0 to the pool, rounded up so the target is never passed.
    """

    if amount == 0:
        return sqrt_price_x96

    numerator1 = liquidity << Q96_RESOLUTION
    product = amount * sqrt_price_x96

    if product <= MAX_UINT256:
        denominator = numerator1 + product
        if denominator <= MAX_UINT256:
            return muldiv_rounding_up(numerator1, sqrt_price_x96, denominator)

    # Alternate form used by the contract when the product would overflow
    return div_rounding_up(numerator1, numerator1 // sqrt_price_x96 + amount)


@functools.lru_cache(maxsize=V3_LIB_CACHE_SIZE)
def get_next_sqrt_price_from_amount1_rounding_down(
    sqrt_price_x96: int,
    liquidity: int,
    amount: int,
) -> int:
    """
    Price after adding `amount` of token1 to the pool, rounded down so the target is never passed.
    """

    quotient = (
        (amount << Q96_RESOLUTION) // liquidity
        if amount <= MAX_UINT160
        else muldiv(amount, Q96, liquidity)
    )
    return to_uint160(sqrt_price_x96 + quotient)


def get_next_sqrt_price_from_input(
    sqrt_price_x96: int,
    liquidity: int,
    amount_in: int,
    zero_for_one: bool,
) -> int:
    if sqrt_price_x96 <= 0:
        raise EVMRevertError(error="required: sqrt_price_x96 > 0")
    if liquidity <= 0:
        raise EVMRevertError(error="required: liquidity > 0")

    if zero_for_one:
        return get_next_sqrt_price_from_amount0_rounding_up(sqrt_price_x96, liquidity, amount_in)
    return get_next_sqrt_price_from_amount1_rounding_down(sqrt_price_x96, liquidity, amount_in)
