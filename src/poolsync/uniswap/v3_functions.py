from decimal import Decimal, localcontext
from fractions import Fraction

from poolsync.constants import MAX_UINT128
from poolsync.exceptions import EVMRevertError
from poolsync.uniswap.v3_libraries.constants import Q192

# Working precision for the arbitrary precision virtual reserve calculation. 80 significant digits
# covers the product of a uint128 liquidity and any representable price.
_DECIMAL_PRECISION = 80


def exchange_rate_from_sqrt_price_x96(sqrt_price_x96: int) -> Fraction:
    # ref: https://blog.uniswap.org/uniswap-v3-math-primer
    return Fraction(sqrt_price_x96**2, Q192)


def _decimal_price_from_sqrt(sqrt_price_x96: int, decimals_a: int, decimals_b: int) -> Decimal:
    with localcontext(prec=_DECIMAL_PRECISION):
        return (
            Decimal((sqrt_price_x96 * sqrt_price_x96) >> 128)
            / Decimal(2**64)
            * Decimal(10) ** (decimals_a - decimals_b)
        )


def price_from_sqrt(sqrt_price_x96: int, decimals_a: int, decimals_b: int) -> float:
    """
    Convert a Q64.96 square root price into the decimal-adjusted price of token_a in units of
    token_b. The square is shifted down by 128 bits before dividing by 2^64, so prices below
    2^-64 (raw) resolve to zero.
    """

    return float(_decimal_price_from_sqrt(sqrt_price_x96, decimals_a, decimals_b))


def virtual_reserves(
    sqrt_price_x96: int,
    liquidity: int,
    decimals_a: int,
    decimals_b: int,
) -> tuple[int, int]:
    """
    Derive the constant product reserves equivalent to the active liquidity at the current price:
    reserve_a = L / sqrt(price), reserve_b = L * sqrt(price).

    Returns (0, 0) when the price is zero.
    """

    price = _decimal_price_from_sqrt(sqrt_price_x96, decimals_a, decimals_b)
    if price == 0:
        return 0, 0

    with localcontext(prec=_DECIMAL_PRECISION):
        sqrt_price = price.sqrt()
        reserve_a = int(Decimal(liquidity) / sqrt_price)
        reserve_b = int(Decimal(liquidity) * sqrt_price)

    for reserve in (reserve_a, reserve_b):
        if reserve > MAX_UINT128:
            raise EVMRevertError(error=f"virtual reserve {reserve} does not fit in uint128")

    return reserve_a, reserve_b
