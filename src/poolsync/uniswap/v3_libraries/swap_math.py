from poolsync.exceptions import EVMRevertError
from poolsync.types.aliases import SqrtPriceX96
from poolsync.uniswap.v3_libraries import full_math, sqrt_price_math
from poolsync.uniswap.v3_libraries.constants import FEE_PIPS_DENOMINATOR

type AmountIn = int
type AmountOut = int
type FeeTaken = int


def compute_swap_step(
    sqrt_ratio_x96_current: int,
    sqrt_ratio_x96_target: int,
    liquidity: int,
    amount_remaining: int,
    fee_pips: int,
) -> tuple[SqrtPriceX96, AmountIn, AmountOut, FeeTaken]:
    """
    Compute the result of an exact-input swap within a single price range, moving the price from
    `sqrt_ratio_x96_current` toward `sqrt_ratio_x96_target` without spending more than
    `amount_remaining` (fee included).

    Amounts owed by the swapper (`amount_in`, `fee_amount`) are rounded up, the amount paid out
    is rounded down.

    ref: https://github.com/Uniswap/v3-core/blob/main/contracts/libraries/SwapMath.sol
    """

    if amount_remaining < 0:
        raise EVMRevertError(error="exact output swaps are not supported")
    if liquidity < 0:
        raise EVMRevertError(error="liquidity must be non-negative")
    if not 0 <= fee_pips < FEE_PIPS_DENOMINATOR:
        raise EVMRevertError(error=f"invalid fee {fee_pips}")

    zero_for_one = sqrt_ratio_x96_current >= sqrt_ratio_x96_target

    def amount_in_between(price_a: int, price_b: int) -> int:
        if zero_for_one:
            return sqrt_price_math.get_amount0_delta(price_a, price_b, liquidity, round_up=True)
        return sqrt_price_math.get_amount1_delta(price_a, price_b, liquidity, round_up=True)

    def amount_out_between(price_a: int, price_b: int) -> int:
        if zero_for_one:
            return sqrt_price_math.get_amount1_delta(price_a, price_b, liquidity, round_up=False)
        return sqrt_price_math.get_amount0_delta(price_a, price_b, liquidity, round_up=False)

    amount_remaining_less_fee = full_math.muldiv(
        amount_remaining, FEE_PIPS_DENOMINATOR - fee_pips, FEE_PIPS_DENOMINATOR
    )
    amount_in = amount_in_between(sqrt_ratio_x96_target, sqrt_ratio_x96_current)

    if amount_remaining_less_fee >= amount_in:
        # The whole range can be crossed
        sqrt_ratio_x96_next = sqrt_ratio_x96_target
    else:
        sqrt_ratio_x96_next = sqrt_price_math.get_next_sqrt_price_from_input(
            sqrt_price_x96=sqrt_ratio_x96_current,
            liquidity=liquidity,
            amount_in=amount_remaining_less_fee,
            zero_for_one=zero_for_one,
        )
        amount_in = amount_in_between(sqrt_ratio_x96_next, sqrt_ratio_x96_current)

    amount_out = amount_out_between(sqrt_ratio_x96_next, sqrt_ratio_x96_current)

    if sqrt_ratio_x96_next != sqrt_ratio_x96_target:
        # The range was not crossed, so the remainder of the input is taken as the fee
        fee_amount = amount_remaining - amount_in
    else:
        fee_amount = full_math.muldiv_rounding_up(
            amount_in, fee_pips, FEE_PIPS_DENOMINATOR - fee_pips
        )

    return sqrt_ratio_x96_next, amount_in, amount_out, fee_amount
