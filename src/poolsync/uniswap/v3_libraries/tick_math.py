"""
Conversion between ticks and Q64.96 square root prices.

ref: https://github.com/Uniswap/v3-core/blob/main/contracts/libraries/TickMath.sol
"""

import functools

from poolsync.constants import MAX_UINT256
from poolsync.exceptions import EVMRevertError
from poolsync.types.aliases import SqrtPriceX96, Tick
from poolsync.uniswap.v3_libraries.constants import Q128, V3_LIB_CACHE_SIZE

MIN_TICK = -887272
MAX_TICK = -MIN_TICK
MIN_SQRT_RATIO = 4295128739
MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342

# Lower and upper error bounds of the log_sqrt(1.0001) approximation over the valid price range
MIN_ERROR = 291339464771989622907027621153398088495
MAX_ERROR = 3402992956809132418596140100660247210

# Q128.128 values of 1/sqrt(1.0001)^(2^i) for i in [1, 19], selected by the bits of |tick|
_RATIO_FOR_BIT: tuple[tuple[int, int], ...] = (
    (0x2, 340248342086729790484326174814286782778),
    (0x4, 340214320654664324051920982716015181260),
    (0x8, 340146287995602323631171512101879684304),
    (0x10, 340010263488231146823593991679159461444),
    (0x20, 339738377640345403697157401104375502016),
    (0x40, 339195258003219555707034227454543997025),
    (0x80, 338111622100601834656805679988414885971),
    (0x100, 335954724994790223023589805789778977700),
    (0x200, 331682121138379247127172139078559817300),
    (0x400, 323299236684853023288211250268160618739),
    (0x800, 307163716377032989948697243942600083929),
    (0x1000, 277268403626896220162999269216087595045),
    (0x2000, 225923453940442621947126027127485391333),
    (0x4000, 149997214084966997727330242082538205943),
    (0x8000, 66119101136024775622716233608466517926),
    (0x10000, 12847376061809297530290974190478138313),
    (0x20000, 485053260817066172746253684029974020),
    (0x40000, 691415978906521570653435304214168),
    (0x80000, 1404880482679654955896180642),
)
_RATIO_FOR_ODD_TICK = 340265354078544963557816517032075149313

# log2(sqrt(1.0001)) inverse as a Q128.128 multiplier
_LOG_SQRT10001_MULTIPLIER = 255738958999603826347141


@functools.lru_cache(maxsize=V3_LIB_CACHE_SIZE)
def get_sqrt_ratio_at_tick(tick: Tick) -> SqrtPriceX96:
    """
    Calculate sqrt(1.0001^tick) * 2^96, rounded up.
    """

    abs_tick = abs(tick)
    if abs_tick > MAX_TICK:
        raise EVMRevertError(error="T")

    ratio = _RATIO_FOR_ODD_TICK if abs_tick & 0x1 else Q128
    for bit, multiplier in _RATIO_FOR_BIT:
        if abs_tick & bit:
            ratio = (ratio * multiplier) >> 128

    if tick > 0:
        ratio = MAX_UINT256 // ratio

    # Q128.128 -> Q128.96, rounding up so that get_tick_at_sqrt_ratio is consistent with the output
    quotient, remainder = divmod(ratio, 1 << 32)
    return quotient + (1 if remainder else 0)


@functools.lru_cache(maxsize=V3_LIB_CACHE_SIZE)
def get_tick_at_sqrt_ratio(sqrt_price_x96: SqrtPriceX96) -> Tick:
    """
    Calculate the greatest tick such that get_sqrt_ratio_at_tick(tick) <= sqrt_price_x96.
    """

    if not MIN_SQRT_RATIO <= sqrt_price_x96 < MAX_SQRT_RATIO:
        raise EVMRevertError(error="R")

    ratio = sqrt_price_x96 << 32
    msb = ratio.bit_length() - 1

    # Normalize the ratio to a 128 bit fixed point value in [1, 2)
    r = ratio >> (msb - 127) if msb >= 128 else ratio << (127 - msb)  # noqa: PLR2004

    log_2 = (msb - 128) << 64

    # Binary digits of the fractional part, from 2^-1 down to 2^-14
    for bit in range(63, 49, -1):
        r = (r * r) >> 127
        f = r >> 128
        log_2 |= f << bit
        r >>= f

    log_sqrt10001 = log_2 * _LOG_SQRT10001_MULTIPLIER

    tick_low = (log_sqrt10001 - MAX_ERROR) >> 128
    tick_high = (log_sqrt10001 + MIN_ERROR) >> 128

    if tick_low == tick_high:
        return tick_low
    return tick_high if get_sqrt_ratio_at_tick(tick_high) <= sqrt_price_x96 else tick_low
