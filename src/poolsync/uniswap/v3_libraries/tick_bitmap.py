from functools import cache

from poolsync.constants import MAX_UINT8
from poolsync.exceptions import LiquidityMapWordMissing, PoolsyncValueError
from poolsync.types.aliases import Tick, Word
from poolsync.uniswap.v3_libraries.bit_math import least_significant_bit, most_significant_bit


@cache
def position(tick: int) -> tuple[Word, int]:
    """
    Computes the (word, bit) position in the tick initialization bitmap for a compressed tick,
    i.e. a tick already divided by the tick spacing.
    """

    return tick >> 8, tick % 256


def word_position(tick: Tick, tick_spacing: int) -> Word:
    """
    Return the bitmap word holding the given (uncompressed) tick.
    """

    word, _ = position(tick // tick_spacing)
    return word


def flip_tick(
    tick_bitmap: dict[Word, int],
    tick: Tick,
    tick_spacing: int,
) -> None:
    if tick % tick_spacing != 0:
        raise PoolsyncValueError(message=f"Tick {tick} is not a multiple of {tick_spacing}")

    word, bit = position(tick // tick_spacing)
    tick_bitmap[word] = tick_bitmap.get(word, 0) ^ (1 << bit)


def next_initialized_tick(
    word: int,
    tick: Tick,
    tick_spacing: int,
    search_down: bool,
) -> tuple[Tick, bool]:
    """
    Search a single 256 bit bitmap word for the nearest initialized tick.

    With `search_down`, the search covers the current tick and lower ticks in the word holding the
    current (compressed) tick. Otherwise it covers strictly greater ticks in the word holding the
    next compressed tick. If no initialized tick is found, the word boundary in the search direction
    is returned with `False`.

    The caller must supply the correct word, see `next_initialized_tick_within_one_word`.
    """

    # Floor division rounds toward negative infinity, matching the contract's adjustment for
    # negative ticks
    compressed = tick // tick_spacing

    if search_down:
        _, bit = position(compressed)
        # Bits at or below the current position
        masked = word & ((1 << (bit + 1)) - 1)
        if masked:
            return (compressed - (bit - most_significant_bit(masked))) * tick_spacing, True
        return (compressed - bit) * tick_spacing, False

    _, bit = position(compressed + 1)
    # Bits at or above the position of the next tick
    masked = word & ~((1 << bit) - 1)
    if masked:
        return (compressed + 1 + (least_significant_bit(masked) - bit)) * tick_spacing, True
    return (compressed + 1 + (MAX_UINT8 - bit)) * tick_spacing, False


def next_initialized_tick_within_one_word(
    tick_bitmap: dict[Word, int],
    tick: Tick,
    tick_spacing: int,
    less_than_or_equal: bool,
) -> tuple[Tick, bool]:
    """
    Find the next initialized tick using a mapping of known bitmap words.

    Raises `LiquidityMapWordMissing` if the word to be searched is not in the mapping.
    """

    compressed = tick // tick_spacing
    word, _ = position(compressed if less_than_or_equal else compressed + 1)

    try:
        bitmap = tick_bitmap[word]
    except KeyError:
        raise LiquidityMapWordMissing(word) from None

    return next_initialized_tick(
        word=bitmap,
        tick=tick,
        tick_spacing=tick_spacing,
        search_down=less_than_or_equal,
    )
