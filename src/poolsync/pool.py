"""
The `Pool` tagged union and the operations that dispatch on its variant.
"""

from collections.abc import Iterable, Sequence
from typing import Annotated

from eth_typing import ChecksumAddress
from pydantic import Field, TypeAdapter

from poolsync.checksum_cache import get_checksum_address
from poolsync.exceptions import (
    LiquidityMapWordMissing,
    LiquidityNetMissing,
    PoolsyncValueError,
)
from poolsync.logging import logger
from poolsync.throttle import RequestThrottle
from poolsync.types.abstract import ChainReader
from poolsync.types.aliases import BlockNumber
from poolsync.types.variants import DexVariant
from poolsync.uniswap import v2_calls, v3_calls
from poolsync.uniswap.v2_pool import UniswapV2Pool
from poolsync.uniswap.v3_libraries.tick_bitmap import word_position
from poolsync.uniswap.v3_pool import UniswapV3Pool

type Pool = Annotated[UniswapV2Pool | UniswapV3Pool, Field(discriminator="variant")]

pool_list_adapter: TypeAdapter[list[Pool]] = TypeAdapter(list[Pool])


def new_empty_pool(address: str, variant: DexVariant) -> Pool:
    match variant:
        case DexVariant.UNISWAP_V2:
            return UniswapV2Pool(address=address)
        case DexVariant.UNISWAP_V3:
            return UniswapV3Pool(address=address)


def other_token(pool: Pool, token: str) -> ChecksumAddress:
    """
    Return the token on the opposite side of the pool from `token`.
    """

    token = get_checksum_address(token)
    if token == pool.token_a:
        return pool.token_b
    if token == pool.token_b:
        return pool.token_a
    raise PoolsyncValueError(message=f"{token} is not held by pool {pool.address}")


async def populate_pool(
    pool: Pool,
    reader: ChainReader,
    block_identifier: BlockNumber | None = None,
    throttle: RequestThrottle | None = None,
) -> None:
    """
    Fetch every field of the pool with individual calls.
    """

    match pool:
        case UniswapV2Pool():
            await v2_calls.populate_pool(pool, reader, block_identifier, throttle)
        case UniswapV3Pool():
            await v3_calls.populate_pool(pool, reader, block_identifier, throttle)


async def sync_pool(
    pool: Pool,
    reader: ChainReader,
    block_identifier: BlockNumber | None = None,
    throttle: RequestThrottle | None = None,
) -> None:
    """
    Refresh the mutable fields of a populated pool: reserves for V2, price, tick and liquidity for
    V3.
    """

    match pool:
        case UniswapV2Pool():
            await v2_calls.sync_pool(pool, reader, block_identifier, throttle)
        case UniswapV3Pool():
            await v3_calls.sync_pool(pool, reader, block_identifier, throttle)


async def pool_from_address(
    address: str,
    variant: DexVariant,
    reader: ChainReader,
    block_identifier: BlockNumber | None = None,
) -> Pool:
    """
    Build and populate a pool from its address.
    """

    pool = new_empty_pool(address, variant)
    await populate_pool(pool, reader, block_identifier)
    return pool


def remove_empty_pools(pools: Iterable[Pool]) -> list[Pool]:
    """
    Drop pools that were never populated.
    """

    return [pool for pool in pools if pool.is_populated]


def simulate_route(
    pools: Sequence[Pool],
    token_in: str,
    amount_in: int,
) -> int:
    """
    Simulate an exact input swap through each pool in order, feeding the output of one pool into
    the next. The pools are not modified.
    """

    for pool in pools:
        amount_in = pool.simulate_swap(token_in, amount_in)
        token_in = other_token(pool, token_in)
    return amount_in


def simulate_route_mut(
    pools: Sequence[Pool],
    token_in: str,
    amount_in: int,
) -> int:
    """
    Simulate an exact input swap through each pool in order, updating each pool's state.
    """

    for pool in pools:
        amount_in = pool.simulate_swap_mut(token_in, amount_in)
        token_in = other_token(pool, token_in)
    return amount_in


async def simulate_swap_mut_onchain(
    pool: Pool,
    token_in: str,
    amount_in: int,
    reader: ChainReader,
    throttle: RequestThrottle | None = None,
) -> int:
    """
    Like `simulate_swap_mut`, but liquidity map words and tick liquidity that a V3 swap needs and
    the pool does not yet hold are fetched from the chain and recorded on the pool.
    """

    match pool:
        case UniswapV2Pool():
            return pool.simulate_swap_mut(token_in, amount_in)
        case UniswapV3Pool():
            while True:
                try:
                    return pool.simulate_swap_mut(token_in, amount_in)
                except LiquidityMapWordMissing as exc:
                    word = exc.word
                except LiquidityNetMissing as exc:
                    word = word_position(exc.tick, pool.tick_spacing)

                logger.debug(f"Fetching liquidity map word {word} for {pool.address}")
                bitmap, tick_data = await v3_calls.get_liquidity_at_word(
                    pool.address, pool.tick_spacing, word, reader, throttle=throttle
                )
                pool.update_liquidity_data(tick_bitmap={word: bitmap}, tick_data=tick_data)
