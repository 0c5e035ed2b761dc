import asyncio
from typing import Any

from eth_typing import ChecksumAddress

from poolsync.checksum_cache import get_checksum_address
from poolsync.constants import ZERO_ADDRESS
from poolsync.exceptions import PoolNotSynced, RecordDecodingError
from poolsync.functions import raw_call
from poolsync.throttle import RequestThrottle
from poolsync.types.abstract import ChainReader
from poolsync.types.aliases import BlockNumber, Tick, Word
from poolsync.uniswap.v2_calls import get_token_decimals
from poolsync.uniswap.v3_libraries.tick_bitmap import word_position
from poolsync.uniswap.v3_pool import UniswapV3Pool

SLOT0_TYPES = ["uint160", "int24", "uint16", "uint16", "uint16", "uint8", "bool"]
TICK_TYPES = ["uint128", "int128", "uint256", "uint256", "int56", "uint160", "uint32", "bool"]

# Fee tiers enabled on the Uniswap V3 factory
UNISWAP_V3_FEE_TIERS = (100, 500, 3_000, 10_000)


async def get_pool(
    factory: ChecksumAddress,
    token_a: ChecksumAddress,
    token_b: ChecksumAddress,
    fee: int,
    reader: ChainReader,
    throttle: RequestThrottle | None = None,
) -> ChecksumAddress:
    """
    Return the pool address for two tokens and a fee tier, or the zero address if none exists.
    """

    (pool,) = await raw_call(
        reader=reader,
        address=factory,
        function_prototype="getPool(address,address,uint24)",
        return_types=["address"],
        function_arguments=[token_a, token_b, fee],
        throttle=throttle,
    )
    return get_checksum_address(pool)


async def get_liquidity(
    pool_address: ChecksumAddress,
    reader: ChainReader,
    block_identifier: BlockNumber | None = None,
    throttle: RequestThrottle | None = None,
) -> int:
    (liquidity,) = await raw_call(
        reader=reader,
        address=pool_address,
        function_prototype="liquidity()",
        return_types=["uint128"],
        block_identifier=block_identifier,
        throttle=throttle,
    )
    return liquidity


async def get_slot0(
    pool_address: ChecksumAddress,
    reader: ChainReader,
    block_identifier: BlockNumber | None = None,
    throttle: RequestThrottle | None = None,
) -> tuple[int, Tick]:
    """
    Return the current square root price and tick.
    """

    sqrt_price_x96, tick, *_ = await raw_call(
        reader=reader,
        address=pool_address,
        function_prototype="slot0()",
        return_types=SLOT0_TYPES,
        block_identifier=block_identifier,
        throttle=throttle,
    )
    return sqrt_price_x96, tick


async def get_liquidity_at_word(
    pool_address: ChecksumAddress,
    tick_spacing: int,
    word: Word,
    reader: ChainReader,
    block_identifier: BlockNumber | None = None,
    throttle: RequestThrottle | None = None,
) -> tuple[int, dict[Tick, int]]:
    """
    Fetch the initialization bitmap for a word and the net liquidity of each initialized tick in it.
    """

    (bitmap,) = await raw_call(
        reader=reader,
        address=pool_address,
        function_prototype="tickBitmap(int16)",
        return_types=["uint256"],
        function_arguments=[word],
        block_identifier=block_identifier,
        throttle=throttle,
    )

    initialized_ticks = [
        (word * 256 + bit) * tick_spacing for bit in range(256) if bitmap & (1 << bit)
    ]

    async def get_liquidity_net(tick: Tick) -> int:
        _, liquidity_net, *_ = await raw_call(
            reader=reader,
            address=pool_address,
            function_prototype="ticks(int24)",
            return_types=TICK_TYPES,
            function_arguments=[tick],
            block_identifier=block_identifier,
            throttle=throttle,
        )
        return liquidity_net

    liquidity_nets = await asyncio.gather(*(get_liquidity_net(tick) for tick in initialized_ticks))
    return bitmap, dict(zip(initialized_ticks, liquidity_nets, strict=True))


async def populate_pool(
    pool: UniswapV3Pool,
    reader: ChainReader,
    block_identifier: BlockNumber | None = None,
    throttle: RequestThrottle | None = None,
) -> None:
    """
    Fetch tokens, decimals, fee, tick spacing, price and the liquidity map word holding the current
    tick with individual calls. The pool is written only after every read succeeds.
    """

    async def call_pool(function_prototype: str, return_type: str) -> Any:
        (value,) = await raw_call(
            reader=reader,
            address=pool.address,
            function_prototype=function_prototype,
            return_types=[return_type],
            block_identifier=block_identifier,
            throttle=throttle,
        )
        return value

    token_a, token_b, fee, tick_spacing = await asyncio.gather(
        call_pool("token0()", "address"),
        call_pool("token1()", "address"),
        call_pool("fee()", "uint24"),
        call_pool("tickSpacing()", "int24"),
    )
    token_a = get_checksum_address(token_a)
    token_b = get_checksum_address(token_b)
    if token_a == ZERO_ADDRESS or token_a == token_b or tick_spacing <= 0:
        raise RecordDecodingError(reason=f"invalid pool data for {pool.address}")

    (
        token_a_decimals,
        token_b_decimals,
        liquidity,
        (sqrt_price_x96, tick),
    ) = await asyncio.gather(
        get_token_decimals(token_a, reader, block_identifier, throttle),
        get_token_decimals(token_b, reader, block_identifier, throttle),
        get_liquidity(pool.address, reader, block_identifier, throttle),
        get_slot0(pool.address, reader, block_identifier, throttle),
    )
    word = word_position(tick, tick_spacing)
    bitmap, tick_data = await get_liquidity_at_word(
        pool.address, tick_spacing, word, reader, block_identifier, throttle
    )

    pool.token_a = token_a
    pool.token_a_decimals = token_a_decimals
    pool.token_b = token_b
    pool.token_b_decimals = token_b_decimals
    pool.fee = fee
    pool.tick_spacing = tick_spacing
    pool.liquidity = liquidity
    pool.sqrt_price = sqrt_price_x96
    pool.tick = tick
    pool.update_liquidity_data(tick_bitmap={word: bitmap}, tick_data=tick_data)


async def sync_pool(
    pool: UniswapV3Pool,
    reader: ChainReader,
    block_identifier: BlockNumber | None = None,
    throttle: RequestThrottle | None = None,
) -> None:
    """
    Refresh the price, tick, active liquidity and the liquidity map word holding the current tick.
    """

    if pool.tick_spacing <= 0:
        raise PoolNotSynced(pool.address)

    liquidity, (sqrt_price_x96, tick) = await asyncio.gather(
        get_liquidity(pool.address, reader, block_identifier, throttle),
        get_slot0(pool.address, reader, block_identifier, throttle),
    )
    word = word_position(tick, pool.tick_spacing)
    bitmap, tick_data = await get_liquidity_at_word(
        pool.address, pool.tick_spacing, word, reader, block_identifier, throttle
    )

    pool.liquidity = liquidity
    pool.sqrt_price = sqrt_price_x96
    pool.tick = tick
    pool.update_liquidity_data(tick_bitmap={word: bitmap}, tick_data=tick_data)
