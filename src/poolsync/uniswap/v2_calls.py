import asyncio

from eth_typing import ChecksumAddress

from poolsync.checksum_cache import get_checksum_address
from poolsync.constants import ZERO_ADDRESS
from poolsync.exceptions import RecordDecodingError
from poolsync.functions import raw_call
from poolsync.throttle import RequestThrottle
from poolsync.types.abstract import ChainReader
from poolsync.types.aliases import BlockNumber
from poolsync.uniswap.v2_pool import UniswapV2Pool


async def get_token_decimals(
    token: ChecksumAddress,
    reader: ChainReader,
    block_identifier: BlockNumber | None = None,
    throttle: RequestThrottle | None = None,
) -> int:
    (decimals,) = await raw_call(
        reader=reader,
        address=token,
        function_prototype="decimals()",
        return_types=["uint8"],
        block_identifier=block_identifier,
        throttle=throttle,
    )
    return decimals


async def get_pair(
    factory: ChecksumAddress,
    token_a: ChecksumAddress,
    token_b: ChecksumAddress,
    reader: ChainReader,
    throttle: RequestThrottle | None = None,
) -> ChecksumAddress:
    """
    Return the pair address for two tokens from the factory, or the zero address if none exists.
    """

    (pair,) = await raw_call(
        reader=reader,
        address=factory,
        function_prototype="getPair(address,address)",
        return_types=["address"],
        function_arguments=[token_a, token_b],
        throttle=throttle,
    )
    return get_checksum_address(pair)


async def get_all_pairs_length(
    factory: ChecksumAddress,
    reader: ChainReader,
    block_identifier: BlockNumber | None = None,
    throttle: RequestThrottle | None = None,
) -> int:
    (length,) = await raw_call(
        reader=reader,
        address=factory,
        function_prototype="allPairsLength()",
        return_types=["uint256"],
        block_identifier=block_identifier,
        throttle=throttle,
    )
    return length


async def get_reserves(
    pool: UniswapV2Pool,
    reader: ChainReader,
    block_identifier: BlockNumber | None = None,
    throttle: RequestThrottle | None = None,
) -> tuple[int, int]:
    reserve_0, reserve_1, _ = await raw_call(
        reader=reader,
        address=pool.address,
        function_prototype="getReserves()",
        return_types=["uint112", "uint112", "uint32"],
        block_identifier=block_identifier,
        throttle=throttle,
    )
    return reserve_0, reserve_1


async def populate_pool(
    pool: UniswapV2Pool,
    reader: ChainReader,
    block_identifier: BlockNumber | None = None,
    throttle: RequestThrottle | None = None,
) -> None:
    """
    Fetch tokens, decimals and reserves for the pool with individual calls. The pool is written only
    after every read succeeds.
    """

    async def get_token(function_prototype: str) -> ChecksumAddress:
        (token,) = await raw_call(
            reader=reader,
            address=pool.address,
            function_prototype=function_prototype,
            return_types=["address"],
            block_identifier=block_identifier,
            throttle=throttle,
        )
        return get_checksum_address(token)

    token_a, token_b = await asyncio.gather(get_token("token0()"), get_token("token1()"))
    if token_a == ZERO_ADDRESS or token_a == token_b:
        raise RecordDecodingError(reason=f"invalid tokens {token_a}, {token_b} for {pool.address}")

    token_a_decimals, token_b_decimals, (reserve_0, reserve_1) = await asyncio.gather(
        get_token_decimals(token_a, reader, block_identifier, throttle),
        get_token_decimals(token_b, reader, block_identifier, throttle),
        get_reserves(pool, reader, block_identifier, throttle),
    )

    pool.token_a = token_a
    pool.token_a_decimals = token_a_decimals
    pool.token_b = token_b
    pool.token_b_decimals = token_b_decimals
    pool.reserve_0 = reserve_0
    pool.reserve_1 = reserve_1


async def sync_pool(
    pool: UniswapV2Pool,
    reader: ChainReader,
    block_identifier: BlockNumber | None = None,
    throttle: RequestThrottle | None = None,
) -> None:
    """
    Refresh the pool reserves.
    """

    reserve_0, reserve_1 = await get_reserves(pool, reader, block_identifier, throttle)
    pool.reserve_0 = reserve_0
    pool.reserve_1 = reserve_1
