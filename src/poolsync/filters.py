"""
Pool filters: blacklist removal and removal of pools holding less than a threshold value, measured
in a reference token (e.g. WETH) or in USD through a USD/reference pool.
"""

from collections.abc import Iterable, Sequence

from eth_typing import ChecksumAddress
from web3.exceptions import ContractLogicError

from poolsync.checksum_cache import get_checksum_address
from poolsync.dex import Dex
from poolsync.exceptions import PairNotFound
from poolsync.logging import logger
from poolsync.pool import Pool
from poolsync.throttle import RequestThrottle
from poolsync.types.abstract import ChainReader
from poolsync.uniswap.v2_pool import UniswapV2Pool
from poolsync.uniswap.v3_pool import UniswapV3Pool


def _blacklist(addresses: Iterable[str]) -> set[ChecksumAddress]:
    return {get_checksum_address(address) for address in addresses}


def filter_blacklist(pools: Iterable[Pool], addresses: Iterable[str]) -> list[Pool]:
    """
    Remove pools whose own address is blacklisted.
    """

    blacklist = _blacklist(addresses)
    return [pool for pool in pools if pool.address not in blacklist]


def filter_blacklist_tokens(pools: Iterable[Pool], addresses: Iterable[str]) -> list[Pool]:
    """
    Remove pools holding a blacklisted token.
    """

    blacklist = _blacklist(addresses)
    return [pool for pool in pools if blacklist.isdisjoint(pool.tokens)]


def filter_blacklist_addresses(pools: Iterable[Pool], addresses: Iterable[str]) -> list[Pool]:
    """
    Remove pools whose address or either token is blacklisted.
    """

    blacklist = _blacklist(addresses)
    return [
        pool
        for pool in pools
        if pool.address not in blacklist and blacklist.isdisjoint(pool.tokens)
    ]


def _pool_reserves(pool: Pool) -> tuple[int, int]:
    match pool:
        case UniswapV2Pool():
            return pool.reserve_0, pool.reserve_1
        case UniswapV3Pool():
            return pool.calculate_virtual_reserves()


def _reference_reserve(pool: Pool, reference_token: ChecksumAddress) -> int:
    reserve_0, reserve_1 = _pool_reserves(pool)
    return reserve_0 if pool.token_a == reference_token else reserve_1


async def get_reference_pool(
    token: ChecksumAddress,
    reference_token: ChecksumAddress,
    dexes: Sequence[Dex],
    min_liquidity_floor: int,
    reader: ChainReader,
    throttle: RequestThrottle | None = None,
) -> Pool:
    """
    Find the pool pairing `token` with `reference_token` that holds the largest reference token
    reserve across all exchanges. V3 pools are measured by their virtual reserves.

    Exchanges whose lookup calls revert are skipped. Raises `PairNotFound` if no pool exists or the
    best one holds less than `min_liquidity_floor` of the reference token.
    """

    best_pool: Pool | None = None
    best_reserve = 0

    for dex in dexes:
        try:
            pool = await dex.get_pool_with_best_liquidity(token, reference_token, reader, throttle)
        except ContractLogicError:
            logger.debug(f"{dex.factory_address}: pool lookup for {token} reverted, skipping")
            continue
        if pool is None:
            continue
        if (reserve := _reference_reserve(pool, reference_token)) > best_reserve:
            best_pool, best_reserve = pool, reserve

    if best_pool is None or best_reserve < min_liquidity_floor:
        raise PairNotFound(token, reference_token)
    return best_pool


async def get_reference_price(
    token: ChecksumAddress,
    reference_token: ChecksumAddress,
    dexes: Sequence[Dex],
    min_liquidity_floor: int,
    reader: ChainReader,
    throttle: RequestThrottle | None = None,
) -> float:
    """
    Return the value of one whole `token` in units of `reference_token`.
    """

    if token == reference_token:
        return 1.0

    pool = await get_reference_pool(
        token, reference_token, dexes, min_liquidity_floor, reader, throttle
    )
    return pool.calculate_price(token)


async def get_reference_value(
    pool: Pool,
    reference_token: ChecksumAddress,
    dexes: Sequence[Dex],
    min_liquidity_floor: int,
    reader: ChainReader,
    prices: dict[ChecksumAddress, float],
    throttle: RequestThrottle | None = None,
) -> float:
    """
    Return the combined value of the pool's token holdings in units of `reference_token`. Token
    prices found along the way are stored in `prices` and reused.
    """

    value = 0.0
    for token, decimals, reserve in zip(
        pool.tokens,
        (pool.token_a_decimals, pool.token_b_decimals),
        _pool_reserves(pool),
        strict=True,
    ):
        if token not in prices:
            prices[token] = await get_reference_price(
                token, reference_token, dexes, min_liquidity_floor, reader, throttle
            )
        value += reserve / 10**decimals * prices[token]
    return value


async def filter_by_reference_value(
    pools: Iterable[Pool],
    dexes: Sequence[Dex],
    reference_token: str,
    threshold: float,
    min_liquidity_floor: int,
    reader: ChainReader,
    throttle_limit: int = 0,
) -> list[Pool]:
    """
    Remove pools whose holdings are worth less than `threshold` units of `reference_token`.

    Each token is priced through its deepest pool against the reference token on any of `dexes`;
    candidate pools holding less than `min_liquidity_floor` (raw units) of the reference token are
    not used. A pool holding a token with no usable reference pool is valued at zero and removed.
    """

    reference_token = get_checksum_address(reference_token)
    throttle = RequestThrottle(throttle_limit)
    prices: dict[ChecksumAddress, float] = {}

    filtered_pools = []
    for pool in pools:
        try:
            value = await get_reference_value(
                pool, reference_token, dexes, min_liquidity_floor, reader, prices, throttle
            )
        except PairNotFound as exc:
            logger.debug(f"Pool {pool.address} valued at zero: {exc.message}")
            value = 0.0

        if value >= threshold:
            filtered_pools.append(pool)

    return filtered_pools


async def filter_by_usd_value(
    pools: Iterable[Pool],
    dexes: Sequence[Dex],
    usd_reference_pool: Pool,
    reference_token: str,
    usd_threshold: float,
    min_liquidity_floor: int,
    reader: ChainReader,
    throttle_limit: int = 0,
) -> list[Pool]:
    """
    Remove pools whose holdings are worth less than `usd_threshold` USD. Values are measured in
    `reference_token`, then converted with the price of the reference token in
    `usd_reference_pool`, a pool pairing it with a USD stablecoin.
    """

    reference_token = get_checksum_address(reference_token)
    usd_per_reference_token = usd_reference_pool.calculate_price(reference_token)

    return await filter_by_reference_value(
        pools=pools,
        dexes=dexes,
        reference_token=reference_token,
        threshold=usd_threshold / usd_per_reference_token,
        min_liquidity_floor=min_liquidity_floor,
        reader=reader,
        throttle_limit=throttle_limit,
    )
