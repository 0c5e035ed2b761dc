from collections.abc import Sequence
from typing import Any

import eth_abi.abi
from eth_abi.exceptions import DecodingError
from eth_typing import ChecksumAddress

from poolsync.checksum_cache import get_checksum_address
from poolsync.constants import ZERO_ADDRESS
from poolsync.exceptions import RecordDecodingError
from poolsync.logging import logger
from poolsync.throttle import RequestThrottle
from poolsync.types.abstract import ChainReader
from poolsync.types.aliases import BlockNumber
from poolsync.uniswap.v2_pool import UniswapV2Pool

from .bytecode import (
    GET_UNISWAP_V2_PAIRS_BATCH_REQUEST,
    GET_UNISWAP_V2_POOL_DATA_BATCH_REQUEST,
    SYNC_UNISWAP_V2_POOL_BATCH_REQUEST,
)

POOL_DATA_RECORD_TYPE = "(address,uint8,address,uint8,uint112,uint112)[]"
SYNC_RECORD_TYPE = "(uint112,uint112)[]"


async def _batch_call(
    reader: ChainReader,
    bytecode: bytes,
    constructor_types: Sequence[str],
    constructor_args: Sequence[Any],
    return_type: str,
    block_identifier: BlockNumber | None,
    throttle: RequestThrottle | None,
) -> Any:
    """
    Execute a batch contract's creation code with the given constructor arguments and decode its
    output. Transport errors propagate, a malformed output raises `RecordDecodingError`.
    """

    if throttle is not None:
        await throttle.increment_or_sleep()
    result = await reader.call(
        to=None,
        data=bytecode + eth_abi.abi.encode(types=constructor_types, args=constructor_args),
        block_identifier=block_identifier,
    )
    try:
        (decoded,) = eth_abi.abi.decode(types=[return_type], data=result)
    except DecodingError as exc:
        raise RecordDecodingError(reason=f"batch response of {len(result)} bytes: {exc}") from exc
    return decoded


def _check_record_count(records: Sequence[Any], expected: int) -> None:
    if len(records) != expected:
        raise RecordDecodingError(reason=f"expected {expected} records, got {len(records)}")


async def get_pairs_batch_request(
    factory: ChecksumAddress,
    start: int,
    step: int,
    reader: ChainReader,
    block_identifier: BlockNumber | None = None,
    throttle: RequestThrottle | None = None,
) -> list[ChecksumAddress]:
    """
    Read the pair addresses at factory indices [start, start + step). The caller must keep the range
    within `allPairsLength()`.
    """

    pairs = await _batch_call(
        reader=reader,
        bytecode=GET_UNISWAP_V2_PAIRS_BATCH_REQUEST,
        constructor_types=["uint256", "uint256", "address"],
        constructor_args=[start, step, factory],
        return_type="address[]",
        block_identifier=block_identifier,
        throttle=throttle,
    )
    return [
        get_checksum_address(pair)
        for pair in pairs
        if get_checksum_address(pair) != ZERO_ADDRESS
    ]


async def get_pool_data_batch_request(
    pools: Sequence[UniswapV2Pool],
    reader: ChainReader,
    block_identifier: BlockNumber | None = None,
    throttle: RequestThrottle | None = None,
) -> int:
    """
    Populate tokens, decimals and reserves for the pools with a single batched read. Records with a
    zero token address are skipped and leave their pool empty.

    Returns the number of pools populated.
    """

    records = await _batch_call(
        reader=reader,
        bytecode=GET_UNISWAP_V2_POOL_DATA_BATCH_REQUEST,
        constructor_types=["address[]"],
        constructor_args=[[pool.address for pool in pools]],
        return_type=POOL_DATA_RECORD_TYPE,
        block_identifier=block_identifier,
        throttle=throttle,
    )
    _check_record_count(records, len(pools))

    populated = 0
    for pool, record in zip(pools, records, strict=True):
        token_a, token_a_decimals, token_b, token_b_decimals, reserve_0, reserve_1 = record
        token_a = get_checksum_address(token_a)
        token_b = get_checksum_address(token_b)

        if token_a == ZERO_ADDRESS or token_a == token_b:
            logger.debug(f"No pool data returned for {pool.address}, skipping")
            continue

        pool.token_a = token_a
        pool.token_a_decimals = token_a_decimals
        pool.token_b = token_b
        pool.token_b_decimals = token_b_decimals
        pool.reserve_0 = reserve_0
        pool.reserve_1 = reserve_1
        populated += 1

    return populated


async def sync_pools_batch_request(
    pools: Sequence[UniswapV2Pool],
    reader: ChainReader,
    block_identifier: BlockNumber | None = None,
    throttle: RequestThrottle | None = None,
) -> None:
    """
    Refresh the reserves of the pools with a single batched read.
    """

    records = await _batch_call(
        reader=reader,
        bytecode=SYNC_UNISWAP_V2_POOL_BATCH_REQUEST,
        constructor_types=["address[]"],
        constructor_args=[[pool.address for pool in pools]],
        return_type=SYNC_RECORD_TYPE,
        block_identifier=block_identifier,
        throttle=throttle,
    )
    _check_record_count(records, len(pools))

    for pool, (reserve_0, reserve_1) in zip(pools, records, strict=True):
        pool.reserve_0 = reserve_0
        pool.reserve_1 = reserve_1
