"""
The discovery and sync pipeline.

Each dex is processed by its own task: "pool created" logs are scanned from the dex's creation
block (or a later start block) to the chain head observed when the sync began, the discovered pools
are populated, their mutable state is refreshed, and pools that could not be populated are
dropped. Results are joined only after every task completes; any unexpected exception in one task
fails the whole sync.
"""

import asyncio
from collections.abc import Sequence
from pathlib import Path

from eth_typing import ChecksumAddress

from poolsync.batch_requests import sync_pools_batch_request
from poolsync.checkpoint import load_checkpoint, save_checkpoint
from poolsync.config import settings
from poolsync.dex import Dex
from poolsync.exceptions import PoolsyncValueError, RecordDecodingError
from poolsync.functions import chunked
from poolsync.logging import logger
from poolsync.pool import Pool, remove_empty_pools
from poolsync.throttle import RequestThrottle
from poolsync.types.abstract import ChainReader
from poolsync.types.aliases import BlockNumber
from poolsync.types.variants import DexVariant
from poolsync.uniswap import v3_calls
from poolsync.uniswap.v2_pool import UniswapV2Pool
from poolsync.uniswap.v3_pool import UniswapV3Pool


def _pool_data_batch_size(dex: Dex) -> int:
    match dex.variant:
        case DexVariant.UNISWAP_V2:
            return settings.v2_pool_data_batch_size
        case DexVariant.UNISWAP_V3:
            return settings.v3_pool_data_batch_size


async def refresh_pools(
    pools: Sequence[Pool],
    reader: ChainReader,
    block_identifier: BlockNumber | None = None,
    throttle: RequestThrottle | None = None,
) -> None:
    """
    Refresh the mutable state of populated pools in place: batched reserve reads for V2 pools, one
    task per pool for V3 pools. Unpopulated pools are ignored.
    """

    async def sync_v2_chunk(chunk: Sequence[UniswapV2Pool]) -> None:
        logger.debug(f"Refreshing reserves for {len(chunk)} pools")
        try:
            await sync_pools_batch_request(chunk, reader, block_identifier, throttle)
        except RecordDecodingError as exc:
            logger.warning(f"Skipping reserve refresh for {len(chunk)} pools: {exc.reason}")

    async def sync_v3_pool(pool: UniswapV3Pool) -> None:
        try:
            await v3_calls.sync_pool(pool, reader, block_identifier, throttle)
        except RecordDecodingError as exc:
            logger.debug(f"Skipping refresh of {pool.address}: {exc.reason}")

    populated = remove_empty_pools(pools)
    v2_pools = [pool for pool in populated if isinstance(pool, UniswapV2Pool)]
    v3_pools = [pool for pool in populated if isinstance(pool, UniswapV3Pool)]

    await asyncio.gather(
        *(sync_v2_chunk(chunk) for chunk in chunked(v2_pools, settings.v2_sync_batch_size)),
        *(sync_v3_pool(pool) for pool in v3_pools),
    )


async def sync_dex(
    dex: Dex,
    reader: ChainReader,
    from_block: BlockNumber,
    to_block: BlockNumber,
    step: int,
    throttle: RequestThrottle,
) -> list[Pool]:
    """
    Discover the dex's pools created in [from_block, to_block], populate and refresh them at
    `to_block`, and return those that were populated.
    """

    pools = await dex.get_all_pools(reader, from_block, to_block, step, throttle)
    await dex.get_all_pool_data(
        pools,
        reader,
        batch_size=_pool_data_batch_size(dex),
        block_identifier=to_block,
        throttle=throttle,
    )
    await refresh_pools(pools, reader, block_identifier=to_block, throttle=throttle)

    populated = remove_empty_pools(pools)
    logger.info(f"{dex.factory_address}: {len(populated)} of {len(pools)} pools populated")
    return populated


async def sync_pools_with_throttle(
    dexes: Sequence[Dex],
    reader: ChainReader,
    step: int,
    throttle_limit: int,
    checkpoint_path: Path | None = None,
    *,
    from_block: BlockNumber | None = None,
    existing_pools: Sequence[Pool] = (),
) -> list[Pool]:
    """
    Sync every dex concurrently, sharing one `RequestThrottle` of `throttle_limit` calls per second
    across all tasks. Logs are scanned in windows of `step` blocks.

    `from_block` moves the scan start of each dex past its creation block. `existing_pools` are
    refreshed rather than rediscovered; a discovered pool with the address of an existing pool is
    dropped.

    If `checkpoint_path` is given, the dexes, the pools and the block observed at the start of the
    sync are written there.
    """

    throttle = RequestThrottle(throttle_limit)
    current_block = await reader.get_block_number()
    logger.info(f"Syncing {len(dexes)} exchanges up to block {current_block}")

    dex_results, _ = await asyncio.gather(
        asyncio.gather(
            *(
                sync_dex(
                    dex=dex,
                    reader=reader,
                    from_block=(
                        dex.creation_block
                        if from_block is None
                        else max(from_block, dex.creation_block)
                    ),
                    to_block=current_block,
                    step=step,
                    throttle=throttle,
                )
                for dex in dexes
            )
        ),
        refresh_pools(existing_pools, reader, block_identifier=current_block, throttle=throttle),
    )

    pools_by_address: dict[ChecksumAddress, Pool] = {pool.address: pool for pool in existing_pools}
    for dex_pools in dex_results:
        for pool in dex_pools:
            pools_by_address.setdefault(pool.address, pool)
    pools = list(pools_by_address.values())
    logger.info(f"Synced {len(pools)} pools at block {current_block}")

    if checkpoint_path is not None:
        save_checkpoint(dexes, pools, current_block, checkpoint_path)

    return pools


async def sync_pools(
    dexes: Sequence[Dex],
    reader: ChainReader,
    throttle_limit: int | None = None,
    checkpoint_path: Path | None = None,
) -> list[Pool]:
    """
    Discover, populate and refresh every pool created by the given exchanges.

    The throttle limit, log block step and checkpoint path default to the active configuration.
    """

    return await sync_pools_with_throttle(
        dexes=dexes,
        reader=reader,
        step=settings.log_block_step,
        throttle_limit=settings.throttle_limit if throttle_limit is None else throttle_limit,
        checkpoint_path=settings.checkpoint_path if checkpoint_path is None else checkpoint_path,
    )


async def generate_checkpoint(
    dexes: Sequence[Dex],
    reader: ChainReader,
    checkpoint_path: Path,
    throttle_limit: int | None = None,
) -> list[Pool]:
    """
    Run a full sync and write its result to `checkpoint_path`.
    """

    return await sync_pools(
        dexes=dexes,
        reader=reader,
        throttle_limit=throttle_limit,
        checkpoint_path=checkpoint_path,
    )


async def sync_pools_from_checkpoint(
    checkpoint_path: Path | None,
    reader: ChainReader,
    throttle_limit: int | None = None,
) -> tuple[list[Dex], list[Pool]]:
    """
    Resume a sync from a checkpoint. Logs are scanned from the block after the checkpoint's block,
    the checkpointed pools are refreshed, newly discovered pools are merged in, and the checkpoint
    is rewritten.

    A `checkpoint_path` of `None` uses the configured path.
    """

    if checkpoint_path is None:
        checkpoint_path = settings.checkpoint_path
    if checkpoint_path is None:
        raise PoolsyncValueError(message="No checkpoint path given or configured")

    dexes, pools, block = load_checkpoint(checkpoint_path)
    logger.info(f"Resuming {len(pools)} pools from block {block + 1}")

    synced_pools = await sync_pools_with_throttle(
        dexes=dexes,
        reader=reader,
        step=settings.log_block_step,
        throttle_limit=settings.throttle_limit if throttle_limit is None else throttle_limit,
        checkpoint_path=checkpoint_path,
        from_block=block + 1,
        existing_pools=pools,
    )
    return dexes, synced_pools
