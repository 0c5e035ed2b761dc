import asyncio
from collections.abc import Sequence

import eth_abi.abi
from eth_abi.exceptions import DecodingError
from eth_typing import ChecksumAddress
from eth_utils.crypto import keccak
from pydantic import BaseModel, ConfigDict, NonNegativeInt, ValidationError
from web3.exceptions import ContractLogicError

from poolsync.batch_requests import (
    get_pairs_batch_request,
    get_pool_data_batch_request,
)
from poolsync.checksum_cache import get_checksum_address
from poolsync.constants import ZERO_ADDRESS
from poolsync.exceptions import PoolsyncValueError, RecordDecodingError
from poolsync.functions import block_windows, chunked
from poolsync.logging import logger
from poolsync.pool import Pool, new_empty_pool, populate_pool
from poolsync.throttle import RequestThrottle
from poolsync.types.abstract import ChainReader
from poolsync.types.aliases import BlockNumber
from poolsync.types.concrete import RawLog
from poolsync.types.variants import DexVariant
from poolsync.uniswap import v2_calls, v3_calls
from poolsync.uniswap.v2_pool import UniswapV2Pool
from poolsync.uniswap.v3_pool import UniswapV3Pool
from poolsync.validation.evm_values import ValidatedAddress

PAIR_CREATED_EVENT_SIGNATURE = keccak(text="PairCreated(address,address,address,uint256)")
POOL_CREATED_EVENT_SIGNATURE = keccak(text="PoolCreated(address,address,uint24,int24,address)")
SYNC_EVENT_SIGNATURE = keccak(text="Sync(uint112,uint112)")
SWAP_EVENT_SIGNATURE = keccak(text="Swap(address,address,int256,int256,uint160,uint128,int24)")


class Dex(BaseModel):
    """
    An exchange factory, the pool family it deploys, and the block it was deployed at.
    """

    model_config = ConfigDict(frozen=True)

    factory_address: ValidatedAddress
    variant: DexVariant
    creation_block: NonNegativeInt

    def __init__(
        self,
        factory_address: str,
        variant: DexVariant | str,
        creation_block: int,
    ) -> None:
        super().__init__(
            factory_address=factory_address,
            variant=variant,
            creation_block=creation_block,
        )

    @property
    def pool_created_event_signature(self) -> bytes:
        """
        The topic0 of the factory event announcing a new pool.
        """

        match self.variant:
            case DexVariant.UNISWAP_V2:
                return PAIR_CREATED_EVENT_SIGNATURE
            case DexVariant.UNISWAP_V3:
                return POOL_CREATED_EVENT_SIGNATURE

    @property
    def sync_event_signature(self) -> bytes:
        """
        The topic0 of the pool event that changes reserves (V2) or price and liquidity (V3).
        """

        match self.variant:
            case DexVariant.UNISWAP_V2:
                return SYNC_EVENT_SIGNATURE
            case DexVariant.UNISWAP_V3:
                return SWAP_EVENT_SIGNATURE

    def new_empty_pool_from_log(self, log: RawLog) -> Pool:
        """
        Build an unpopulated pool from a "pool created" event emitted by this factory.

        Raises `RecordDecodingError` if the log does not have the expected shape.
        """

        if not log.topics or log.topics[0] != self.pool_created_event_signature:
            raise RecordDecodingError(reason=f"unexpected event topic in log from {log.address}")

        try:
            match self.variant:
                case DexVariant.UNISWAP_V2:
                    pair_address, _ = eth_abi.abi.decode(
                        types=["address", "uint256"],
                        data=log.data,
                    )
                    return UniswapV2Pool(address=pair_address)
                case DexVariant.UNISWAP_V3:
                    fee = int.from_bytes(log.topics[3], byteorder="big")
                    tick_spacing, pool_address = eth_abi.abi.decode(
                        types=["int24", "address"],
                        data=log.data,
                    )
                    return UniswapV3Pool(
                        address=pool_address,
                        fee=fee,
                        tick_spacing=tick_spacing,
                    )
        except (DecodingError, IndexError, ValidationError) as exc:
            raise RecordDecodingError(reason=f"pool created log from {log.address}: {exc}") from exc

    async def get_all_pools(
        self,
        reader: ChainReader,
        from_block: BlockNumber,
        to_block: BlockNumber,
        step: int,
        throttle: RequestThrottle | None = None,
    ) -> list[Pool]:
        """
        Scan the factory's "pool created" events over [from_block, to_block] and return an empty
        pool for each. One log query is issued per block window, all windows concurrently. Logs
        that cannot be decoded are skipped.
        """

        async def scan_window(window_start: BlockNumber, window_end: BlockNumber) -> list[Pool]:
            if throttle is not None:
                await throttle.increment_or_sleep()
            logger.debug(f"{self.factory_address}: fetching logs {window_start}-{window_end}")
            logs = await reader.get_logs(
                topic0=self.pool_created_event_signature,
                address=self.factory_address,
                from_block=window_start,
                to_block=window_end,
            )

            pools: list[Pool] = []
            for log in logs:
                try:
                    pools.append(self.new_empty_pool_from_log(log))
                except RecordDecodingError as exc:
                    logger.debug(f"Skipping log at block {log.block_number}: {exc.reason}")
            return pools

        if from_block > to_block:
            return []

        window_results = await asyncio.gather(
            *(scan_window(start, end) for start, end in block_windows(from_block, to_block, step))
        )

        # Deduplicate by pool address
        pools_by_address: dict[ChecksumAddress, Pool] = {}
        for pools in window_results:
            for pool in pools:
                pools_by_address.setdefault(pool.address, pool)

        logger.info(
            f"{self.factory_address}: discovered {len(pools_by_address)} pools in blocks {from_block}-{to_block}"  # noqa:E501
        )
        return list(pools_by_address.values())

    async def get_all_pools_from_factory(
        self,
        reader: ChainReader,
        step: int,
        block_identifier: BlockNumber | None = None,
        throttle: RequestThrottle | None = None,
    ) -> list[Pool]:
        """
        Enumerate every pair through the V2 factory's `allPairs` index with batched reads, an
        alternative to log scanning for nodes with limited log access.
        """

        if self.variant is not DexVariant.UNISWAP_V2:
            raise PoolsyncValueError(message="Factory enumeration is only available for UniswapV2")

        pairs_length = await v2_calls.get_all_pairs_length(
            self.factory_address, reader, block_identifier, throttle
        )
        batches = await asyncio.gather(
            *(
                get_pairs_batch_request(
                    factory=self.factory_address,
                    start=start,
                    step=min(step, pairs_length - start),
                    reader=reader,
                    block_identifier=block_identifier,
                    throttle=throttle,
                )
                for start in range(0, pairs_length, step)
            )
        )
        return [UniswapV2Pool(address=pair) for batch in batches for pair in batch]

    async def get_all_pool_data(
        self,
        pools: Sequence[Pool],
        reader: ChainReader,
        batch_size: int,
        block_identifier: BlockNumber | None = None,
        throttle: RequestThrottle | None = None,
    ) -> None:
        """
        Populate the pools in place. V2 pools are read in batches of `batch_size` with the batched
        pool data contract; V3 pools are populated with concurrent individual calls, `batch_size`
        pools at a time. A chunk or pool that cannot be decoded is skipped and left empty.
        """

        async def populate_v2_chunk(chunk: Sequence[UniswapV2Pool]) -> None:
            logger.debug(f"{self.factory_address}: fetching pool data for {len(chunk)} pools")
            try:
                await get_pool_data_batch_request(chunk, reader, block_identifier, throttle)
            except RecordDecodingError as exc:
                logger.warning(f"Skipping batch of {len(chunk)} pools: {exc.reason}")

        async def populate_v3_pool(pool: UniswapV3Pool) -> None:
            try:
                await v3_calls.populate_pool(pool, reader, block_identifier, throttle)
            except RecordDecodingError as exc:
                logger.debug(f"Skipping pool {pool.address}: {exc.reason}")

        match self.variant:
            case DexVariant.UNISWAP_V2:
                v2_pools = [pool for pool in pools if isinstance(pool, UniswapV2Pool)]
                await asyncio.gather(
                    *(populate_v2_chunk(chunk) for chunk in chunked(v2_pools, batch_size))
                )
            case DexVariant.UNISWAP_V3:
                v3_pools = [pool for pool in pools if isinstance(pool, UniswapV3Pool)]
                for chunk in chunked(v3_pools, batch_size):
                    await asyncio.gather(*(populate_v3_pool(pool) for pool in chunk))

    async def get_all_pools_for_pair(
        self,
        token_a: str,
        token_b: str,
        reader: ChainReader,
        throttle: RequestThrottle | None = None,
    ) -> list[Pool]:
        """
        Return every populated pool this factory has deployed for the token pair. A V2 factory holds
        at most one pair, a V3 factory one pool per fee tier.
        """

        token_a = get_checksum_address(token_a)
        token_b = get_checksum_address(token_b)

        match self.variant:
            case DexVariant.UNISWAP_V2:
                addresses = [
                    await v2_calls.get_pair(
                        self.factory_address, token_a, token_b, reader, throttle
                    )
                ]
            case DexVariant.UNISWAP_V3:
                addresses = list(
                    await asyncio.gather(
                        *(
                            v3_calls.get_pool(
                                self.factory_address, token_a, token_b, fee, reader, throttle
                            )
                            for fee in v3_calls.UNISWAP_V3_FEE_TIERS
                        )
                    )
                )

        pools = [
            new_empty_pool(address, self.variant)
            for address in addresses
            if address != ZERO_ADDRESS
        ]
        await asyncio.gather(*(populate_pool(pool, reader, throttle=throttle) for pool in pools))
        return pools

    async def get_pool_with_best_liquidity(
        self,
        token_a: str,
        token_b: str,
        reader: ChainReader,
        throttle: RequestThrottle | None = None,
    ) -> Pool | None:
        """
        Return the deepest pool this factory has for the token pair, or None if there is none. V3
        pools are ranked by active liquidity; fee tiers whose calls revert are ignored.
        """

        token_a = get_checksum_address(token_a)
        token_b = get_checksum_address(token_b)

        match self.variant:
            case DexVariant.UNISWAP_V2:
                pair = await v2_calls.get_pair(
                    self.factory_address, token_a, token_b, reader, throttle
                )
                if pair == ZERO_ADDRESS:
                    return None
                pool = UniswapV2Pool(address=pair)
                await v2_calls.populate_pool(pool, reader, throttle=throttle)
                return pool
            case DexVariant.UNISWAP_V3:

                async def get_tier_liquidity(fee: int) -> tuple[int, ChecksumAddress] | None:
                    try:
                        address = await v3_calls.get_pool(
                            self.factory_address, token_a, token_b, fee, reader, throttle
                        )
                        if address == ZERO_ADDRESS:
                            return None
                        return (
                            await v3_calls.get_liquidity(address, reader, throttle=throttle),
                            address,
                        )
                    except ContractLogicError:
                        logger.debug(f"Fee tier {fee} reverted for {token_a}/{token_b}")
                        return None

                candidates = [
                    candidate
                    for candidate in await asyncio.gather(
                        *(get_tier_liquidity(fee) for fee in v3_calls.UNISWAP_V3_FEE_TIERS)
                    )
                    if candidate is not None
                ]
                if not candidates:
                    return None

                _, best_address = max(candidates)
                pool = UniswapV3Pool(address=best_address)
                await v3_calls.populate_pool(pool, reader, throttle=throttle)
                return pool
