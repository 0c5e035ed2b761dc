import logging
from collections.abc import Sequence
from typing import Any

import eth_abi.abi
import pytest
from eth_typing import ChecksumAddress
from web3.exceptions import ContractLogicError

from poolsync.batch_requests.bytecode import (
    GET_UNISWAP_V2_PAIRS_BATCH_REQUEST,
    GET_UNISWAP_V2_POOL_DATA_BATCH_REQUEST,
    SYNC_UNISWAP_V2_POOL_BATCH_REQUEST,
)
from poolsync.batch_requests.uniswap_v2 import POOL_DATA_RECORD_TYPE, SYNC_RECORD_TYPE
from poolsync.checksum_cache import get_checksum_address
from poolsync.constants import ZERO_ADDRESS
from poolsync.functions import encode_function_calldata
from poolsync.logging import logger
from poolsync.types.concrete import RawLog
from poolsync.uniswap.v3_calls import SLOT0_TYPES, TICK_TYPES
from poolsync.uniswap.v3_libraries.tick_bitmap import flip_tick, word_position

EMPTY_V2_RECORD = (ZERO_ADDRESS, 0, ZERO_ADDRESS, 0, 0, 0)


class FakeChainReader:
    """
    An in-memory chain. Logs are filtered like `eth_getLogs`, the Uniswap V2 batch contracts are
    answered from `v2_pools` and `factory_pairs`, and every other call must be registered with
    `set_call`. An unregistered call reverts.
    """

    def __init__(self, block_number: int = 0) -> None:
        self.block_number = block_number
        self.logs: list[RawLog] = []
        self.v2_pools: dict[ChecksumAddress, tuple[Any, ...]] = {}
        self.factory_pairs: dict[ChecksumAddress, list[ChecksumAddress]] = {}
        self.responses: dict[tuple[ChecksumAddress, bytes], bytes] = {}
        self.log_queries: list[tuple[int, int]] = []
        self.call_count = 0

    async def get_block_number(self) -> int:
        return self.block_number

    async def get_logs(
        self,
        topic0: bytes,
        address: ChecksumAddress | None,
        from_block: int,
        to_block: int,
    ) -> list[RawLog]:
        self.log_queries.append((from_block, to_block))
        return [
            log
            for log in self.logs
            if log.topics
            and log.topics[0] == topic0
            and (address is None or log.address == address)
            and from_block <= log.block_number <= to_block
        ]

    async def call(
        self,
        to: ChecksumAddress | None,
        data: bytes,
        block_identifier: int | None = None,
    ) -> bytes:
        self.call_count += 1

        if to is None:
            return self._batch_call(data)

        try:
            return self.responses[get_checksum_address(to), data]
        except KeyError:
            raise ContractLogicError("execution reverted") from None

    def _batch_call(self, data: bytes) -> bytes:
        if data.startswith(GET_UNISWAP_V2_PAIRS_BATCH_REQUEST):
            start, step, factory = eth_abi.abi.decode(
                types=["uint256", "uint256", "address"],
                data=data[len(GET_UNISWAP_V2_PAIRS_BATCH_REQUEST) :],
            )
            pairs = self.factory_pairs.get(get_checksum_address(factory), [])
            return eth_abi.abi.encode(["address[]"], [pairs[start : start + step]])

        if data.startswith(GET_UNISWAP_V2_POOL_DATA_BATCH_REQUEST):
            (pools,) = eth_abi.abi.decode(
                types=["address[]"],
                data=data[len(GET_UNISWAP_V2_POOL_DATA_BATCH_REQUEST) :],
            )
            records = [
                self.v2_pools.get(get_checksum_address(pool), EMPTY_V2_RECORD) for pool in pools
            ]
            return eth_abi.abi.encode([POOL_DATA_RECORD_TYPE], [records])

        if data.startswith(SYNC_UNISWAP_V2_POOL_BATCH_REQUEST):
            (pools,) = eth_abi.abi.decode(
                types=["address[]"],
                data=data[len(SYNC_UNISWAP_V2_POOL_BATCH_REQUEST) :],
            )
            records = [
                self.v2_pools.get(get_checksum_address(pool), EMPTY_V2_RECORD)[4:]
                for pool in pools
            ]
            return eth_abi.abi.encode([SYNC_RECORD_TYPE], [records])

        raise ContractLogicError("unknown creation code")

    def set_call(
        self,
        address: str,
        function_prototype: str,
        return_types: Sequence[str],
        values: Sequence[Any],
        function_arguments: Sequence[Any] | None = None,
    ) -> None:
        self.responses[
            get_checksum_address(address),
            encode_function_calldata(function_prototype, function_arguments),
        ] = eth_abi.abi.encode(return_types, values)

    def add_token(self, token: str, decimals: int) -> None:
        self.set_call(token, "decimals()", ["uint8"], [decimals])

    def add_v2_pool(
        self,
        address: str,
        token_a: str,
        token_a_decimals: int,
        token_b: str,
        token_b_decimals: int,
        reserve_0: int,
        reserve_1: int,
        factory: str | None = None,
    ) -> None:
        """
        Register a V2 pair for the batch contracts and for individual calls. If a factory is given,
        the pair is also registered with `getPair` in both token orders.
        """

        address = get_checksum_address(address)
        self.v2_pools[address] = (
            get_checksum_address(token_a),
            token_a_decimals,
            get_checksum_address(token_b),
            token_b_decimals,
            reserve_0,
            reserve_1,
        )
        self.add_token(token_a, token_a_decimals)
        self.add_token(token_b, token_b_decimals)
        self.set_call(address, "token0()", ["address"], [token_a])
        self.set_call(address, "token1()", ["address"], [token_b])
        self.set_call(
            address, "getReserves()", ["uint112", "uint112", "uint32"], [reserve_0, reserve_1, 0]
        )
        if factory is not None:
            for tokens in ((token_a, token_b), (token_b, token_a)):
                self.set_call(
                    factory, "getPair(address,address)", ["address"], [address], list(tokens)
                )

    def set_v2_reserves(self, address: str, reserve_0: int, reserve_1: int) -> None:
        address = get_checksum_address(address)
        self.v2_pools[address] = (*self.v2_pools[address][:4], reserve_0, reserve_1)
        self.set_call(
            address, "getReserves()", ["uint112", "uint112", "uint32"], [reserve_0, reserve_1, 0]
        )

    def add_v3_pool(
        self,
        address: str,
        token_a: str,
        token_a_decimals: int,
        token_b: str,
        token_b_decimals: int,
        fee: int,
        tick_spacing: int,
        liquidity: int,
        sqrt_price_x96: int,
        tick: int,
        liquidity_net: dict[int, int],
        factory: str | None = None,
    ) -> None:
        """
        Register a V3 pool, its initialized ticks and every bitmap word between the lowest and
        highest tick for individual calls. If a factory is given, the pool is also registered with
        `getPool` in both token orders.
        """

        self.add_token(token_a, token_a_decimals)
        self.add_token(token_b, token_b_decimals)
        self.set_call(address, "token0()", ["address"], [token_a])
        self.set_call(address, "token1()", ["address"], [token_b])
        self.set_call(address, "fee()", ["uint24"], [fee])
        self.set_call(address, "tickSpacing()", ["int24"], [tick_spacing])
        self.set_call(address, "liquidity()", ["uint128"], [liquidity])
        self.set_call(
            address, "slot0()", SLOT0_TYPES, [sqrt_price_x96, tick, 0, 1, 1, 0, True]
        )

        tick_bitmap: dict[int, int] = {}
        for initialized_tick, net in liquidity_net.items():
            flip_tick(tick_bitmap=tick_bitmap, tick=initialized_tick, tick_spacing=tick_spacing)
            self.set_call(
                address,
                "ticks(int24)",
                TICK_TYPES,
                [abs(net), net, 0, 0, 0, 0, 0, True],
                [initialized_tick],
            )

        ticks = [*liquidity_net, tick]
        for word in range(
            word_position(min(ticks), tick_spacing), word_position(max(ticks), tick_spacing) + 1
        ):
            self.set_call(
                address, "tickBitmap(int16)", ["uint256"], [tick_bitmap.get(word, 0)], [word]
            )

        if factory is not None:
            for tokens in ((token_a, token_b), (token_b, token_a)):
                self.set_call(
                    factory,
                    "getPool(address,address,uint24)",
                    ["address"],
                    [address],
                    [*tokens, fee],
                )


@pytest.fixture(scope="session", autouse=True)
def _set_poolsync_logging():
    """
    Set the logging level to DEBUG for the test run
    """
    logger.setLevel(logging.DEBUG)


@pytest.fixture
def fake_reader() -> FakeChainReader:
    return FakeChainReader(block_number=20_000_000)
