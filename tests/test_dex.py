import eth_abi.abi
import pydantic
import pytest
from conftest import FakeChainReader

from poolsync.checksum_cache import get_checksum_address
from poolsync.constants import ZERO_ADDRESS
from poolsync.dex import (
    PAIR_CREATED_EVENT_SIGNATURE,
    POOL_CREATED_EVENT_SIGNATURE,
    Dex,
)
from poolsync.exceptions import PoolsyncValueError, RecordDecodingError
from poolsync.types.concrete import RawLog
from poolsync.types.variants import DexVariant
from poolsync.uniswap.v2_pool import UniswapV2Pool
from poolsync.uniswap.v3_calls import UNISWAP_V3_FEE_TIERS
from poolsync.uniswap.v3_libraries.tick_math import get_sqrt_ratio_at_tick
from poolsync.uniswap.v3_pool import UniswapV3Pool

V2_FACTORY = get_checksum_address("0x5C69bEe701ef814a2B6a3EDD4B1652CB9cc5aA6f")
V3_FACTORY = get_checksum_address("0x1F98431c8aD98523631AE4a59f267346ea31F984")
WETH = get_checksum_address("0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2")
USDC = get_checksum_address("0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48")


def address(i: int) -> str:
    return get_checksum_address(f"0x{i:040x}")


def pair_created_log(factory: str, pair: str, block_number: int) -> RawLog:
    return RawLog(
        address=get_checksum_address(factory),
        topics=(
            PAIR_CREATED_EVENT_SIGNATURE,
            eth_abi.abi.encode(["address"], [USDC]),
            eth_abi.abi.encode(["address"], [WETH]),
        ),
        data=eth_abi.abi.encode(["address", "uint256"], [pair, 1]),
        block_number=block_number,
    )


def pool_created_log(
    factory: str, pool: str, fee: int, tick_spacing: int, block_number: int
) -> RawLog:
    return RawLog(
        address=get_checksum_address(factory),
        topics=(
            POOL_CREATED_EVENT_SIGNATURE,
            eth_abi.abi.encode(["address"], [USDC]),
            eth_abi.abi.encode(["address"], [WETH]),
            eth_abi.abi.encode(["uint24"], [fee]),
        ),
        data=eth_abi.abi.encode(["int24", "address"], [tick_spacing, pool]),
        block_number=block_number,
    )


@pytest.fixture
def v2_dex() -> Dex:
    return Dex(V2_FACTORY, DexVariant.UNISWAP_V2, 10_000_835)


@pytest.fixture
def v3_dex() -> Dex:
    return Dex(V3_FACTORY, DexVariant.UNISWAP_V3, 12_369_621)


def test_event_signatures():
    assert (
        PAIR_CREATED_EVENT_SIGNATURE.hex()
        == "0d3648bd0f6ba80134a33ba9275ac585d9d315f0ad8355cddefde31afa28d0e9"
    )
    assert (
        POOL_CREATED_EVENT_SIGNATURE.hex()
        == "783cca1c0412dd0d695e784568c96da2e9c22ff989357a2e8b1d9b2b4e6b7118"
    )


def test_dex_construction(v2_dex: Dex):
    dex = Dex(V2_FACTORY.lower(), "UniswapV2", 10_000_835)
    assert dex.factory_address == V2_FACTORY
    assert dex.variant is DexVariant.UNISWAP_V2
    assert dex == v2_dex
    assert dex.pool_created_event_signature == PAIR_CREATED_EVENT_SIGNATURE

    with pytest.raises(pydantic.ValidationError):
        dex.creation_block = 0

    with pytest.raises(pydantic.ValidationError):
        Dex(V2_FACTORY, "SushiSwap", 0)


def test_new_empty_v2_pool_from_log(v2_dex: Dex):
    pool = v2_dex.new_empty_pool_from_log(pair_created_log(V2_FACTORY, address(1), 1))
    assert isinstance(pool, UniswapV2Pool)
    assert pool.address == address(1)
    assert pool.is_populated is False


def test_new_empty_v3_pool_from_log(v3_dex: Dex):
    pool = v3_dex.new_empty_pool_from_log(
        pool_created_log(V3_FACTORY, address(2), fee=500, tick_spacing=10, block_number=1)
    )
    assert isinstance(pool, UniswapV3Pool)
    assert pool.address == address(2)
    assert pool.fee == 500
    assert pool.tick_spacing == 10


def test_new_empty_pool_from_bad_logs(v2_dex: Dex, v3_dex: Dex):
    # Topic belongs to the other variant
    with pytest.raises(RecordDecodingError):
        v2_dex.new_empty_pool_from_log(
            pool_created_log(V3_FACTORY, address(2), fee=500, tick_spacing=10, block_number=1)
        )

    with pytest.raises(RecordDecodingError):
        v2_dex.new_empty_pool_from_log(
            RawLog(address=V2_FACTORY, topics=(PAIR_CREATED_EVENT_SIGNATURE,), data=b"\x01")
        )

    # Missing the indexed fee topic
    with pytest.raises(RecordDecodingError):
        v3_dex.new_empty_pool_from_log(
            RawLog(
                address=V3_FACTORY,
                topics=(POOL_CREATED_EVENT_SIGNATURE,),
                data=eth_abi.abi.encode(["int24", "address"], [10, address(2)]),
            )
        )

    with pytest.raises(RecordDecodingError):
        v3_dex.new_empty_pool_from_log(RawLog(address=V3_FACTORY, topics=(), data=b""))


async def test_get_all_pools_scans_windows(v2_dex: Dex, fake_reader: FakeChainReader):
    start = v2_dex.creation_block
    fake_reader.logs = [
        pair_created_log(V2_FACTORY, address(1), start),
        pair_created_log(V2_FACTORY, address(2), start + 150),
        # Duplicate announcement of the same pair
        pair_created_log(V2_FACTORY, address(2), start + 151),
        # Undecodable
        RawLog(
            address=V2_FACTORY,
            topics=(PAIR_CREATED_EVENT_SIGNATURE,),
            data=b"",
            block_number=start + 160,
        ),
        # Outside the range
        pair_created_log(V2_FACTORY, address(3), start + 500),
        # Another factory
        pair_created_log(V3_FACTORY, address(4), start + 10),
    ]

    pools = await v2_dex.get_all_pools(fake_reader, start, start + 299, step=100)

    assert sorted(pool.address for pool in pools) == [address(1), address(2)]
    assert sorted(fake_reader.log_queries) == [
        (start, start + 99),
        (start + 100, start + 199),
        (start + 200, start + 299),
    ]


async def test_get_all_pools_empty_range(v2_dex: Dex, fake_reader: FakeChainReader):
    assert await v2_dex.get_all_pools(fake_reader, 100, 99, step=10) == []
    assert fake_reader.log_queries == []


async def test_get_all_pools_from_factory(v2_dex: Dex, fake_reader: FakeChainReader):
    pairs = [address(i) for i in range(1, 6)]
    fake_reader.factory_pairs[V2_FACTORY] = pairs
    fake_reader.set_call(V2_FACTORY, "allPairsLength()", ["uint256"], [len(pairs)])

    pools = await v2_dex.get_all_pools_from_factory(fake_reader, step=2)

    assert [pool.address for pool in pools] == pairs


async def test_get_all_pools_from_v3_factory_fails(v3_dex: Dex, fake_reader: FakeChainReader):
    with pytest.raises(PoolsyncValueError):
        await v3_dex.get_all_pools_from_factory(fake_reader, step=2)


async def test_get_all_pool_data_v2(v2_dex: Dex, fake_reader: FakeChainReader):
    for i in range(1, 5):
        fake_reader.add_v2_pool(address(i), USDC, 6, WETH, 18, 1_000 * i, 2_000 * i)
    pools = [UniswapV2Pool(address=address(i)) for i in range(1, 7)]

    await v2_dex.get_all_pool_data(pools, fake_reader, batch_size=3)

    assert [pool.is_populated for pool in pools] == [True] * 4 + [False] * 2
    assert pools[3].reserve_1 == 8_000
    # Two chunks of three pools
    assert fake_reader.call_count == 2


async def test_get_all_pool_data_v3(v3_dex: Dex, fake_reader: FakeChainReader):
    fake_reader.add_v3_pool(
        address(1),
        token_a=USDC,
        token_a_decimals=6,
        token_b=WETH,
        token_b_decimals=18,
        fee=500,
        tick_spacing=10,
        liquidity=10**18,
        sqrt_price_x96=get_sqrt_ratio_at_tick(0),
        tick=0,
        liquidity_net={-100: 10**18, 100: -(10**18)},
    )
    pools = [
        UniswapV3Pool(address=address(1), fee=500, tick_spacing=10),
        # Reports empty pool data
        UniswapV3Pool(address=address(2), fee=500, tick_spacing=10),
    ]
    fake_reader.set_call(address(2), "token0()", ["address"], [ZERO_ADDRESS])
    fake_reader.set_call(address(2), "token1()", ["address"], [ZERO_ADDRESS])
    fake_reader.set_call(address(2), "fee()", ["uint24"], [0])
    fake_reader.set_call(address(2), "tickSpacing()", ["int24"], [0])

    await v3_dex.get_all_pool_data(pools, fake_reader, batch_size=1)

    populated, empty = pools
    assert populated.tokens == (USDC, WETH)
    assert populated.liquidity == 10**18
    # Only the word holding the current tick is fetched
    assert populated.tick_bitmap.keys() == {0}
    assert populated.tick_data == {100: -(10**18)}
    assert empty.is_populated is False


def register_v3_tiers(
    fake_reader: FakeChainReader,
    pools: dict[int, tuple[str, int]],
) -> None:
    """
    Register a pool with the given liquidity for each fee tier in `pools`, and the zero address for
    every other tier.
    """

    for fee in UNISWAP_V3_FEE_TIERS:
        if fee in pools:
            pool_address, liquidity = pools[fee]
            fake_reader.add_v3_pool(
                pool_address,
                token_a=USDC,
                token_a_decimals=6,
                token_b=WETH,
                token_b_decimals=18,
                fee=fee,
                tick_spacing=60,
                liquidity=liquidity,
                sqrt_price_x96=get_sqrt_ratio_at_tick(0),
                tick=0,
                liquidity_net={},
                factory=V3_FACTORY,
            )
        else:
            for tokens in ((USDC, WETH), (WETH, USDC)):
                fake_reader.set_call(
                    V3_FACTORY,
                    "getPool(address,address,uint24)",
                    ["address"],
                    [ZERO_ADDRESS],
                    [*tokens, fee],
                )


async def test_get_all_pools_for_pair_v3(v3_dex: Dex, fake_reader: FakeChainReader):
    register_v3_tiers(fake_reader, {500: (address(1), 10**18), 3_000: (address(2), 10**12)})

    pools = await v3_dex.get_all_pools_for_pair(USDC, WETH, fake_reader)

    assert sorted(pool.address for pool in pools) == [address(1), address(2)]
    assert all(pool.is_populated for pool in pools)


async def test_get_all_pools_for_pair_v2(v2_dex: Dex, fake_reader: FakeChainReader):
    fake_reader.add_v2_pool(address(1), USDC, 6, WETH, 18, 1_000, 2_000, factory=V2_FACTORY)

    (pool,) = await v2_dex.get_all_pools_for_pair(WETH, USDC, fake_reader)
    assert pool.address == address(1)
    assert pool.reserve_1 == 2_000


async def test_get_pool_with_best_liquidity_v3(v3_dex: Dex, fake_reader: FakeChainReader):
    register_v3_tiers(fake_reader, {500: (address(1), 10**18), 3_000: (address(2), 10**20)})

    pool = await v3_dex.get_pool_with_best_liquidity(USDC, WETH, fake_reader)
    assert pool is not None
    assert pool.address == address(2)
    assert pool.liquidity == 10**20


async def test_get_pool_with_best_liquidity_ignores_reverting_tiers(
    v3_dex: Dex, fake_reader: FakeChainReader
):
    # Only the 500 tier is registered, calls for every other tier revert
    fake_reader.add_v3_pool(
        address(1),
        token_a=USDC,
        token_a_decimals=6,
        token_b=WETH,
        token_b_decimals=18,
        fee=500,
        tick_spacing=10,
        liquidity=10**18,
        sqrt_price_x96=get_sqrt_ratio_at_tick(0),
        tick=0,
        liquidity_net={},
        factory=V3_FACTORY,
    )

    pool = await v3_dex.get_pool_with_best_liquidity(WETH, USDC, fake_reader)
    assert pool is not None
    assert pool.address == address(1)


async def test_get_pool_with_best_liquidity_none(
    v2_dex: Dex, v3_dex: Dex, fake_reader: FakeChainReader
):
    register_v3_tiers(fake_reader, {})
    fake_reader.set_call(
        V2_FACTORY, "getPair(address,address)", ["address"], [ZERO_ADDRESS], [USDC, WETH]
    )

    assert await v3_dex.get_pool_with_best_liquidity(USDC, WETH, fake_reader) is None
    assert await v2_dex.get_pool_with_best_liquidity(USDC, WETH, fake_reader) is None
