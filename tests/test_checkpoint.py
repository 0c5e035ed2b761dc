import json
from pathlib import Path

import pytest

from poolsync.checkpoint import SyncCheckpoint, load_checkpoint, save_checkpoint
from poolsync.checksum_cache import get_checksum_address
from poolsync.dex import Dex
from poolsync.exceptions import CheckpointError
from poolsync.types.variants import DexVariant
from poolsync.uniswap.v2_pool import UniswapV2Pool
from poolsync.uniswap.v3_libraries.tick_math import get_sqrt_ratio_at_tick
from poolsync.uniswap.v3_pool import UniswapV3Pool

WETH = get_checksum_address("0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2")
USDC = get_checksum_address("0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48")

DEXES = [
    Dex("0x5C69bEe701ef814a2B6a3EDD4B1652CB9cc5aA6f", DexVariant.UNISWAP_V2, 10_000_835),
    Dex("0x1F98431c8aD98523631AE4a59f267346ea31F984", DexVariant.UNISWAP_V3, 12_369_621),
]


@pytest.fixture
def pools() -> list[UniswapV2Pool | UniswapV3Pool]:
    return [
        UniswapV2Pool(
            address="0xB4e16d0168e52d35CaCD2c6185b44281Ec28C9Dc",
            token_a=USDC,
            token_a_decimals=6,
            token_b=WETH,
            token_b_decimals=18,
            reserve_0=51_171_639_858_229,
            reserve_1=27_688_108_416_622_154_513_698,
        ),
        UniswapV3Pool(
            address="0x88e6A0c2dDD26FEEb64F039a2c41296FcB3f5640",
            token_a=USDC,
            token_a_decimals=6,
            token_b=WETH,
            token_b_decimals=18,
            liquidity=10**20,
            sqrt_price=get_sqrt_ratio_at_tick(-201_000),
            tick=-201_000,
            tick_spacing=10,
            fee=500,
            liquidity_net=0,
            tick_word=2**255 + 1,
            tick_bitmap={-79: 2**255 + 1, -78: 0},
            tick_data={-202_230: 10**18, -199_680: -(10**18)},
        ),
    ]


def test_checkpoint_round_trip(tmp_path: Path, pools):
    path = tmp_path / "checkpoint.json"
    save_checkpoint(DEXES, pools, 19_000_000, path)

    dexes, loaded_pools, block = load_checkpoint(path)

    assert dexes == DEXES
    assert loaded_pools == pools
    assert block == 19_000_000
    assert isinstance(loaded_pools[1], UniswapV3Pool)
    assert loaded_pools[1].tick_bitmap[-79] == 2**255 + 1


def test_checkpoint_document_layout(tmp_path: Path, pools):
    path = tmp_path / "checkpoint.json"
    save_checkpoint(DEXES, pools, 19_000_000, path)

    document = json.loads(path.read_text())
    assert document.keys() == {"timestamp", "block_number", "dexes", "pools"}
    assert document["dexes"][0]["variant"] == "UniswapV2"
    assert [pool["variant"] for pool in document["pools"]] == ["UniswapV2", "UniswapV3"]
    SyncCheckpoint.model_validate(document)


def test_save_replaces_existing_file(tmp_path: Path, pools):
    path = tmp_path / "checkpoint.json"
    save_checkpoint(DEXES, pools, 1, path)
    save_checkpoint(DEXES[:1], pools[:1], 2, path)

    dexes, loaded_pools, block = load_checkpoint(path)
    assert (len(dexes), len(loaded_pools), block) == (1, 1, 2)
    # No temporary files remain
    assert list(tmp_path.iterdir()) == [path]


def test_save_creates_parent_directory(tmp_path: Path):
    path = tmp_path / "nested" / "dir" / "checkpoint.json"
    save_checkpoint(DEXES, [], 1, path)
    assert load_checkpoint(path) == (DEXES, [], 1)


def test_load_missing_checkpoint(tmp_path: Path):
    with pytest.raises(CheckpointError, match="file not found"):
        load_checkpoint(tmp_path / "missing.json")


def test_load_malformed_json(tmp_path: Path):
    path = tmp_path / "checkpoint.json"
    path.write_text("{not json")
    with pytest.raises(CheckpointError, match="invalid JSON"):
        load_checkpoint(path)


def test_load_undecodable_bytes(tmp_path: Path):
    path = tmp_path / "checkpoint.json"
    path.write_bytes(b"\xff\xfe\x00garbage")
    with pytest.raises(CheckpointError, match="invalid JSON"):
        load_checkpoint(path)

    path.write_bytes(b'{"block_number": "\xff"}')
    with pytest.raises(CheckpointError, match="invalid JSON"):
        load_checkpoint(path)


def test_load_directory(tmp_path: Path):
    with pytest.raises(CheckpointError, match="unreadable file"):
        load_checkpoint(tmp_path)


@pytest.mark.parametrize(
    "document",
    [
        {},
        {"timestamp": 0, "block_number": -1, "dexes": [], "pools": []},
        {
            "timestamp": 0,
            "block_number": 1,
            "dexes": [],
            "pools": [{"variant": "Balancer", "address": WETH}],
        },
        {
            "timestamp": 0,
            "block_number": 1,
            "dexes": [{"factory_address": "0x1234", "variant": "UniswapV2", "creation_block": 0}],
            "pools": [],
        },
    ],
)
def test_load_invalid_document(tmp_path: Path, document):
    path = tmp_path / "checkpoint.json"
    path.write_text(json.dumps(document))
    with pytest.raises(CheckpointError, match="invalid checkpoint"):
        load_checkpoint(path)
