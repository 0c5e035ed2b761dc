from .checksum_cache import get_checksum_address
from .config import settings
from .connection import Web3ChainReader, connect_web3_reader, get_chain_reader
from .logging import logger
from .version import __version__

# isort: split

from .checkpoint import SyncCheckpoint, load_checkpoint, save_checkpoint
from .dex import Dex
from .filters import (
    filter_blacklist,
    filter_blacklist_addresses,
    filter_blacklist_tokens,
    filter_by_reference_value,
    filter_by_usd_value,
)
from .pool import (
    Pool,
    pool_from_address,
    remove_empty_pools,
    simulate_route,
    simulate_route_mut,
    simulate_swap_mut_onchain,
)
from .sync import (
    generate_checkpoint,
    sync_pools,
    sync_pools_from_checkpoint,
    sync_pools_with_throttle,
)
from .throttle import RequestThrottle
from .types.abstract import ChainReader
from .types.concrete import RawLog
from .types.variants import DexVariant
from .uniswap import UniswapV2Pool, UniswapV3Pool

__all__ = (
    "ChainReader",
    "Dex",
    "DexVariant",
    "Pool",
    "RawLog",
    "RequestThrottle",
    "SyncCheckpoint",
    "UniswapV2Pool",
    "UniswapV3Pool",
    "Web3ChainReader",
    "__version__",
    "connect_web3_reader",
    "filter_blacklist",
    "filter_blacklist_addresses",
    "filter_blacklist_tokens",
    "filter_by_reference_value",
    "filter_by_usd_value",
    "generate_checkpoint",
    "get_chain_reader",
    "get_checksum_address",
    "load_checkpoint",
    "logger",
    "pool_from_address",
    "remove_empty_pools",
    "save_checkpoint",
    "settings",
    "simulate_route",
    "simulate_route_mut",
    "simulate_swap_mut_onchain",
    "sync_pools",
    "sync_pools_from_checkpoint",
    "sync_pools_with_throttle",
)
