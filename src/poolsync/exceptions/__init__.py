from poolsync.exceptions.base import PoolsyncError, PoolsyncTypeError, PoolsyncValueError
from poolsync.exceptions.checkpoint import CheckpointError
from poolsync.exceptions.evm import EVMRevertError, InvalidUint256
from poolsync.exceptions.fetching import FetchingError, RecordDecodingError
from poolsync.exceptions.liquidity_pool import (
    InvalidSwapInputAmount,
    LiquidityMapWordMissing,
    LiquidityNetMissing,
    LiquidityPoolError,
    PoolNotSynced,
)
from poolsync.exceptions.pricing import PairNotFound

from . import (
    checkpoint,
    evm,
    fetching,
    liquidity_pool,
    pricing,
)

__all__ = (
    "CheckpointError",
    "EVMRevertError",
    "FetchingError",
    "InvalidSwapInputAmount",
    "InvalidUint256",
    "LiquidityMapWordMissing",
    "LiquidityNetMissing",
    "LiquidityPoolError",
    "PairNotFound",
    "PoolNotSynced",
    "PoolsyncError",
    "PoolsyncTypeError",
    "PoolsyncValueError",
    "RecordDecodingError",
    "checkpoint",
    "evm",
    "fetching",
    "liquidity_pool",
    "pricing",
)
