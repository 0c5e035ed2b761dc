from . import uniswap_v2
from .uniswap_v2 import (
    get_pairs_batch_request,
    get_pool_data_batch_request,
    sync_pools_batch_request,
)

__all__ = (
    "get_pairs_batch_request",
    "get_pool_data_batch_request",
    "sync_pools_batch_request",
    "uniswap_v2",
)
