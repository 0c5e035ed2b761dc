from . import v2_calls, v3_calls, v3_libraries
from .v2_pool import UniswapV2Pool
from .v3_pool import UniswapV3Pool

__all__ = (
    "UniswapV2Pool",
    "UniswapV3Pool",
    "v2_calls",
    "v3_calls",
    "v3_libraries",
)
