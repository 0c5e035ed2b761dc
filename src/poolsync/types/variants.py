from enum import StrEnum


class DexVariant(StrEnum):
    """
    The pool family deployed by an exchange factory.
    """

    UNISWAP_V2 = "UniswapV2"
    UNISWAP_V3 = "UniswapV3"
