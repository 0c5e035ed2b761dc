def div_rounding_up(x: int, y: int) -> int:
    """
    Divide two unsigned values, rounding any remainder up.

    ref: https://github.com/Uniswap/v3-core/blob/main/contracts/libraries/UnsafeMath.sol
    """

    quotient, remainder = divmod(x, y)
    return quotient + (1 if remainder else 0)
