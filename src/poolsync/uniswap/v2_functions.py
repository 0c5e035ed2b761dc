from fractions import Fraction


def convert_to_decimals(amount: int, decimals: int, target_decimals: int) -> int:
    """
    Rescale an integer amount from `decimals` to `target_decimals`, truncating when scaling down.
    """

    if target_decimals >= decimals:
        return amount * 10 ** (target_decimals - decimals)
    return amount // 10 ** (decimals - target_decimals)


def convert_to_common_decimals(
    amount_a: int,
    decimals_a: int,
    amount_b: int,
    decimals_b: int,
) -> tuple[int, int, int]:
    """
    Rescale two amounts to the larger of their decimal counts. Returns the rescaled amounts and the
    common decimal count.
    """

    common_decimals = max(decimals_a, decimals_b)
    return (
        convert_to_decimals(amount_a, decimals_a, common_decimals),
        convert_to_decimals(amount_b, decimals_b, common_decimals),
        common_decimals,
    )


def constant_product_calc_exact_in(
    amount_in: int,
    reserves_in: int,
    reserves_out: int,
    fee: Fraction,
) -> int:
    """
    Calculate the amount out for an exact input from a constant product (x*y=k) invariant pool.

    The fee is deducted from the input first, then the output reserve is solved from
    (x + dx) * (y - dy) = k. The new output reserve is rounded up, so the output rounds down.
    """

    amount_in_less_fee = amount_in * (fee.denominator - fee.numerator) // fee.denominator
    k = reserves_in * reserves_out
    new_reserves_out = -(-k // (reserves_in + amount_in_less_fee))
    return reserves_out - new_reserves_out
