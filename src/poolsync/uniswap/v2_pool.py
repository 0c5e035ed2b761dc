from fractions import Fraction
from typing import Literal

import eth_abi.abi
from eth_abi.exceptions import DecodingError
from eth_typing import ChecksumAddress
from pydantic import BaseModel, ConfigDict

from poolsync.checksum_cache import get_checksum_address
from poolsync.constants import MAX_UINT128, ZERO_ADDRESS
from poolsync.exceptions import (
    EVMRevertError,
    InvalidSwapInputAmount,
    PoolNotSynced,
    PoolsyncValueError,
    RecordDecodingError,
)
from poolsync.logging import logger
from poolsync.types.concrete import RawLog
from poolsync.types.variants import DexVariant
from poolsync.uniswap.v2_functions import (
    constant_product_calc_exact_in,
    convert_to_common_decimals,
    convert_to_decimals,
)
from poolsync.validation.evm_values import (
    ValidatedAddress,
    ValidatedUint8,
    ValidatedUint24,
    ValidatedUint128,
)

# The V2 fee is expressed in units of 1/100_000, i.e. 300 is 0.3%
UNISWAP_V2_FEE = 300
UNISWAP_V2_FEE_DENOMINATOR = 100_000


class UniswapV2Pool(BaseModel):
    """
    A constant product (x*y=k) pool.

    `token_a` / `reserve_0` and `token_b` / `reserve_1` correspond to the pair contract's token0 and
    token1. A pool built from a "created" event holds only its address until populated.
    """

    model_config = ConfigDict(validate_assignment=True)

    variant: Literal["UniswapV2"] = DexVariant.UNISWAP_V2.value
    address: ValidatedAddress
    token_a: ValidatedAddress = ZERO_ADDRESS
    token_a_decimals: ValidatedUint8 = 0
    token_b: ValidatedAddress = ZERO_ADDRESS
    token_b_decimals: ValidatedUint8 = 0
    reserve_0: ValidatedUint128 = 0
    reserve_1: ValidatedUint128 = 0
    fee: ValidatedUint24 = UNISWAP_V2_FEE

    def __str__(self) -> str:
        return self.address

    @property
    def fee_fraction(self) -> Fraction:
        return Fraction(self.fee, UNISWAP_V2_FEE_DENOMINATOR)

    @property
    def is_populated(self) -> bool:
        return self.token_a != ZERO_ADDRESS

    @property
    def tokens(self) -> tuple[ChecksumAddress, ChecksumAddress]:
        return self.token_a, self.token_b

    def _swap_side(self, token_in: str) -> tuple[int, int, int, int, bool]:
        """
        Return (reserves_in, decimals_in, reserves_out, decimals_out, zero_for_one) for a swap
        beginning with `token_in`.
        """

        token_in = get_checksum_address(token_in)
        if token_in == self.token_a:
            return self.reserve_0, self.token_a_decimals, self.reserve_1, self.token_b_decimals, True
        if token_in == self.token_b:
            return (
                self.reserve_1,
                self.token_b_decimals,
                self.reserve_0,
                self.token_a_decimals,
                False,
            )
        raise PoolsyncValueError(
            message=f"Could not identify token_in: {token_in}! Pool holds: {self.token_a} {self.token_b}"  # noqa:E501
        )

    def calculate_price(self, base_token: str) -> float:
        """
        Return the number of `token_b` per `token_a` (or the reverse if `base_token` is
        `token_b`), adjusted for token decimals.
        """

        base_token = get_checksum_address(base_token)
        if base_token not in self.tokens:
            raise PoolsyncValueError(message=f"{base_token} is not held by pool {self.address}")
        if self.reserve_0 == 0 or self.reserve_1 == 0:
            raise PoolNotSynced(self.address)

        reserve_0, reserve_1, _ = convert_to_common_decimals(
            self.reserve_0, self.token_a_decimals, self.reserve_1, self.token_b_decimals
        )
        price = Fraction(reserve_1, reserve_0)
        return float(price if base_token == self.token_a else 1 / price)

    def simulate_swap(self, token_in: str, amount_in: int) -> int:
        """
        Calculate the output for an exact input swap at current reserves.
        """

        if amount_in <= 0:
            raise InvalidSwapInputAmount

        reserves_in, decimals_in, reserves_out, decimals_out, _ = self._swap_side(token_in)
        if reserves_in == 0 or reserves_out == 0:
            raise PoolNotSynced(self.address)

        common_reserves_in, common_reserves_out, common_decimals = convert_to_common_decimals(
            reserves_in, decimals_in, reserves_out, decimals_out
        )
        amount_out = constant_product_calc_exact_in(
            amount_in=convert_to_decimals(amount_in, decimals_in, common_decimals),
            reserves_in=common_reserves_in,
            reserves_out=common_reserves_out,
            fee=self.fee_fraction,
        )
        return convert_to_decimals(amount_out, common_decimals, decimals_out)

    def simulate_swap_mut(self, token_in: str, amount_in: int) -> int:
        """
        Calculate the output for an exact input swap, then update the reserves to reflect it.

        Raises `EVMRevertError` and leaves the reserves unchanged if the new input reserve does not
        fit in a uint128.
        """

        amount_out = self.simulate_swap(token_in, amount_in)
        _, _, _, _, zero_for_one = self._swap_side(token_in)

        reserve_in = self.reserve_0 if zero_for_one else self.reserve_1
        if reserve_in + amount_in > MAX_UINT128:
            raise EVMRevertError(error=f"input reserve {reserve_in + amount_in} overflows uint128")

        if zero_for_one:
            self.reserve_0 += amount_in
            self.reserve_1 -= amount_out
        else:
            self.reserve_1 += amount_in
            self.reserve_0 -= amount_out

        return amount_out

    def update_from_sync_log(self, log: RawLog) -> None:
        """
        Apply the reserves recorded by a `Sync(uint112,uint112)` event emitted by this pool.
        """

        if get_checksum_address(log.address) != self.address:
            raise PoolsyncValueError(message=f"Log from {log.address} does not match {self.address}")

        try:
            reserve_0, reserve_1 = eth_abi.abi.decode(
                types=["uint112", "uint112"],
                data=log.data,
            )
        except DecodingError as exc:
            raise RecordDecodingError(reason=f"Sync log for {self.address}: {exc}") from exc

        self.reserve_0 = reserve_0
        self.reserve_1 = reserve_1
        logger.debug(f"{self.address}: reserves updated to {reserve_0}, {reserve_1}")
