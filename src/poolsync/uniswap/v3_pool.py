import dataclasses
from typing import Literal

import eth_abi.abi
from eth_abi.exceptions import DecodingError
from eth_typing import ChecksumAddress
from pydantic import BaseModel, ConfigDict

from poolsync.checksum_cache import get_checksum_address
from poolsync.constants import ZERO_ADDRESS
from poolsync.exceptions import (
    InvalidSwapInputAmount,
    LiquidityNetMissing,
    PoolNotSynced,
    PoolsyncValueError,
    RecordDecodingError,
)
from poolsync.logging import logger
from poolsync.types.aliases import Tick, Word
from poolsync.types.concrete import RawLog
from poolsync.types.variants import DexVariant
from poolsync.uniswap.v3_functions import price_from_sqrt, virtual_reserves
from poolsync.uniswap.v3_libraries.liquidity_math import add_delta
from poolsync.uniswap.v3_libraries.swap_math import compute_swap_step
from poolsync.uniswap.v3_libraries.tick_bitmap import (
    next_initialized_tick_within_one_word,
    word_position,
)
from poolsync.uniswap.v3_libraries.tick_math import (
    MAX_SQRT_RATIO,
    MAX_TICK,
    MIN_SQRT_RATIO,
    MIN_TICK,
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
)
from poolsync.validation.evm_values import (
    ValidatedAddress,
    ValidatedInt24,
    ValidatedInt128,
    ValidatedUint8,
    ValidatedUint24,
    ValidatedUint128,
    ValidatedUint256,
)


@dataclasses.dataclass(slots=True, eq=False)
class SwapState:
    amount_specified_remaining: int
    amount_calculated: int
    sqrt_price_x96: int
    tick: int
    liquidity: int


@dataclasses.dataclass(slots=True, eq=False)
class StepComputations:
    sqrt_price_start_x96: int = 0
    sqrt_price_next_x96: int = 0
    tick_next: int = 0
    initialized: bool = False
    amount_in: int = 0
    amount_out: int = 0
    fee_amount: int = 0


class UniswapV3Pool(BaseModel):
    """
    A concentrated liquidity pool.

    `tick_word` mirrors the initialization bitmap word holding the current tick and `liquidity_net`
    the net liquidity registered at the current tick. `tick_bitmap` and `tick_data` hold every
    bitmap word and initialized tick liquidity net known for the pool. The simulator reads only
    these mappings and fails if a needed word or tick is absent.
    """

    model_config = ConfigDict(validate_assignment=True)

    variant: Literal["UniswapV3"] = DexVariant.UNISWAP_V3.value
    address: ValidatedAddress
    token_a: ValidatedAddress = ZERO_ADDRESS
    token_a_decimals: ValidatedUint8 = 0
    token_b: ValidatedAddress = ZERO_ADDRESS
    token_b_decimals: ValidatedUint8 = 0
    liquidity: ValidatedUint128 = 0
    sqrt_price: ValidatedUint256 = 0
    tick: ValidatedInt24 = 0
    tick_spacing: ValidatedInt24 = 0
    fee: ValidatedUint24 = 0
    liquidity_net: ValidatedInt128 = 0
    tick_word: ValidatedUint256 = 0
    tick_bitmap: dict[Word, ValidatedUint256] = {}
    tick_data: dict[Tick, ValidatedInt128] = {}

    def __str__(self) -> str:
        return self.address

    @property
    def is_populated(self) -> bool:
        return self.token_a != ZERO_ADDRESS

    @property
    def tokens(self) -> tuple[ChecksumAddress, ChecksumAddress]:
        return self.token_a, self.token_b

    def _check_synced(self) -> None:
        if self.sqrt_price == 0 or self.tick_spacing <= 0:
            raise PoolNotSynced(self.address)

    def _zero_for_one(self, token_in: str) -> bool:
        token_in = get_checksum_address(token_in)
        if token_in == self.token_a:
            return True
        if token_in == self.token_b:
            return False
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
        if self.sqrt_price == 0:
            raise PoolNotSynced(self.address)

        price = price_from_sqrt(self.sqrt_price, self.token_a_decimals, self.token_b_decimals)
        if price == 0:
            raise PoolNotSynced(self.address)
        return price if base_token == self.token_a else 1 / price

    def calculate_virtual_reserves(self) -> tuple[int, int]:
        """
        Return the constant product reserves (token_a, token_b) equivalent to the active liquidity.
        """

        return virtual_reserves(
            self.sqrt_price,
            self.liquidity,
            self.token_a_decimals,
            self.token_b_decimals,
        )

    def _current_word_bitmap(self) -> int:
        return self.tick_bitmap.get(word_position(self.tick, self.tick_spacing), 0)

    def _calculate_swap(self, zero_for_one: bool, amount_in: int) -> SwapState:
        """
        Run the tick crossing loop for an exact input swap and return the final state.
        """

        sqrt_price_limit_x96 = MIN_SQRT_RATIO + 1 if zero_for_one else MAX_SQRT_RATIO - 1

        state = SwapState(
            amount_specified_remaining=amount_in,
            amount_calculated=0,
            sqrt_price_x96=self.sqrt_price,
            tick=self.tick,
            liquidity=self.liquidity,
        )

        while state.amount_specified_remaining > 0 and state.sqrt_price_x96 != sqrt_price_limit_x96:
            step = StepComputations(sqrt_price_start_x96=state.sqrt_price_x96)

            # Raises LiquidityMapWordMissing if the in-memory bitmap is exhausted
            step.tick_next, step.initialized = next_initialized_tick_within_one_word(
                tick_bitmap=self.tick_bitmap,
                tick=state.tick,
                tick_spacing=self.tick_spacing,
                less_than_or_equal=zero_for_one,
            )
            step.tick_next = max(MIN_TICK, min(MAX_TICK, step.tick_next))
            step.sqrt_price_next_x96 = get_sqrt_ratio_at_tick(step.tick_next)

            if zero_for_one:
                sqrt_price_target_x96 = max(step.sqrt_price_next_x96, sqrt_price_limit_x96)
            else:
                sqrt_price_target_x96 = min(step.sqrt_price_next_x96, sqrt_price_limit_x96)

            (
                state.sqrt_price_x96,
                step.amount_in,
                step.amount_out,
                step.fee_amount,
            ) = compute_swap_step(
                sqrt_ratio_x96_current=state.sqrt_price_x96,
                sqrt_ratio_x96_target=sqrt_price_target_x96,
                liquidity=state.liquidity,
                amount_remaining=state.amount_specified_remaining,
                fee_pips=self.fee,
            )
            state.amount_specified_remaining -= step.amount_in + step.fee_amount
            state.amount_calculated -= step.amount_out

            if state.sqrt_price_x96 == step.sqrt_price_next_x96:
                if step.initialized:
                    try:
                        liquidity_net = self.tick_data[step.tick_next]
                    except KeyError:
                        raise LiquidityNetMissing(step.tick_next) from None
                    state.liquidity = add_delta(
                        state.liquidity,
                        -liquidity_net if zero_for_one else liquidity_net,
                    )
                state.tick = step.tick_next - 1 if zero_for_one else step.tick_next
            elif state.sqrt_price_x96 != step.sqrt_price_start_x96:
                state.tick = get_tick_at_sqrt_ratio(state.sqrt_price_x96)

        return state

    def simulate_swap(self, token_in: str, amount_in: int) -> int:
        """
        Calculate the output for an exact input swap. The pool is not modified.
        """

        if amount_in <= 0:
            raise InvalidSwapInputAmount
        zero_for_one = self._zero_for_one(token_in)
        self._check_synced()

        return -self._calculate_swap(zero_for_one, amount_in).amount_calculated

    def simulate_swap_mut(self, token_in: str, amount_in: int) -> int:
        """
        Calculate the output for an exact input swap, then move the pool's price, tick and active
        liquidity to the post-swap values.
        """

        if amount_in <= 0:
            raise InvalidSwapInputAmount
        zero_for_one = self._zero_for_one(token_in)
        self._check_synced()

        final_state = self._calculate_swap(zero_for_one, amount_in)

        self.liquidity = final_state.liquidity
        self.sqrt_price = final_state.sqrt_price_x96
        self.tick = final_state.tick
        self.tick_word = self._current_word_bitmap()
        self.liquidity_net = self.tick_data.get(final_state.tick, 0)

        return -final_state.amount_calculated

    def update_liquidity_data(
        self,
        tick_bitmap: dict[Word, int],
        tick_data: dict[Tick, int],
    ) -> None:
        """
        Record fetched bitmap words and tick liquidity nets, refreshing `tick_word` and
        `liquidity_net` for the current tick.
        """

        if self.tick_spacing <= 0:
            raise PoolNotSynced(self.address)

        # Known ticks inside a refreshed word are replaced by the fetched set
        retained_ticks = {
            tick: liquidity_net
            for tick, liquidity_net in self.tick_data.items()
            if word_position(tick, self.tick_spacing) not in tick_bitmap
        }
        self.tick_bitmap = self.tick_bitmap | tick_bitmap
        self.tick_data = retained_ticks | tick_data
        self.tick_word = self._current_word_bitmap()
        self.liquidity_net = self.tick_data.get(self.tick, 0)

    def update_from_swap_log(self, log: RawLog) -> None:
        """
        Apply the price, liquidity and tick recorded by a
        `Swap(address,address,int256,int256,uint160,uint128,int24)` event emitted by this pool.
        """

        if get_checksum_address(log.address) != self.address:
            raise PoolsyncValueError(message=f"Log from {log.address} does not match {self.address}")
        if self.tick_spacing <= 0:
            raise PoolNotSynced(self.address)

        try:
            _, _, sqrt_price_x96, liquidity, tick = eth_abi.abi.decode(
                types=["int256", "int256", "uint160", "uint128", "int24"],
                data=log.data,
            )
        except DecodingError as exc:
            raise RecordDecodingError(reason=f"Swap log for {self.address}: {exc}") from exc

        self.sqrt_price = sqrt_price_x96
        self.liquidity = liquidity
        self.tick = tick
        self.tick_word = self._current_word_bitmap()
        self.liquidity_net = self.tick_data.get(tick, 0)
        logger.debug(f"{self.address}: price {sqrt_price_x96}, liquidity {liquidity}, tick {tick}")
