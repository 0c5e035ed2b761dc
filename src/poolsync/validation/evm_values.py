from typing import Annotated

from eth_typing import ChecksumAddress
from pydantic import BeforeValidator, Field

from poolsync.checksum_cache import get_checksum_address
from poolsync.constants import (
    MAX_INT24,
    MAX_INT128,
    MAX_UINT8,
    MAX_UINT24,
    MAX_UINT128,
    MAX_UINT256,
    MIN_INT24,
    MIN_INT128,
    MIN_UINT8,
    MIN_UINT24,
    MIN_UINT128,
    MIN_UINT256,
)

type ValidatedAddress = Annotated[ChecksumAddress, BeforeValidator(get_checksum_address)]

type ValidatedInt24 = Annotated[int, Field(strict=True, ge=MIN_INT24, le=MAX_INT24)]
type ValidatedInt128 = Annotated[int, Field(strict=True, ge=MIN_INT128, le=MAX_INT128)]

type ValidatedUint8 = Annotated[int, Field(strict=True, ge=MIN_UINT8, le=MAX_UINT8)]
type ValidatedUint24 = Annotated[int, Field(strict=True, ge=MIN_UINT24, le=MAX_UINT24)]
type ValidatedUint128 = Annotated[int, Field(strict=True, ge=MIN_UINT128, le=MAX_UINT128)]
type ValidatedUint256 = Annotated[int, Field(strict=True, ge=MIN_UINT256, le=MAX_UINT256)]
