from poolsync.constants import MAX_UINT160
from poolsync.exceptions import EVMRevertError

# Range checks mirroring the Solidity SafeCast library, which reverts instead of truncating.


def mulmod(x: int, y: int, k: int) -> int:
    if k == 0:
        raise EVMRevertError(error="mulmod by zero")
    return (x * y) % k


def to_uint160(x: int) -> int:
    if not 0 <= x <= MAX_UINT160:
        raise EVMRevertError(error=f"{x} does not fit in uint160")
    return x
