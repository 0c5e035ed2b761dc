from collections.abc import Iterator, Sequence
from typing import Any

import eth_abi.abi
from eth_abi.exceptions import DecodingError
from eth_typing import ChecksumAddress
from eth_utils.crypto import keccak

from poolsync.exceptions import PoolsyncValueError, RecordDecodingError
from poolsync.throttle import RequestThrottle
from poolsync.types.abstract import ChainReader
from poolsync.types.aliases import BlockNumber


def encode_function_calldata(
    function_prototype: str, function_arguments: Sequence[Any] | None
) -> bytes:
    """
    Encode the calldata to execute a call to the given function prototype, with ordered arguments.
    The resulting bytes array will include the 4-byte function selector, followed by the
    ABI-encoded arguments.
    """

    if function_arguments is None:
        function_arguments = ()

    return keccak(text=function_prototype)[:4] + eth_abi.abi.encode(
        types=extract_argument_types_from_function_prototype(function_prototype),
        args=function_arguments,
    )


def extract_argument_types_from_function_prototype(function_prototype: str) -> list[str]:
    """
    Extract the argument types from the function prototype.

    e.g. the argument types for the prototype 'function(address,uint256)' are ['address','uint256']
    """

    if function_args := function_prototype[
        function_prototype.find("(") + 1 : function_prototype.find(")") :
    ]:
        return function_args.split(",")

    return []


async def raw_call(
    reader: ChainReader,
    address: ChecksumAddress,
    function_prototype: str,
    return_types: Sequence[str],
    function_arguments: Sequence[Any] | None = None,
    block_identifier: BlockNumber | None = None,
    throttle: RequestThrottle | None = None,
) -> tuple[Any, ...]:
    """
    Perform an `eth_call` to the given function and return the decoded result. If a throttle is
    provided, it is consulted before the call.
    """

    if throttle is not None:
        await throttle.increment_or_sleep()
    result = await reader.call(
        to=address,
        data=encode_function_calldata(function_prototype, function_arguments),
        block_identifier=block_identifier,
    )
    try:
        return eth_abi.abi.decode(types=return_types, data=result)
    except DecodingError as exc:
        raise RecordDecodingError(reason=f"{function_prototype} at {address}: {exc}") from exc


def block_windows(
    start_block: BlockNumber,
    end_block: BlockNumber,
    step: int,
) -> Iterator[tuple[BlockNumber, BlockNumber]]:
    """
    Split the inclusive block range into consecutive inclusive windows of at most `step` blocks.
    """

    if step <= 0:
        raise PoolsyncValueError(message=f"Block step must be positive, got {step}")

    for window_start in range(start_block, end_block + 1, step):
        yield window_start, min(end_block, window_start + step - 1)


def chunked[T](items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """
    Yield consecutive slices of `items` holding at most `size` elements.
    """

    if size <= 0:
        raise PoolsyncValueError(message=f"Chunk size must be positive, got {size}")

    for start in range(0, len(items), size):
        yield items[start : start + size]
