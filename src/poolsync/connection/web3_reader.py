from json import JSONDecodeError
from typing import TYPE_CHECKING, cast

import tenacity
from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from ujson import loads as ujson_loads
from web3 import AsyncBaseProvider, AsyncWeb3, JSONBaseProvider
from web3.types import FilterParams, RPCResponse, TxParams

from poolsync.checksum_cache import get_checksum_address
from poolsync.exceptions import PoolsyncValueError
from poolsync.logging import logger
from poolsync.types.aliases import BlockNumber
from poolsync.types.concrete import RawLog


def _fast_decode_rpc_response(raw_response: bytes) -> RPCResponse:
    """
    Decode the JSON-RPC response using ujson.
    """

    try:
        return cast("RPCResponse", ujson_loads(raw_response))
    except ValueError:
        # Re-raise as a dummy JSONDecodeError so web3py's exception handling works as intended.
        msg = "JSON failure"
        raise JSONDecodeError(msg, "[]", 0) from None


class Web3ChainReader:
    """
    A `ChainReader` backed by an `AsyncWeb3` instance. Transport errors raised by web3 are passed to
    the caller unchanged.
    """

    def __init__(self, w3: AsyncWeb3[AsyncBaseProvider]) -> None:
        self.w3 = w3

    async def get_block_number(self) -> BlockNumber:
        return await self.w3.eth.get_block_number()

    async def get_logs(
        self,
        topic0: bytes,
        address: ChecksumAddress | None,
        from_block: BlockNumber,
        to_block: BlockNumber,
    ) -> list[RawLog]:
        filter_params = FilterParams(
            fromBlock=from_block,
            toBlock=to_block,
            topics=[HexBytes(topic0)],
        )
        if address is not None:
            filter_params["address"] = address

        return [
            RawLog(
                address=get_checksum_address(log["address"]),
                topics=tuple(bytes(topic) for topic in log["topics"]),
                data=bytes(log["data"]),
                block_number=log["blockNumber"],
            )
            for log in await self.w3.eth.get_logs(filter_params)
        ]

    async def call(
        self,
        to: ChecksumAddress | None,
        data: bytes,
        block_identifier: BlockNumber | None = None,
    ) -> bytes:
        tx_params = TxParams(data=HexBytes(data))
        if to is not None:
            tx_params["to"] = to

        return bytes(
            await self.w3.eth.call(
                tx_params,
                block_identifier=block_identifier if block_identifier is not None else "latest",
            )
        )


async def connect_web3_reader(
    w3: AsyncWeb3[AsyncBaseProvider],
    *,
    optimize: bool = True,
) -> Web3ChainReader:
    """
    Wait for the Web3 instance to report a connection, then wrap it in a `Web3ChainReader`.

    With `optimize`, the middleware is removed and RPC responses are decoded with ujson.
    """

    async_w3_connected_check_with_retry = tenacity.AsyncRetrying(
        stop=tenacity.stop_after_delay(10),
        wait=tenacity.wait_exponential_jitter(),
        retry=tenacity.retry_if_result(lambda result: result is False),
    )
    try:
        await async_w3_connected_check_with_retry(w3.is_connected)
    except tenacity.RetryError as exc:
        raise PoolsyncValueError(message="Web3 instance is not connected.") from exc

    if optimize:
        w3.middleware_onion.clear()
        if TYPE_CHECKING:
            assert isinstance(w3.provider, JSONBaseProvider)
        w3.provider.decode_rpc_response = _fast_decode_rpc_response

    logger.debug(f"Connected to chain ID {await w3.eth.chain_id}")
    return Web3ChainReader(w3)
