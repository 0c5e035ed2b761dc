from pathlib import Path

from web3 import AsyncHTTPProvider, AsyncIPCProvider, AsyncWeb3, WebSocketProvider

from poolsync.config import settings
from poolsync.exceptions import PoolsyncValueError

from .web3_reader import Web3ChainReader, connect_web3_reader


async def get_chain_reader() -> Web3ChainReader:
    """
    Build a `Web3ChainReader` for the RPC endpoint in the active configuration.
    """

    match settings.rpc:
        case None:
            raise PoolsyncValueError(message="No RPC endpoint is configured.")
        case Path() as ipc_path:
            w3 = AsyncWeb3(AsyncIPCProvider(ipc_path))
        case url if url.scheme in ("ws", "wss"):
            w3 = AsyncWeb3(WebSocketProvider(str(url)))
            await w3.provider.connect()
        case url:
            w3 = AsyncWeb3(AsyncHTTPProvider(str(url)))

    return await connect_web3_reader(w3)


__all__ = (
    "Web3ChainReader",
    "connect_web3_reader",
    "get_chain_reader",
)
