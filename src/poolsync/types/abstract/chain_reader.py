from typing import Protocol

from eth_typing import ChecksumAddress

from poolsync.types.aliases import BlockNumber
from poolsync.types.concrete import RawLog


class ChainReader(Protocol):
    """
    The read-only chain access needed by the sync pipeline.

    Implementations must raise on transport failures. The pipeline never retries a failed call.
    """

    async def get_block_number(self) -> BlockNumber: ...

    async def get_logs(
        self,
        topic0: bytes,
        address: ChecksumAddress | None,
        from_block: BlockNumber,
        to_block: BlockNumber,
    ) -> list[RawLog]: ...

    async def call(
        self,
        to: ChecksumAddress | None,
        data: bytes,
        block_identifier: BlockNumber | None = None,
    ) -> bytes:
        """
        Execute a read-only call. If `to` is None, `data` is executed as contract creation code and
        the bytes returned by the constructor are the result.
        """
        ...
