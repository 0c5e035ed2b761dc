import dataclasses

from eth_typing import ChecksumAddress

from poolsync.types.aliases import BlockNumber


@dataclasses.dataclass(slots=True, frozen=True)
class RawLog:
    """
    An event log as returned by `eth_getLogs`, reduced to the fields used for decoding.
    """

    address: ChecksumAddress
    topics: tuple[bytes, ...]
    data: bytes
    block_number: BlockNumber = 0
