from typing import Any

from eth_typing import ChecksumAddress

from poolsync.exceptions.base import PoolsyncError


class PairNotFound(PoolsyncError):
    """
    Raised when no pool pairing a token with the reference token holds enough liquidity on any of
    the searched exchanges.
    """

    def __init__(self, token: ChecksumAddress, reference_token: ChecksumAddress) -> None:
        self.token = token
        self.reference_token = reference_token
        super().__init__(
            message=f"No pool pairing {token} with {reference_token} above the liquidity floor."
        )

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.token, self.reference_token)
