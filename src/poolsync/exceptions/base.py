class PoolsyncError(Exception):
    """
    Base exception used as the parent class for all exceptions raised by this package.

    Calling code should catch `PoolsyncError` and derived classes separately before general
    exceptions, e.g.:

    ```
    try:
        await poolsync.sync_pools(...)
    except SpecificPoolsyncError:
        ... # handle a specific exception
    except PoolsyncError:
        ... # handle non-specific poolsync exception
    except Exception:
        ... # handle exceptions raised by 3rd party dependencies (e.g. web3 transport errors)
    ```

    An optional string-formatted message may be attached to the exception and retrieved by accessing
    the `.message` attribute.
    """

    message: str | None = None

    def __init__(self, message: str | None = None) -> None:
        if message:
            self.message = message
            super().__init__(message)


class PoolsyncValueError(PoolsyncError): ...


class PoolsyncTypeError(PoolsyncError): ...
