"""
Checkpoint persistence: the exchanges, their synced pools and the block the sync observed, stored
as a JSON document so a later sync can resume from the following block.
"""

import contextlib
import json
import os
import tempfile
import time
from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel, NonNegativeInt, ValidationError

from poolsync.dex import Dex
from poolsync.exceptions import CheckpointError
from poolsync.logging import logger
from poolsync.pool import Pool
from poolsync.types.aliases import BlockNumber


class SyncCheckpoint(BaseModel):
    timestamp: NonNegativeInt
    block_number: NonNegativeInt
    dexes: list[Dex]
    pools: list[Pool]


def save_checkpoint(
    dexes: Sequence[Dex],
    pools: Sequence[Pool],
    block: BlockNumber,
    path: Path,
) -> None:
    """
    Write the checkpoint to `path`, replacing any existing file. The document is written to a
    temporary file in the same directory first, so a reader never observes a partial file.
    """

    checkpoint = SyncCheckpoint(
        timestamp=int(time.time()),
        block_number=block,
        dexes=list(dexes),
        pools=list(pools),
    )

    path = path.expanduser().absolute()
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as file:
            json.dump(checkpoint.model_dump(mode="json"), file)
        os.replace(temp_name, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(temp_name)
        raise

    logger.info(f"Saved checkpoint with {len(pools)} pools at block {block} to {path}")


def load_checkpoint(path: Path) -> tuple[list[Dex], list[Pool], BlockNumber]:
    """
    Read a checkpoint written by `save_checkpoint`.

    Raises `CheckpointError` if the file is missing or malformed. Nothing is returned unless the
    whole document validates.
    """

    try:
        contents = path.read_bytes()
    except FileNotFoundError as exc:
        raise CheckpointError(path, "file not found") from exc
    except OSError as exc:
        raise CheckpointError(path, f"unreadable file: {exc}") from exc

    try:
        document = json.loads(contents)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise CheckpointError(path, f"invalid JSON: {exc}") from exc

    try:
        checkpoint = SyncCheckpoint.model_validate(document)
    except ValidationError as exc:
        raise CheckpointError(path, f"invalid checkpoint: {exc}") from exc

    logger.debug(
        f"Loaded checkpoint from {path}: {len(checkpoint.pools)} pools at block {checkpoint.block_number}"  # noqa:E501
    )
    return checkpoint.dexes, checkpoint.pools, checkpoint.block_number
