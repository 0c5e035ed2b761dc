import tomllib
from pathlib import Path
from typing import Annotated

import tomlkit
from pydantic import Field, HttpUrl, PlainSerializer, WebsocketUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from poolsync.logging import logger

CONFIG_DIR = Path.home() / ".config" / "poolsync"
CONFIG_FILE = CONFIG_DIR / "config.toml"

# Serialize paths as a string representation of the absolute path
type SerializedPath = Annotated[
    Path,
    PlainSerializer(lambda path: str(path.absolute()), return_type=str),
]


class Settings(BaseSettings):
    """
    Defaults for the sync pipeline. Values may be overridden by environment variables prefixed with
    `POOLSYNC_`, e.g. `POOLSYNC_THROTTLE_LIMIT=10`.
    """

    model_config = SettingsConfigDict(env_prefix="POOLSYNC_")

    rpc: HttpUrl | WebsocketUrl | SerializedPath | None = None

    # Maximum external calls per second, 0 disables throttling
    throttle_limit: int = Field(default=0, ge=0)

    # Number of blocks covered by each log query during discovery
    log_block_step: int = Field(default=100_000, gt=0)

    v2_pool_data_batch_size: int = Field(default=127, gt=0)
    v3_pool_data_batch_size: int = Field(default=76, gt=0)
    v2_sync_batch_size: int = Field(default=250, gt=0)

    checkpoint_path: SerializedPath | None = None

    @field_validator("rpc", "checkpoint_path", mode="after")
    def validate_paths(
        cls,  # noqa: N805
        value: HttpUrl | WebsocketUrl | Path | None,
    ) -> HttpUrl | WebsocketUrl | Path | None:
        """
        Convert file paths to an absolute reference, leaving HTTP and WS URLs as-is.
        """

        return value.expanduser().absolute() if isinstance(value, Path) else value


def load_config_from_file(config_path: Path) -> Settings:
    return Settings.model_validate(
        tomllib.loads(
            config_path.read_text(),
        ),
    )


def save_config_to_file(config: Settings, config_path: Path = CONFIG_FILE) -> None:
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(
        tomlkit.dumps(
            config.model_dump(mode="json", exclude_none=True),
        ),
    )
    logger.info(f"Saved configuration to {config_path}.")


settings = load_config_from_file(CONFIG_FILE) if CONFIG_FILE.exists() else Settings()
