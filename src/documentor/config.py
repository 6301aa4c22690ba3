"""Configuration management for documentor."""

import tomllib
from enum import Enum
from pathlib import Path

import tomli_w
from pydantic import BaseModel, Field, ValidationError, model_validator

from .constants import (
    FINALIZE_RETRIES,
    FINALIZE_RETRY_DELAY_SECONDS,
    HEARTBEAT_INTERVAL_SECONDS,
    MIN_STALE_TO_HEARTBEAT_RATIO,
    STALE_THRESHOLD_SECONDS,
)
from .errors import ConfigError

CONFIG_FILE = "config.toml"


class LockLocation(str, Enum):
    """Where lock records are stored."""

    TARGET = "target"  # <target>/.documentor.lock
    STATE_DIR = "state_dir"  # <state_dir>/locks/documentor-<hash>.lock


class LockConfig(BaseModel):
    """Configuration for run locking and liveness."""

    location: LockLocation = LockLocation.TARGET
    heartbeat_interval: float = Field(
        default=HEARTBEAT_INTERVAL_SECONDS, gt=0, description="Seconds between heartbeats"
    )
    stale_threshold: float = Field(
        default=STALE_THRESHOLD_SECONDS,
        gt=0,
        description="Heartbeat age after which a running lock is abandoned",
    )
    remove_on_complete: bool = Field(
        default=False, description="Delete the record after a completed run"
    )
    finalize_retries: int = Field(default=FINALIZE_RETRIES, ge=1)
    finalize_retry_delay: float = Field(default=FINALIZE_RETRY_DELAY_SECONDS, ge=0)

    @model_validator(mode="after")
    def _check_threshold_ratio(self) -> "LockConfig":
        # A single missed heartbeat must never make a live run look stale
        if self.stale_threshold < MIN_STALE_TO_HEARTBEAT_RATIO * self.heartbeat_interval:
            raise ValueError(
                f"stale_threshold ({self.stale_threshold}s) must be at least "
                f"{MIN_STALE_TO_HEARTBEAT_RATIO}x heartbeat_interval ({self.heartbeat_interval}s)"
            )
        return self


class DocumentorConfig(BaseModel):
    """Root configuration for documentor."""

    lock: LockConfig = Field(default_factory=LockConfig)


def get_state_dir(state_dir: Path | None = None) -> Path:
    """Get the documentor state directory.

    Args:
        state_dir: Optional override, defaults to ~/.documentor

    Returns:
        Path to the state directory
    """
    if state_dir is None:
        return Path.home() / ".documentor"
    return state_dir


def load_config(state_dir: Path) -> DocumentorConfig:
    """Load config from <state_dir>/config.toml.

    Args:
        state_dir: Path to the documentor state directory

    Returns:
        Loaded configuration, or defaults if config.toml doesn't exist

    Raises:
        ConfigError: If the file is not valid TOML or fails validation
    """
    config_path = state_dir / CONFIG_FILE
    if not config_path.exists():
        return DocumentorConfig()
    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
        return DocumentorConfig.model_validate(data)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {config_path}: {e}") from e


def write_config_template(state_dir: Path) -> Path:
    """Write default config.toml template.

    Args:
        state_dir: Path to the documentor state directory

    Returns:
        Path to the written config file
    """
    state_dir.mkdir(parents=True, exist_ok=True)
    config_path = state_dir / CONFIG_FILE
    template = {
        "lock": {
            # "target" keeps .documentor.lock inside the documented directory,
            # "state_dir" keeps hashed lock files under <state_dir>/locks
            "location": LockLocation.TARGET.value,
            "heartbeat_interval": HEARTBEAT_INTERVAL_SECONDS,
            "stale_threshold": STALE_THRESHOLD_SECONDS,
            "remove_on_complete": False,
            "finalize_retries": FINALIZE_RETRIES,
            "finalize_retry_delay": FINALIZE_RETRY_DELAY_SECONDS,
        },
    }
    with open(config_path, "wb") as f:
        tomli_w.dump(template, f)
    return config_path
