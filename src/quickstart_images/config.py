"""Settings loaded from a YAML config file, environment variables and CLI flags."""

from __future__ import annotations

import logging
import shlex
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from quickstart_images.constants import DEFAULT_MAX_WORKERS, DEFAULT_RELAY_URL, ENV_PREFIX

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "quorum-dev-quickstart" / "config.yaml"


class Settings(BaseSettings):
    """quickstart-images settings.

    All values can be overridden via environment variables with the
    QUORUM_DEV_QUICKSTART_ prefix. Example:
    QUORUM_DEV_QUICKSTART_RELAY_URL=https://relay.staging.example.net
    """

    relay_url: str = DEFAULT_RELAY_URL
    token: Optional[str] = None
    token_command: Optional[str] = None
    max_workers: int = Field(default=DEFAULT_MAX_WORKERS, ge=1)
    request_timeout: Optional[float] = Field(default=None, gt=0)
    runtime: Optional[str] = None
    work_dir: Optional[Path] = None

    model_config = {"env_prefix": ENV_PREFIX}

    @field_validator("relay_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value:
            raise ValueError("relay_url must not be empty")
        return value

    @field_validator("token", "token_command", "runtime")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @field_validator("token_command")
    @classmethod
    def _check_token_command(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            try:
                shlex.split(value)
            except ValueError as e:
                raise ValueError(f"token_command is not a valid command line: {e}") from e
        return value


def _load_config_file(config_path: Path) -> dict[str, Any]:
    """Load settings from a YAML file, ignoring files that can't be used."""
    if not config_path.exists():
        return {}

    try:
        data = yaml.safe_load(config_path.read_text()) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Ignoring config file {config_path}: expected a mapping")
        return {}

    known = {}
    for key, value in data.items():
        name = str(key).replace("-", "_")
        if name in Settings.model_fields:
            known[name] = value
        else:
            logger.warning(f"Ignoring unknown config key '{key}' in {config_path}")

    if known:
        logger.debug(f"Loaded {len(known)} settings from {config_path}")
    return known


def load_settings(config_file: Optional[Path] = None, **overrides: Any) -> Settings:
    """
    Build settings from every configuration layer.

    Precedence, lowest first: YAML config file, environment variables,
    explicit overrides. Overrides set to None are ignored so unset CLI
    flags fall through to the lower layers.

    Args:
        config_file: YAML config path (defaults to ~/.config/quorum-dev-quickstart/config.yaml)
        **overrides: Field values that take precedence over everything else

    Raises:
        pydantic.ValidationError: If the merged values are invalid
    """
    file_values = _load_config_file(config_file if config_file else DEFAULT_CONFIG_PATH)
    env_values = Settings().model_dump(exclude_unset=True)
    explicit = {key: value for key, value in overrides.items() if value is not None}

    return Settings(**{**file_values, **env_values, **explicit})
