from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ValidationError

from guild_bootstrap.errors import ConfigurationError

_logger = logging.getLogger(__name__)


class BootstrapConfig(BaseModel):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    guild_id: int
    template_file: Path


def load_config(path: Path) -> BootstrapConfig:
    """Read the TOML configuration file.

    A relative ``template_file`` is resolved against the directory of
    the configuration file.
    """
    try:
        config_file_content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file '{path}': {e}") from e

    try:
        config = BootstrapConfig(**tomllib.loads(config_file_content))
    except (tomllib.TOMLDecodeError, ValidationError) as e:
        raise ConfigurationError(f"Invalid configuration file '{path}':\n{e}") from e

    if not config.template_file.is_absolute():
        config = config.model_copy(update={"template_file": path.parent / config.template_file})
    return config
