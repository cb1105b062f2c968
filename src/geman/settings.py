"""
GE-Man's own settings file.

A small YAML document, loaded with PyYAML. A missing file means defaults.
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from geman.constants import (
    ENV_VAR_REFERENCE_PATTERN,
    SETTINGS_ALLOW_ENV_TOKEN,
    SETTINGS_GITHUB_TOKEN,
    SETTINGS_LEGACY_STEAM_ROOT_PATH,
    SETTINGS_LOG_LEVEL,
    SETTINGS_STEAM_ROOT_PATH,
)
from geman.exceptions import ConfigFileError, ConfigurationError
from geman.log_utils import logger

ENV_VAR_REFERENCE_RX = re.compile(ENV_VAR_REFERENCE_PATTERN)


def expand_env_vars(value: str) -> str:
    """
    Replace every `$NAME` reference in `value` with the environment variable's value.

    Raises:
        ConfigurationError: If a referenced variable is not set.
    """

    def _replace(match: "re.Match[str]") -> str:
        name = match.group(2)
        if name not in os.environ:
            raise ConfigurationError(
                f"Environment variable {name} is not set",
                details=f"referenced in {value!r}",
            )
        return os.environ[name]

    return ENV_VAR_REFERENCE_RX.sub(_replace, value)


@dataclass
class Settings:
    """Values read from the settings file."""

    steam_root_path: Optional[str] = None
    """Steam installation root, with environment variables already expanded"""

    log_level: Optional[str] = None
    """Log level applied at startup"""

    github_token: Optional[str] = None
    """GitHub token for API requests"""

    allow_env_token: bool = True
    """Whether GITHUB_TOKEN from the environment may be used"""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        steam_root = data.get(SETTINGS_STEAM_ROOT_PATH) or data.get(
            SETTINGS_LEGACY_STEAM_ROOT_PATH
        )
        if steam_root is not None and not isinstance(steam_root, str):
            raise ConfigurationError(
                f"{SETTINGS_STEAM_ROOT_PATH} must be a string",
                details=f"got {type(steam_root).__name__}",
            )
        return cls(
            steam_root_path=expand_env_vars(steam_root) if steam_root else None,
            log_level=data.get(SETTINGS_LOG_LEVEL),
            github_token=data.get(SETTINGS_GITHUB_TOKEN),
            allow_env_token=bool(data.get(SETTINGS_ALLOW_ENV_TOKEN, True)),
        )


def load_settings(path: Union[str, Path]) -> Settings:
    """
    Load the settings file at `path`.

    Returns:
        Settings: Parsed settings, or defaults when the file does not exist or is empty.

    Raises:
        ConfigFileError: If the file cannot be read, is not valid YAML or is not a mapping.
        ConfigurationError: If a value is invalid.
    """
    path = str(path)
    if not os.path.exists(path):
        logger.debug(f"No settings file at {path}, using defaults")
        return Settings()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigFileError(f"Could not read {path}", details=str(e)) from e
    except yaml.YAMLError as e:
        raise ConfigFileError(f"Invalid YAML in {path}", details=str(e)) from e

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigFileError(
            f"Settings file {path} must contain a mapping",
            details=f"got {type(data).__name__}",
        )

    logger.debug(f"Loaded settings from {path}")
    return Settings.from_dict(data)
