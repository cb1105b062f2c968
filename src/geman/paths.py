"""
Path resolution for GE-Man and the host applications it manages.

Base directories follow the XDG variables when set and fall back to
platformdirs otherwise.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import platformdirs

from geman.constants import (
    APP_DIR_NAME,
    LOG_DIR_NAME,
    LUTRIS_CONFIG_BACKUP_FILE,
    LUTRIS_CONFIG_RELATIVE_PATH,
    LUTRIS_RUNNERS_RELATIVE_DIR,
    MANAGED_VERSIONS_FILE,
    SETTINGS_FILE_NAME,
    STEAM_CONFIG_BACKUP_FILE,
    STEAM_CONFIG_RELATIVE_PATH,
    STEAM_DIR_NAME,
    STEAM_PATH_ENV_VAR,
    STEAM_TOOLS_DIR_NAME,
)
from geman.download.version import ToolKind
from geman.log_utils import logger


def _xdg_dir(env_var: str, fallback: str) -> Path:
    value = os.environ.get(env_var)
    return Path(value) if value else Path(fallback)


def data_home() -> Path:
    return _xdg_dir("XDG_DATA_HOME", platformdirs.user_data_dir())


def config_home() -> Path:
    return _xdg_dir("XDG_CONFIG_HOME", platformdirs.user_config_dir())


def state_home() -> Path:
    return _xdg_dir("XDG_STATE_HOME", platformdirs.user_state_dir())


def default_settings_file() -> Path:
    return config_home() / APP_DIR_NAME / SETTINGS_FILE_NAME


@dataclass
class PathConfiguration:
    """Every file and directory location GE-Man reads or writes."""

    data_dir: Path
    """Base data directory (XDG_DATA_HOME)"""

    config_dir: Path
    """Base config directory (XDG_CONFIG_HOME)"""

    state_dir: Path
    """Base state directory (XDG_STATE_HOME)"""

    steam_root_override: Optional[Path] = None
    """Steam root from the settings file, used when STEAM_PATH is unset"""

    @classmethod
    def from_environment(
        cls, steam_root_path: Optional[str] = None
    ) -> "PathConfiguration":
        return cls(
            data_dir=data_home(),
            config_dir=config_home(),
            state_dir=state_home(),
            steam_root_override=Path(steam_root_path) if steam_root_path else None,
        )

    # GE-Man's own directories

    @property
    def ge_man_data_dir(self) -> Path:
        return self.data_dir / APP_DIR_NAME

    @property
    def ge_man_config_dir(self) -> Path:
        return self.config_dir / APP_DIR_NAME

    @property
    def ge_man_state_dir(self) -> Path:
        """Scratch space archives are extracted into before they are moved."""
        return self.state_dir / APP_DIR_NAME

    @property
    def log_dir(self) -> Path:
        return self.ge_man_state_dir / LOG_DIR_NAME

    @property
    def managed_versions_file(self) -> Path:
        return self.ge_man_data_dir / MANAGED_VERSIONS_FILE

    @property
    def settings_file(self) -> Path:
        return self.ge_man_config_dir / SETTINGS_FILE_NAME

    # Host applications

    @property
    def steam_root(self) -> Path:
        env_path = os.environ.get(STEAM_PATH_ENV_VAR)
        if env_path:
            return Path(env_path)
        if self.steam_root_override is not None:
            return self.steam_root_override
        return self.data_dir / STEAM_DIR_NAME

    @property
    def steam_tools_dir(self) -> Path:
        return self.steam_root / STEAM_TOOLS_DIR_NAME

    @property
    def steam_config(self) -> Path:
        return self.steam_root / STEAM_CONFIG_RELATIVE_PATH

    @property
    def lutris_runners_dir(self) -> Path:
        return self.data_dir / LUTRIS_RUNNERS_RELATIVE_DIR

    @property
    def lutris_config(self) -> Path:
        return self.config_dir / LUTRIS_CONFIG_RELATIVE_PATH

    def app_tool_dir(self, kind: ToolKind) -> Path:
        """Directory the host application loads `kind` tools from."""
        if kind is ToolKind.PROTON:
            return self.steam_tools_dir
        return self.lutris_runners_dir

    def app_config_file(self, kind: ToolKind) -> Path:
        if kind is ToolKind.PROTON:
            return self.steam_config
        return self.lutris_config

    def app_config_backup_file(self, kind: ToolKind) -> Path:
        if kind is ToolKind.PROTON:
            return self.ge_man_config_dir / STEAM_CONFIG_BACKUP_FILE
        return self.ge_man_config_dir / LUTRIS_CONFIG_BACKUP_FILE

    def create_ge_man_dirs(self) -> None:
        for path in (
            self.ge_man_data_dir,
            self.ge_man_config_dir,
            self.ge_man_state_dir,
        ):
            path.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Ensured GE-Man directories under {self.ge_man_data_dir}")

    def create_app_dirs(self) -> None:
        """Create the Steam and Lutris tool directories if they are missing."""
        for path in (self.steam_tools_dir, self.lutris_runners_dir):
            path.mkdir(parents=True, exist_ok=True)
