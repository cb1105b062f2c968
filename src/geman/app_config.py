"""
Steam and Lutris config patching.

The active compatibility tool is a single value in each host application's own
config file. Files are handled as lists of lines with one recorded value span,
never parsed into a structured document, so every other byte survives a write.
"""

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple, Union

from geman.constants import (
    LUTRIS_CONFIG_TEMPLATE,
    LUTRIS_VALUE_SEPARATOR,
    LUTRIS_VERSION_KEY,
    STEAM_COMPAT_TOOL_MAPPING_KEY,
    STEAM_DEFAULT_APP_ID_KEY,
    STEAM_VALUE_LINE_OFFSET,
)
from geman.download.files import _atomic_write_bytes
from geman.download.version import ToolKind
from geman.exceptions import (
    AttributeNotFoundError,
    ConfigFileMissingError,
    ConfigIOError,
    FileSystemError,
)
from geman.log_utils import logger

Pathish = Union[str, Path]
# (line index, start, end) of the value inside the file's lines
ValueSpan = Tuple[int, int, int]

# Undecodable bytes round-trip unchanged
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def _line_content(line: str) -> str:
    return line.rstrip("\r\n")


def locate_steam_value(lines: List[str]) -> ValueSpan:
    """
    Find the default compatibility tool in Steam's config.vdf.

    After the CompatToolMapping group marker, the first line holding "0" opens
    the default mapping; its tool name sits two lines further down, between the
    last two double quotes on that line.

    Raises:
        AttributeNotFoundError: If any part of that structure is missing.
    """
    mapping_seen = False
    value_index = None
    for index, line in enumerate(lines):
        if not mapping_seen:
            mapping_seen = STEAM_COMPAT_TOOL_MAPPING_KEY in line
            continue
        if STEAM_DEFAULT_APP_ID_KEY in line:
            value_index = index + STEAM_VALUE_LINE_OFFSET
            break

    if value_index is None or value_index >= len(lines):
        raise AttributeNotFoundError(
            "Steam config has no default compatibility tool entry",
            kind=ToolKind.PROTON,
        )

    content = _line_content(lines[value_index])
    end = content.rfind('"')
    start = content.rfind('"', 0, end) if end > 0 else -1
    if start == -1:
        raise AttributeNotFoundError(
            "Steam default compatibility tool line is not quoted",
            kind=ToolKind.PROTON,
            details=content.strip(),
        )
    return value_index, start + 1, end


def locate_lutris_value(lines: List[str]) -> ValueSpan:
    """
    Find the Wine version in Lutris' wine.yml: the first line mentioning
    "version", value running from after ": " to the end of the line.

    Raises:
        AttributeNotFoundError: If no such line exists.
    """
    for index, line in enumerate(lines):
        if LUTRIS_VERSION_KEY not in line:
            continue
        content = _line_content(line)
        separator = content.find(LUTRIS_VALUE_SEPARATOR)
        if separator == -1:
            break
        return index, separator + len(LUTRIS_VALUE_SEPARATOR), len(content)

    raise AttributeNotFoundError(
        "Lutris runner config has no version attribute", kind=ToolKind.WINE
    )


def locate_value(kind: ToolKind, lines: List[str]) -> ValueSpan:
    if kind is ToolKind.PROTON:
        return locate_steam_value(lines)
    return locate_lutris_value(lines)


@dataclass
class ConfigDocument:
    """A config file's lines plus the span of its active-tool value."""

    lines: List[str]
    line_index: int
    start: int
    end: int

    @classmethod
    def parse(cls, kind: ToolKind, text: str) -> "ConfigDocument":
        lines = text.splitlines(keepends=True)
        line_index, start, end = locate_value(kind, lines)
        return cls(lines, line_index, start, end)

    @property
    def value(self) -> str:
        return self.lines[self.line_index][self.start : self.end]

    def with_value(self, new_value: str) -> str:
        """The full file text with only the recorded span replaced."""
        line = self.lines[self.line_index]
        patched = line[: self.start] + new_value + line[self.end :]
        lines = list(self.lines)
        lines[self.line_index] = patched
        return "".join(lines)


@dataclass
class ApplicationConfig:
    """
    The active tool recorded in a host application's config.

    For Lutris, `kind` is LOL_WINE when the active value contains "lol" in any
    case, otherwise WINE.
    """

    kind: ToolKind
    version_dir_name: str
    path: Path
    document: ConfigDocument = field(repr=False, compare=False)

    def is_version_in_use(self, directory_name: str) -> bool:
        """Exact comparison with the active value, without any normalization."""
        return self.version_dir_name == directory_name


def _read_text(path: Path, kind: ToolKind) -> str:
    try:
        with open(path, "rb") as f:
            return f.read().decode(_ENCODING, _ERRORS)
    except FileNotFoundError as e:
        raise ConfigFileMissingError(
            f"{kind.app_name} config not found", path=str(path), kind=kind
        ) from e
    except OSError as e:
        raise ConfigIOError(
            f"Could not read {kind.app_name} config",
            path=str(path),
            kind=kind,
            details=str(e),
        ) from e


def _write_text(path: Path, kind: ToolKind, text: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        _atomic_write_bytes(path, text.encode(_ENCODING, _ERRORS))
    except (OSError, FileSystemError) as e:
        raise ConfigIOError(
            f"Could not write {kind.app_name} config",
            path=str(path),
            kind=kind,
            details=str(e),
        ) from e


def read_app_config(path: Pathish, kind: ToolKind) -> ApplicationConfig:
    """
    Read the active tool from a Steam (PROTON) or Lutris (WINE/LOL_WINE) config.

    Raises:
        ConfigFileMissingError: If the file does not exist.
        ConfigIOError: If the file cannot be read.
        AttributeNotFoundError: If the file exists but holds no active-tool value.
    """
    path = Path(path)
    try:
        document = ConfigDocument.parse(kind, _read_text(path, kind))
    except AttributeNotFoundError as e:
        e.path = str(path)
        raise

    value = document.value
    if kind is not ToolKind.PROTON:
        kind = ToolKind.LOL_WINE if "lol" in value.lower() else ToolKind.WINE
    logger.debug(f"{kind.app_name} config {path} uses {value!r}")
    return ApplicationConfig(
        kind=kind, version_dir_name=value, path=path, document=document
    )


def backup_config(path: Pathish, backup_path: Pathish, kind: ToolKind) -> None:
    """
    Copy the config byte for byte to its fixed backup location, replacing any older backup.

    Raises:
        ConfigIOError: If the copy fails.
    """
    backup_path = Path(backup_path)
    try:
        backup_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(path, backup_path)
    except OSError as e:
        raise ConfigIOError(
            f"Could not back up {kind.app_name} config",
            path=str(path),
            kind=kind,
            details=str(e),
        ) from e
    logger.debug(f"Backed up {path} to {backup_path}")


def set_active_version(
    config: ApplicationConfig, directory_name: str, backup_path: Pathish
) -> ApplicationConfig:
    """
    Make `directory_name` the active tool, backing up the file first.

    Only the recorded value span changes; the rest of the file is written back
    exactly as it was read.

    Returns:
        ApplicationConfig: A view of the patched file.
    """
    backup_config(config.path, backup_path, config.kind)
    text = config.document.with_value(directory_name)
    _write_text(config.path, config.kind, text)
    logger.info(f"{config.kind.app_name} now uses {directory_name}")
    return read_app_config(config.path, config.kind)


def apply_version(
    kind: ToolKind,
    directory_name: str,
    config_path: Pathish,
    backup_path: Pathish,
) -> ApplicationConfig:
    """
    Set the active tool for `kind`, creating a fresh Lutris runner config if none exists.

    Raises:
        ConfigFileMissingError: If the Steam config does not exist.
        AttributeNotFoundError, ConfigIOError: As raised by reading and writing.
    """
    config_path = Path(config_path)
    if kind.is_wine and not os.path.exists(config_path):
        logger.info(f"No Lutris runner config at {config_path}, creating one")
        _write_text(
            config_path, kind, LUTRIS_CONFIG_TEMPLATE.format(version=directory_name)
        )
        return read_app_config(config_path, kind)

    config = read_app_config(config_path, kind)
    return set_active_version(config, directory_name, backup_path)
