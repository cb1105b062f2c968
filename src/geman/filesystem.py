"""
Placement of GE versions inside the Steam and Lutris tool directories.
"""

import errno
import os
import shutil
from pathlib import Path
from typing import List, Union

from geman.constants import (
    LUTRIS_RUNNERS_RELATIVE_DIR,
    MIGRATED_DIR_PREFIX,
    PROTON_USER_SETTINGS_FILE,
    STEAM_DIR_NAME,
    STEAM_TOOLS_DIR_NAME,
)
from geman.download.interfaces import ExtractedDirectory
from geman.download.version import ToolKind, Version
from geman.exceptions import FileSystemError, MigrationError
from geman.log_utils import logger
from geman.paths import PathConfiguration
from geman.registry import ManagedVersion, label_counter_suffix

Pathish = Union[str, Path]


def _is_within_base(real_base_dir: str, candidate: str) -> bool:
    try:
        return os.path.commonpath([real_base_dir, candidate]) == real_base_dir
    except ValueError:
        return False


def installed_directory_name(extracted_name: str, tag: str, label: str) -> str:
    """
    Directory name for a newly installed version.

    The default label keeps the extracted name; any other label appends its
    counter suffix, e.g. "Proton-6.20-GE-1_1".
    """
    if label == tag:
        return extracted_name
    return f"{extracted_name}{label_counter_suffix(tag, label)}"


def migrated_directory_name(version: Version, label: str) -> str:
    return f"{MIGRATED_DIR_PREFIX}_{version.kind.value}_{version.tag.value}_L{label}"


def is_in_app_tool_dir(path: Pathish) -> bool:
    """Whether `path` already sits in a Steam or Lutris tool directory."""
    parent = Path(path).parent.as_posix().rstrip("/")
    steam_suffix = f"{STEAM_DIR_NAME}/{STEAM_TOOLS_DIR_NAME}"
    return parent.endswith(steam_suffix) or parent.endswith(LUTRIS_RUNNERS_RELATIVE_DIR)


def move_directory(source: Pathish, destination: Pathish) -> None:
    """
    Move a directory, copying and deleting when the move crosses file systems.

    Raises:
        FileSystemError: If the destination exists or the move fails.
    """
    source, destination = Path(source), Path(destination)
    if destination.exists():
        raise FileSystemError(
            "Destination directory already exists", path=str(destination)
        )

    try:
        os.rename(source, destination)
        return
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise FileSystemError(
                f"Could not move {source}", path=str(destination), details=str(e)
            ) from e

    logger.debug(f"{source} and {destination} are on different devices, copying")
    try:
        shutil.copytree(source, destination, symlinks=True)
        shutil.rmtree(source)
    except OSError as e:
        raise FileSystemError(
            f"Could not move {source}", path=str(destination), details=str(e)
        ) from e


class ToolDirectoryManager:
    """File system side of adding, removing and migrating GE versions."""

    def __init__(self, paths: PathConfiguration):
        self.paths = paths

    def version_path(self, managed: ManagedVersion) -> Path:
        return self.paths.app_tool_dir(managed.kind) / managed.directory_name

    def setup_version(self, extracted: ExtractedDirectory, directory_name: str) -> Path:
        """
        Move a freshly extracted release into its host application's tool directory.

        Returns:
            Path: The final location.
        """
        tool_dir = self.paths.app_tool_dir(extracted.kind)
        tool_dir.mkdir(parents=True, exist_ok=True)
        target = tool_dir / directory_name
        move_directory(extracted.path, target)
        logger.info(f"Installed {extracted.tag} to {target}")
        return target

    def remove_version(self, managed: ManagedVersion) -> None:
        """
        Delete a managed version's directory; a directory that is already gone is not an error.

        Raises:
            FileSystemError: If the directory lies outside the tool directory or cannot be deleted.
        """
        tool_dir = os.path.realpath(self.paths.app_tool_dir(managed.kind))
        path = self.version_path(managed)
        real_path = os.path.realpath(path)
        if real_path == tool_dir or not _is_within_base(tool_dir, real_path):
            raise FileSystemError(
                "Refusing to remove a path outside the tool directory", path=str(path)
            )
        if not path.exists():
            logger.warning(f"Directory for {managed} is already gone: {path}")
            return

        try:
            shutil.rmtree(path)
        except OSError as e:
            raise FileSystemError(
                f"Could not remove {managed}", path=str(path), details=str(e)
            ) from e
        logger.info(f"Removed {path}")

    def migrate_folder(self, version: Version, label: str, source: Pathish) -> str:
        """
        Bring an existing directory into the tool directory of `version`'s kind.

        A directory already inside a Steam or Lutris tool directory keeps its
        name and stays where it is. Anything else is moved in as
        `GE-MAN_<kind>_<tag>_L<label>`.

        Returns:
            str: The directory name to record in the registry.

        Raises:
            MigrationError: If the source is not a directory or cannot be moved.
        """
        source = Path(source)
        if not source.is_dir():
            raise MigrationError("Source is not a directory", path=str(source))

        if is_in_app_tool_dir(source):
            logger.debug(f"{source} is already in a tool directory, keeping it")
            return source.name

        directory_name = migrated_directory_name(version, label)
        tool_dir = self.paths.app_tool_dir(version.kind)
        tool_dir.mkdir(parents=True, exist_ok=True)
        try:
            move_directory(source, tool_dir / directory_name)
        except FileSystemError as e:
            raise MigrationError(e.message, path=e.path, details=e.details) from e
        logger.info(f"Moved {source} to {tool_dir / directory_name}")
        return directory_name

    def copy_user_settings(
        self, source: ManagedVersion, target: ManagedVersion
    ) -> Path:
        """
        Copy Proton's user_settings.py from one managed version to another.

        Raises:
            FileSystemError: If either version is not Proton or the file cannot be copied.
        """
        for managed in (source, target):
            if managed.kind is not ToolKind.PROTON:
                raise FileSystemError(
                    f"{managed} is not a Proton version",
                    path=str(self.version_path(managed)),
                )

        src = self.version_path(source) / PROTON_USER_SETTINGS_FILE
        dst = self.version_path(target) / PROTON_USER_SETTINGS_FILE
        try:
            shutil.copyfile(src, dst)
        except OSError as e:
            raise FileSystemError(
                "Could not copy user settings", path=str(src), details=str(e)
            ) from e
        logger.info(f"Copied {PROTON_USER_SETTINGS_FILE} from {source} to {target}")
        return dst

    def list_tool_dirs(self, kind: ToolKind) -> List[str]:
        """Names of the directories present in the tool directory for `kind`."""
        tool_dir = self.paths.app_tool_dir(kind)
        if not tool_dir.is_dir():
            return []
        return sorted(entry.name for entry in tool_dir.iterdir() if entry.is_dir())
