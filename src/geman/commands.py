"""
Command-level operations.

Each command receives the registry explicitly, changes it in memory and returns
a structured result. Persisting the registry afterwards is the caller's job.
"""

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

from geman.app_config import ApplicationConfig, apply_version, read_app_config
from geman.download.interfaces import DownloadRequest
from geman.download.orchestrator import DownloadOrchestrator
from geman.download.version import Tag, ToolKind, Version
from geman.exceptions import (
    AppConfigError,
    ArchiveError,
    ConfigFileMissingError,
    FileSystemError,
    GemanError,
    VersionAlreadyManagedError,
    VersionInUseError,
    VersionNotManagedError,
    VersionRangeError,
)
from geman.filesystem import ToolDirectoryManager, installed_directory_name
from geman.log_utils import logger
from geman.paths import PathConfiguration
from geman.registry import ManagedVersion, ManagedVersions

TagLike = Union[str, Tag]


@dataclass
class AddResult:
    """Outcome of `add`."""

    version: ManagedVersion
    """The new entry, or the existing one when already managed"""

    already_managed: bool = False
    """True when nothing was downloaded because the version is already managed"""

    applied: Optional[ApplicationConfig] = None
    """The patched host config when the new version was applied"""

    apply_error: Optional[AppConfigError] = None
    """Why applying failed; the version itself was still added"""


@dataclass
class CheckResult:
    """Latest upstream release of one kind, or the error that prevented finding it."""

    kind: ToolKind
    tag: Optional[Tag] = None
    error: Optional[GemanError] = None


@dataclass
class CleanResult:
    removed: List[ManagedVersion] = field(default_factory=list)
    skipped: List[Tuple[ManagedVersion, str]] = field(default_factory=list)
    dry_run: bool = False


@dataclass
class ListEntry:
    """One line of `list` output."""

    name: str
    managed: Optional[ManagedVersion] = None
    in_use: bool = False


class CommandHandler:
    """
    Implements the GE-Man commands on top of the download, registry, file
    system and config components.
    """

    def __init__(
        self,
        paths: PathConfiguration,
        orchestrator: Optional[DownloadOrchestrator] = None,
        tool_dirs: Optional[ToolDirectoryManager] = None,
    ):
        self.paths = paths
        self.orchestrator = orchestrator or DownloadOrchestrator()
        self.tool_dirs = tool_dirs or ToolDirectoryManager(paths)

    # Helpers

    def active_config(self, kind: ToolKind) -> Optional[ApplicationConfig]:
        """The host config for `kind`, or None if the file does not exist."""
        try:
            return read_app_config(self.paths.app_config_file(kind), kind)
        except ConfigFileMissingError:
            logger.debug(f"No {kind.app_name} config found")
            return None

    def _active_config_for_display(self, kind: ToolKind) -> Optional[ApplicationConfig]:
        try:
            return self.active_config(kind)
        except AppConfigError as e:
            logger.warning(
                f"Could not determine the active {kind.display_name} version: {e}"
            )
            return None

    def _require(
        self, registry: ManagedVersions, version: Version, label: Optional[str] = None
    ) -> ManagedVersion:
        managed = registry.find(version, label)
        if managed is None:
            raise VersionNotManagedError(f"{version} is not managed by GE-Man")
        return managed

    # Commands

    def add(
        self,
        registry: ManagedVersions,
        kind: ToolKind,
        tag: Optional[TagLike] = None,
        skip_checksum: bool = False,
        label: Optional[str] = None,
        apply: bool = False,
    ) -> AddResult:
        """
        Download and install a version, the latest of `kind` when `tag` is None.

        An already managed version is reported through `already_managed` unless
        an explicit label asks for a second install of the same tag. A failure to
        apply the new version is returned in `apply_error` so the caller can still
        save the registry.
        """
        if tag is None:
            tag = self.orchestrator.source.fetch_latest_tag(kind)
            logger.info(f"Latest {kind.display_name} release is {tag}")
        version = Version.new(tag, kind)

        existing = registry.find(version)
        if existing is not None and label is None:
            logger.info(f"{version} is already managed")
            return AddResult(version=existing, already_managed=True)

        label = registry.next_label(version, label)
        self.paths.create_ge_man_dirs()
        try:
            extracted = self.orchestrator.acquire(
                kind,
                DownloadRequest(tag=version.tag.value, skip_checksum=skip_checksum),
                self.paths.ge_man_state_dir,
            )
        except ArchiveError as e:
            if e.extracted_path is not None:
                shutil.rmtree(e.extracted_path, ignore_errors=True)
            raise

        directory_name = installed_directory_name(
            extracted.name, version.tag.value, label
        )
        try:
            self.tool_dirs.setup_version(extracted, directory_name)
        except FileSystemError:
            shutil.rmtree(extracted.path, ignore_errors=True)
            raise

        managed = registry.add(
            ManagedVersion(
                tag=version.tag,
                kind=kind,
                directory_name=directory_name,
                label=label,
            )
        )
        logger.info(f"Added {managed}")

        result = AddResult(version=managed)
        if apply:
            try:
                result.applied = self.apply_managed(managed)
            except AppConfigError as e:
                logger.debug(f"Applying {managed} failed: {e}")
                result.apply_error = e
        return result

    def remove(
        self, registry: ManagedVersions, version: Version, label: Optional[str] = None
    ) -> ManagedVersion:
        """
        Delete a managed version from disk and from the registry.

        Raises:
            VersionNotManagedError: If the version is not managed.
            VersionInUseError: If the host application currently uses it.
        """
        managed = self._require(registry, version, label)
        config = self.active_config(managed.kind)
        if config is not None and config.is_version_in_use(managed.directory_name):
            raise VersionInUseError(
                f"{managed} is in use by {managed.kind.app_name}",
                details="apply another version before removing it",
            )

        self.tool_dirs.remove_version(managed)
        registry.remove(managed.version, managed.label)
        logger.info(f"Removed {managed}")
        return managed

    def forget(
        self, registry: ManagedVersions, version: Version, label: Optional[str] = None
    ) -> ManagedVersion:
        """Drop a version from the registry without touching its files."""
        managed = self._require(registry, version, label)
        registry.remove(managed.version, managed.label)
        logger.info(f"GE-Man no longer manages {managed}")
        return managed

    def check(self, kind: Optional[ToolKind] = None) -> List[CheckResult]:
        """Latest upstream tag for `kind`, or for every kind when None."""
        results = []
        for each in [kind] if kind is not None else ToolKind.values():
            try:
                tag = self.orchestrator.source.fetch_latest_tag(each)
            except GemanError as e:
                logger.debug(f"Checking {each.display_name} failed: {e}")
                results.append(CheckResult(kind=each, error=e))
            else:
                results.append(CheckResult(kind=each, tag=tag))
        return results

    def migrate(
        self,
        registry: ManagedVersions,
        source_path: Union[str, Path],
        version: Version,
        label: Optional[str] = None,
    ) -> ManagedVersion:
        """
        Put an existing directory under management.

        Raises:
            VersionAlreadyManagedError: If the version (with this label) is already managed.
            MigrationError: If the directory cannot be moved.
        """
        label = label or version.tag.value
        if registry.find(version, label) is not None:
            raise VersionAlreadyManagedError(f"{version} is already managed")

        directory_name = self.tool_dirs.migrate_folder(version, label, source_path)
        managed = registry.add(
            ManagedVersion(
                tag=version.tag,
                kind=version.kind,
                directory_name=directory_name,
                label=label,
            )
        )
        logger.info(f"Migrated {source_path} as {managed}")
        return managed

    def apply_managed(self, managed: ManagedVersion) -> ApplicationConfig:
        return apply_version(
            managed.kind,
            managed.directory_name,
            self.paths.app_config_file(managed.kind),
            self.paths.app_config_backup_file(managed.kind),
        )

    def apply(
        self,
        registry: ManagedVersions,
        kind: ToolKind,
        tag: Optional[TagLike] = None,
        label: Optional[str] = None,
    ) -> ApplicationConfig:
        """
        Make a managed version the host application's active tool; the newest
        managed version of `kind` when `tag` is None.
        """
        if tag is None:
            managed = registry.latest_by_kind(kind)
            if managed is None:
                raise VersionNotManagedError(
                    f"No {kind.display_name} versions are managed"
                )
        else:
            managed = self._require(registry, Version.new(tag, kind), label)
        return self.apply_managed(managed)

    def clean(
        self,
        registry: ManagedVersions,
        kind: ToolKind,
        before: Optional[TagLike] = None,
        start: Optional[TagLike] = None,
        end: Optional[TagLike] = None,
        forget: bool = False,
        dry_run: bool = False,
    ) -> CleanResult:
        """
        Remove every managed version before a tag, or within an inclusive tag range.

        Versions in use or failing to delete are skipped and reported; the rest
        are removed from disk (unless `forget`) and from the registry. With
        `dry_run` nothing changes.
        """
        if before is not None:
            selected = registry.versions_before(Version.new(before, kind))
        elif start is not None and end is not None:
            selected = registry.versions_in_range(
                Version.new(start, kind), Version.new(end, kind)
            )
        else:
            raise VersionRangeError(
                "Clean needs either a cutoff tag or both range endpoints"
            )

        result = CleanResult(dry_run=dry_run)
        config = self.active_config(kind)
        for managed in selected:
            if config is not None and config.is_version_in_use(managed.directory_name):
                result.skipped.append((managed, "in use"))
                continue
            if dry_run:
                result.removed.append(managed)
                continue
            if not forget:
                try:
                    self.tool_dirs.remove_version(managed)
                except FileSystemError as e:
                    logger.warning(f"Could not remove {managed}: {e}")
                    result.skipped.append((managed, str(e)))
                    continue
            registry.remove(managed.version, managed.label)
            result.removed.append(managed)
        return result

    def list_versions(
        self,
        registry: ManagedVersions,
        kind: ToolKind,
        newest: bool = False,
        file_system: bool = False,
    ) -> List[ListEntry]:
        """
        Managed versions of `kind` (only the newest with `newest`), or the
        directories in its tool directory with `file_system`.
        """
        config = self._active_config_for_display(kind)

        def _in_use(directory_name: str) -> bool:
            return config is not None and config.is_version_in_use(directory_name)

        if file_system:
            by_directory = {
                mv.directory_name: mv for mv in registry.versions_of_kind(kind)
            }
            return [
                ListEntry(
                    name=name, managed=by_directory.get(name), in_use=_in_use(name)
                )
                for name in self.tool_dirs.list_tool_dirs(kind)
            ]

        if newest:
            latest = registry.latest_by_kind(kind)
            versions = [latest] if latest is not None else []
        else:
            versions = registry.versions_of_kind(kind)
        return [
            ListEntry(name=str(mv), managed=mv, in_use=_in_use(mv.directory_name))
            for mv in versions
        ]

    def copy_user_settings(
        self, registry: ManagedVersions, source: Version, target: Version
    ) -> Path:
        """Copy user_settings.py between two managed Proton versions."""
        return self.tool_dirs.copy_user_settings(
            self._require(registry, source), self._require(registry, target)
        )
