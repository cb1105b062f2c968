"""
Managed Version Registry

Tracks every GE version GE-Man has installed or migrated, keyed by
(tag, kind, label), and persists the collection as one JSON document.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from geman.constants import LABEL_COUNTER_SEPARATOR, LABEL_MAX_LENGTH
from geman.download.files import _atomic_write_json
from geman.download.version import Tag, ToolKind, Version, WineKind, compare_semver
from geman.exceptions import (
    FileSystemError,
    LabelError,
    RegistryFileError,
    ToolKindError,
    VersionRangeError,
)
from geman.log_utils import logger

Pathish = Union[str, Path]


def next_free_label(base: str, existing_labels: Iterable[str]) -> str:
    """
    Return `base` if unused, otherwise `base_<N+1>` where N is the highest counter in use.

    Counters are compared numerically, so `TAG_10` follows `TAG_9`.
    """
    existing = set(existing_labels)
    if base not in existing:
        return base

    prefix = f"{base}{LABEL_COUNTER_SEPARATOR}"
    counters = [
        int(label[len(prefix) :])
        for label in existing
        if label.startswith(prefix) and label[len(prefix) :].isdigit()
    ]
    return f"{prefix}{max(counters, default=0) + 1}"


def label_counter_suffix(tag: str, label: str) -> str:
    """The part of `label` after `tag`, e.g. "_2" for a synthesized label; empty for the default label."""
    if label.startswith(tag):
        return label[len(tag) :]
    return f"{LABEL_COUNTER_SEPARATOR}{label}"


@dataclass
class ManagedVersion:
    """A GE version that lives on disk and is tracked by GE-Man."""

    tag: Tag
    """The upstream release tag"""

    kind: ToolKind
    """Tool family"""

    directory_name: str
    """Folder name inside the host application's tool directory"""

    label: str = ""
    """Disambiguates installs of the same tag; defaults to the raw tag"""

    def __post_init__(self) -> None:
        if isinstance(self.tag, str):
            self.tag = Tag(self.tag)
        if not self.label:
            self.label = self.tag.value
        if len(self.label) > LABEL_MAX_LENGTH:
            raise LabelError(
                f"Label is longer than {LABEL_MAX_LENGTH} characters",
                field="label",
                value=self.label,
            )

    @property
    def version(self) -> Version:
        return Version(self.tag, self.kind)

    @property
    def has_default_label(self) -> bool:
        return self.label == self.tag.value

    def __str__(self) -> str:
        text = str(self.version)
        if not self.has_default_label:
            text = f"{text} [{self.label}]"
        return text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tag": self.tag.value,
            "semver": self.tag.semver,
            "kind": self.kind.value,
            "directory_name": self.directory_name,
            "label": self.label,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ManagedVersion":
        """
        Build a ManagedVersion from its JSON form.

        `tag` may be a string or an object with a `value` field, and `kind` may
        be a kind name or a `{"type": ...}` object as written by older GE-Man
        releases. The semver is always derived again from the raw tag.

        Raises:
            KeyError, TypeError, ToolKindError, LabelError: On malformed input.
        """
        raw_tag = data["tag"]
        if isinstance(raw_tag, dict):
            raw_tag = raw_tag["value"]
        if not isinstance(raw_tag, str):
            raise TypeError(f"tag must be a string, got {type(raw_tag).__name__}")

        return cls(
            tag=Tag(raw_tag),
            kind=_parse_kind(data["kind"]),
            directory_name=data["directory_name"],
            label=data.get("label") or "",
        )


def _parse_kind(raw: Any) -> ToolKind:
    if isinstance(raw, str):
        return ToolKind.from_str(raw)
    if isinstance(raw, dict):
        kind_type = raw.get("type")
        if kind_type == ToolKind.PROTON.value:
            return ToolKind.PROTON
        if kind_type == ToolKind.WINE.value:
            wine_type = (raw.get("kind") or {}).get("type")
            for wine_kind in WineKind:
                if wine_kind.value == wine_type:
                    return ToolKind.from_wine_kind(wine_kind)
        raise ToolKindError("Unknown tool kind", field="kind", value=str(raw))
    raise TypeError(f"kind must be a string or object, got {type(raw).__name__}")


def _require_semver(version: Version, role: str) -> None:
    if version.tag.semver is None:
        raise VersionRangeError(
            f"Cannot order the {role} version {version.tag}",
            field=role,
            value=version.tag.value,
            details="no semver could be derived from the tag",
        )


@dataclass
class ManagedVersions:
    """
    The collection of managed versions.

    Set semantics over (tag, kind, label); insertion order is kept for display.
    Changes stay in memory until `write_to_file` is called.
    """

    versions: List[ManagedVersion] = field(default_factory=list)

    def __iter__(self) -> Iterator[ManagedVersion]:
        return iter(self.versions)

    def __len__(self) -> int:
        return len(self.versions)

    def find_all(self, version: Version) -> List[ManagedVersion]:
        return [mv for mv in self.versions if mv.version == version]

    def find(
        self, version: Version, label: Optional[str] = None
    ) -> Optional[ManagedVersion]:
        """
        Find a managed version by identity, optionally narrowed to one label.

        Without a label the first matching entry is returned.
        """
        for mv in self.find_all(version):
            if label is None or mv.label == label:
                return mv
        return None

    def next_label(self, version: Version, requested: Optional[str] = None) -> str:
        """The label a new entry for `version` would receive."""
        base = requested or version.tag.value
        return next_free_label(base, (mv.label for mv in self.find_all(version)))

    def add(self, managed: ManagedVersion) -> ManagedVersion:
        """
        Add a managed version, relabelling it if (tag, kind, label) is taken.

        Returns:
            ManagedVersion: The stored entry, carrying its final label.
        """
        label = self.next_label(managed.version, managed.label)
        if label != managed.label:
            logger.debug(
                f"Label {managed.label} is taken for {managed.version}, using {label}"
            )
            managed = ManagedVersion(
                tag=managed.tag,
                kind=managed.kind,
                directory_name=managed.directory_name,
                label=label,
            )
        self.versions.append(managed)
        return managed

    def remove(
        self, version: Version, label: Optional[str] = None
    ) -> Optional[ManagedVersion]:
        """Remove and return the entry `find(version, label)` would return, if any."""
        managed = self.find(version, label)
        if managed is not None:
            self.versions.remove(managed)
        return managed

    def versions_of_kind(self, kind: ToolKind) -> List[ManagedVersion]:
        return [mv for mv in self.versions if mv.kind is kind]

    def latest_by_kind(self, kind: ToolKind) -> Optional[ManagedVersion]:
        """The newest managed version of `kind` by semver, or None if there is none."""
        candidates = self.versions_of_kind(kind)
        if not candidates:
            return None
        return max(candidates, key=lambda mv: mv.tag.semver_key())

    def latest_per_kind(self) -> List[ManagedVersion]:
        """One latest entry for every kind present, in kind order."""
        latest = (self.latest_by_kind(kind) for kind in ToolKind.values())
        return [mv for mv in latest if mv is not None]

    def versions_before(self, cutoff: Version) -> List[ManagedVersion]:
        """
        Managed versions of the cutoff's kind whose semver sorts strictly before it.

        Entries without a semver are never selected.

        Raises:
            VersionRangeError: If the cutoff has no semver.
        """
        _require_semver(cutoff, "cutoff")
        return [
            mv
            for mv in self.versions_of_kind(cutoff.kind)
            if mv.tag.semver is not None and compare_semver(mv.tag, cutoff.tag) < 0
        ]

    def versions_in_range(self, start: Version, end: Version) -> List[ManagedVersion]:
        """
        Managed versions with start <= semver <= end, limited to the range's kind.

        Raises:
            VersionRangeError: If the endpoints differ in kind, lack a semver, or start sorts after end.
        """
        if start.kind is not end.kind:
            raise VersionRangeError(
                "Range endpoints must be of the same kind",
                details=f"{start.kind} vs {end.kind}",
            )
        _require_semver(start, "start")
        _require_semver(end, "end")
        if compare_semver(start.tag, end.tag) > 0:
            raise VersionRangeError(
                f"Range start {start.tag} is after range end {end.tag}",
                field="start",
                value=start.tag.value,
            )
        return [
            mv
            for mv in self.versions_of_kind(start.kind)
            if mv.tag.semver is not None
            and compare_semver(start.tag, mv.tag) <= 0
            and compare_semver(mv.tag, end.tag) <= 0
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {"versions": [mv.to_dict() for mv in self.versions]}

    @classmethod
    def from_dict(cls, data: Any) -> "ManagedVersions":
        if not isinstance(data, dict) or not isinstance(data.get("versions"), list):
            raise TypeError("expected an object with a 'versions' list")
        return cls([ManagedVersion.from_dict(entry) for entry in data["versions"]])

    @classmethod
    def from_file(cls, path: Pathish) -> "ManagedVersions":
        """
        Load the registry; a missing file yields an empty registry.

        Raises:
            RegistryFileError: If the file cannot be read or does not hold a valid registry.
        """
        path = str(path)
        if not os.path.exists(path):
            logger.debug(f"No managed versions file at {path}, starting empty")
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise RegistryFileError(
                "Could not read managed versions", path=path, details=str(e)
            ) from e
        except ValueError as e:
            raise RegistryFileError(
                "Managed versions file is not valid JSON", path=path, details=str(e)
            ) from e

        try:
            return cls.from_dict(data)
        except (KeyError, TypeError, ToolKindError, LabelError) as e:
            raise RegistryFileError(
                "Managed versions file has an unexpected shape",
                path=path,
                details=str(e),
            ) from e

    def write_to_file(self, path: Pathish) -> None:
        """
        Atomically write the registry to `path`, creating parent directories.

        Raises:
            RegistryFileError: If the file cannot be written.
        """
        path = str(path)
        try:
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
            _atomic_write_json(path, self.to_dict())
        except (OSError, FileSystemError) as e:
            raise RegistryFileError(
                "Could not write managed versions", path=path, details=str(e)
            ) from e
        logger.debug(f"Saved {len(self.versions)} managed versions to {path}")
