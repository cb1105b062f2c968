"""
Tags, Tool Kinds and Version Identity for GE-Man

This module turns the loosely formatted GE release tags into comparable semver
strings and defines the (tag, kind) identity every other component keys on.
"""

import functools
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

from geman.constants import (
    RELEASE_CANDIDATE_MARKER,
    SEMVER_COMPONENT_COUNT,
    TAG_SUFFIX_MARKERS,
)
from geman.exceptions import TagParseError, ToolKindError
from geman.log_utils import logger

DIGIT_RUN_RX = re.compile(r"\d+")


class WineKind(Enum):
    """Sub-variant of the Wine family."""

    STANDARD = "WineGe"
    LOL = "LolWineGe"


@functools.total_ordering
class ToolKind(Enum):
    """
    The closed set of tool families GE-Man manages.

    Members order by declaration: PROTON < WINE < LOL_WINE. The value is the
    persisted name.
    """

    PROTON = "Proton"
    WINE = "Wine"
    LOL_WINE = "LoL_Wine"

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ToolKind):
            return NotImplemented
        order = list(ToolKind)
        return order.index(self) < order.index(other)

    def __str__(self) -> str:
        return self.value

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def app_name(self) -> str:
        """Name of the host application that loads this kind of tool."""
        return "Steam" if self is ToolKind.PROTON else "Lutris"

    @property
    def is_wine(self) -> bool:
        return self is not ToolKind.PROTON

    @property
    def wine_kind(self) -> Optional[WineKind]:
        if self is ToolKind.WINE:
            return WineKind.STANDARD
        if self is ToolKind.LOL_WINE:
            return WineKind.LOL
        return None

    @classmethod
    def values(cls) -> List["ToolKind"]:
        return list(cls)

    @classmethod
    def from_str(cls, name: str) -> "ToolKind":
        """
        Parse a persisted kind name ("Proton", "Wine" or "LoL_Wine").

        Raises:
            ToolKindError: If the name is not one of the known kinds.
        """
        for kind in cls:
            if kind.value == name:
                return kind
        raise ToolKindError(f"Unknown tool kind: {name}", field="kind", value=name)

    @classmethod
    def from_wine_kind(cls, wine_kind: WineKind) -> "ToolKind":
        return cls.LOL_WINE if wine_kind is WineKind.LOL else cls.WINE


_DISPLAY_NAMES = {
    ToolKind.PROTON: "Proton GE",
    ToolKind.WINE: "Wine GE",
    ToolKind.LOL_WINE: "Wine GE (LoL)",
}


def derive_semver(tag: str) -> str:
    """
    Derive a semver-like string from a GE release tag.

    Every run of decimal digits becomes a version component. When the tag
    contains "rc", the first digit run directly preceded by "rc" is pulled out of
    the components and appended as "-rc<N>". Otherwise "-LoL" and then "-MF" are
    appended for each marker present. Fewer than three components are padded
    with "0"; more than three are kept as they are.

    Examples:
        "6.20-GE-1"     -> "6.20.1"
        "7.0rc3-GE-1"   -> "7.0.1-rc3"
        "6.16-GE-3-LoL" -> "6.16.3-LoL"
        "GE-Proton7-8"  -> "7.8.0"

    Raises:
        TagParseError: If the tag contains "rc" but no digit run follows it.
    """
    runs = list(DIGIT_RUN_RX.finditer(tag))

    if RELEASE_CANDIDATE_MARKER in tag:
        marker_len = len(RELEASE_CANDIDATE_MARKER)
        rc_run = next(
            (
                run
                for run in runs
                if tag[max(0, run.start() - marker_len) : run.start()]
                == RELEASE_CANDIDATE_MARKER
            ),
            None,
        )
        if rc_run is None:
            raise TagParseError(
                "Release candidate marker without a number",
                field="tag",
                value=tag,
            )
        runs = [run for run in runs if run is not rc_run]
        suffix = f"-{RELEASE_CANDIDATE_MARKER}{rc_run.group()}"
    else:
        suffix = "".join(
            f"-{marker}" for marker in TAG_SUFFIX_MARKERS if marker in tag
        )

    components = [run.group() for run in runs]
    components.extend(["0"] * (SEMVER_COMPONENT_COUNT - len(components)))
    return ".".join(components) + suffix


@functools.total_ordering
class Tag:
    """
    A raw release tag together with its derived semver string.

    Equality, hashing and default ordering use the raw value only. `semver` is
    None when it could not be derived.
    """

    def __init__(self, value: str):
        self.value = value
        try:
            self.semver: Optional[str] = derive_semver(value)
        except TagParseError as e:
            logger.debug(f"No semver for tag {value!r}: {e}")
            self.semver = None

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Tag):
            return self.value == other.value
        return NotImplemented

    def __lt__(self, other: object) -> bool:
        if isinstance(other, Tag):
            return self.value < other.value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"Tag({self.value!r}, semver={self.semver!r})"

    def semver_key(self) -> Tuple[bool, str]:
        """
        Sort key following `compare_semver`; tags without semver sort first and
        fall back to their raw value among themselves.
        """
        if self.semver is None:
            return (False, self.value)
        return (True, self.semver)


def compare_semver(a: Tag, b: Tag) -> int:
    """
    Compare two tags by their semver strings.

    This is plain string comparison, so "6.9.0" sorts after "6.10.0". A missing
    semver orders before any present one.

    Returns:
        int: -1, 0 or 1.
    """
    if a.semver is None or b.semver is None:
        return (a.semver is not None) - (b.semver is not None)
    return (a.semver > b.semver) - (a.semver < b.semver)


TagLike = Union[str, Tag]


def _as_tag(tag: TagLike) -> Tag:
    return tag if isinstance(tag, Tag) else Tag(tag)


@dataclass(frozen=True, order=True)
class Version:
    """The (tag, kind) identity of a GE version; ordered by tag, then kind."""

    tag: Tag
    kind: ToolKind

    @classmethod
    def new(cls, tag: TagLike, kind: ToolKind) -> "Version":
        return cls(_as_tag(tag), kind)

    @classmethod
    def proton(cls, tag: TagLike) -> "Version":
        return cls.new(tag, ToolKind.PROTON)

    @classmethod
    def wine(cls, tag: TagLike) -> "Version":
        return cls.new(tag, ToolKind.WINE)

    @classmethod
    def lol(cls, tag: TagLike) -> "Version":
        return cls.new(tag, ToolKind.LOL_WINE)

    def __str__(self) -> str:
        return f"{self.tag} ({self.kind.display_name})"
