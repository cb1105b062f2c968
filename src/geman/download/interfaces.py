"""
Core Data Structures for the GE-Man Download Subsystem

This module defines the release, asset, request and result types shared by the
release resolver, the archive helpers and the download orchestrator.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from geman.constants import ARCHIVE_CONTENT_TYPES, CHECKSUM_CONTENT_TYPE
from geman.exceptions import MissingAssetError

from .version import Tag, ToolKind


@dataclass
class Asset:
    """Represents a downloadable asset from a release."""

    name: str
    """The filename of the asset"""

    download_url: str
    """Direct URL to download the asset"""

    content_type: Optional[str] = None
    """MIME type of the asset"""

    size: int = 0
    """File size in bytes"""

    def is_archive(self) -> bool:
        return self.content_type in ARCHIVE_CONTENT_TYPES

    def is_checksum(self) -> bool:
        return self.content_type == CHECKSUM_CONTENT_TYPE


@dataclass
class Release:
    """Represents a GE release as published on GitHub."""

    tag_name: str
    """The release tag (e.g., 'GE-Proton7-22')"""

    assets: List[Asset] = field(default_factory=list)
    """Downloadable assets of this release"""

    def tar_asset(self) -> Asset:
        """
        Return the compressed tar archive asset.

        Raises:
            MissingAssetError: If no asset has an archive content type.
        """
        for asset in self.assets:
            if asset.is_archive():
                return asset
        raise MissingAssetError(f"Release {self.tag_name} has no archive asset")

    def checksum_asset(self) -> Asset:
        """
        Return the checksum asset.

        Raises:
            MissingAssetError: If no asset has the checksum content type.
        """
        for asset in self.assets:
            if asset.is_checksum():
                return asset
        raise MissingAssetError(f"Release {self.tag_name} has no checksum asset")


def create_release_from_github_data(data: Dict[str, Any]) -> Release:
    """
    Build a Release from a GitHub release JSON object.

    Raises:
        KeyError: If required fields are missing.
        TypeError: If the assets field is not a list of objects.
    """
    assets = [
        Asset(
            name=asset["name"],
            download_url=asset["browser_download_url"],
            content_type=asset.get("content_type"),
            size=asset.get("size") or 0,
        )
        for asset in data.get("assets") or []
    ]
    return Release(tag_name=data["tag_name"], assets=assets)


@dataclass
class DownloadRequest:
    """What to fetch: a specific tag, or the latest release when `tag` is None."""

    tag: Optional[str] = None
    """Release tag, or None for the latest release of `kind`"""

    skip_checksum: bool = False
    """Skip fetching and verifying the published checksum"""


@dataclass
class DownloadedTar:
    """A compressed tar archive held in memory."""

    file_name: str
    compressed_content: bytes


@dataclass
class DownloadedChecksum:
    """The published checksum file contents."""

    file_name: str
    checksum: str


@dataclass
class DownloadedAssets:
    """Result of downloading a release's archive and checksum."""

    tag: str
    """The release tag that was downloaded"""

    compressed_tar: DownloadedTar
    """The archive bytes"""

    checksum: Optional[DownloadedChecksum] = None
    """The checksum file, None when checksum verification was skipped"""


@dataclass
class ExtractedDirectory:
    """A release extracted to disk."""

    tag: Tag
    """The release tag"""

    kind: ToolKind
    """Tool family of the release"""

    path: Path
    """Path of the top-level directory created by extraction"""

    @property
    def name(self) -> str:
        return self.path.name
