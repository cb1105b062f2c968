"""
GE-Man Download Subsystem

Release resolution, archive download and verification, and extraction of
GE-Proton and Wine-GE releases.

Core Components:
- version: tags, semver derivation, tool kinds and version identity
- interfaces: release, asset, request and result data classes
- github_source: GitHub release resolution and asset download
- files: checksum verification, tar extraction and atomic writes
- orchestrator: the download, verify and extract pipeline
"""

from .files import checksums_match, extract_compressed_tar
from .github_source import GithubReleaseSource
from .interfaces import (
    Asset,
    DownloadedAssets,
    DownloadRequest,
    ExtractedDirectory,
    Release,
)
from .orchestrator import DownloadOrchestrator
from .version import Tag, ToolKind, Version, WineKind, compare_semver, derive_semver

__all__ = [
    # Data structures
    "Asset",
    "Release",
    "DownloadRequest",
    "DownloadedAssets",
    "ExtractedDirectory",
    # Versions
    "Tag",
    "ToolKind",
    "WineKind",
    "Version",
    "derive_semver",
    "compare_semver",
    # Components
    "GithubReleaseSource",
    "DownloadOrchestrator",
    "checksums_match",
    "extract_compressed_tar",
]
