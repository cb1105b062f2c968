"""
Archive Acquisition Pipeline

This module ties the release source and the archive helpers together: download
a release, verify it and extract it into a caller-chosen directory.
"""

from pathlib import Path
from typing import Optional, Union

from geman.log_utils import logger

from .files import extract_compressed_tar, verify_checksum
from .github_source import GithubReleaseSource
from .interfaces import DownloadRequest, ExtractedDirectory
from .version import Tag, ToolKind


class DownloadOrchestrator:
    """
    Runs the download, verify and extract steps for one release.

    Each step fails independently. A checksum mismatch aborts before anything is
    extracted; a failed extraction leaves the partially written destination for
    the caller to clean up.
    """

    def __init__(self, source: Optional[GithubReleaseSource] = None):
        self.source = source or GithubReleaseSource()

    def acquire(
        self,
        kind: ToolKind,
        request: DownloadRequest,
        destination: Union[str, Path],
    ) -> ExtractedDirectory:
        """
        Download, verify and extract a release.

        Parameters:
            kind (ToolKind): Tool family, which also selects the decompressor.
            request (DownloadRequest): Tag (or None for latest) and checksum policy.
            destination (Union[str, Path]): Directory the archive is extracted into.

        Returns:
            ExtractedDirectory: The release tag and the created top-level directory.

        Raises:
            GemanError: Any transport, integrity or archive error from the individual steps.
        """
        assets = self.source.download_release(kind, request)
        tar = assets.compressed_tar

        if assets.checksum is not None:
            verify_checksum(
                tar.compressed_content, assets.checksum.checksum, tar.file_name
            )
        else:
            logger.warning(f"Skipping checksum verification for {tar.file_name}")

        path = extract_compressed_tar(
            kind, tar.compressed_content, destination, archive_name=tar.file_name
        )
        logger.info(f"Extracted {tar.file_name} to {path}")
        return ExtractedDirectory(tag=Tag(assets.tag), kind=kind, path=path)
