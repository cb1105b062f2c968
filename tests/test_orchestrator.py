"""Tests for the download, verify and extract pipeline."""

import hashlib
from unittest.mock import Mock

import pytest

from geman.download.github_source import GithubReleaseSource
from geman.download.interfaces import (
    DownloadedAssets,
    DownloadedChecksum,
    DownloadedTar,
    DownloadRequest,
)
from geman.download.orchestrator import DownloadOrchestrator
from geman.download.version import Tag, ToolKind
from geman.exceptions import ArchiveDecodeError, ChecksumMismatchError

pytestmark = [pytest.mark.unit]


def _assets(data, checksum_data=None, tag="GE-Proton7-22", file_name=None):
    checksum = None
    if checksum_data is not None:
        checksum = DownloadedChecksum(
            file_name=f"{tag}.sha512sum",
            checksum=f"{hashlib.sha512(checksum_data).hexdigest()}  {tag}.tar.gz\n",
        )
    return DownloadedAssets(
        tag=tag,
        compressed_tar=DownloadedTar(
            file_name=file_name or f"{tag}.tar.gz", compressed_content=data
        ),
        checksum=checksum,
    )


def _orchestrator(assets):
    source = Mock(spec=GithubReleaseSource)
    source.download_release.return_value = assets
    return DownloadOrchestrator(source), source


class TestAcquire:
    """Tests for DownloadOrchestrator.acquire."""

    def test_verified_extraction(self, proton_archive, tmp_path):
        orchestrator, source = _orchestrator(_assets(proton_archive, proton_archive))
        request = DownloadRequest()

        extracted = orchestrator.acquire(ToolKind.PROTON, request, tmp_path)

        source.download_release.assert_called_once_with(ToolKind.PROTON, request)
        assert extracted.tag == Tag("GE-Proton7-22")
        assert extracted.kind is ToolKind.PROTON
        assert extracted.name == "GE-Proton7-22"
        assert extracted.path.is_dir()

    def test_checksum_mismatch_extracts_nothing(self, proton_archive, tmp_path):
        orchestrator, _source = _orchestrator(_assets(proton_archive, b"other"))
        destination = tmp_path / "scratch"

        with pytest.raises(ChecksumMismatchError):
            orchestrator.acquire(ToolKind.PROTON, DownloadRequest(), destination)

        assert not destination.exists()

    def test_skipped_checksum_logs_warning(self, wine_archive, tmp_path, mocker):
        mock_logger = mocker.patch("geman.download.orchestrator.logger")
        orchestrator, _source = _orchestrator(
            _assets(wine_archive, tag="GE-Proton7-8", file_name="wine.tar.xz")
        )

        extracted = orchestrator.acquire(
            ToolKind.WINE, DownloadRequest(skip_checksum=True), tmp_path
        )

        assert extracted.name == "lutris-GE-Proton7-8-x86_64"
        mock_logger.warning.assert_called_once()
        assert "wine.tar.xz" in mock_logger.warning.call_args.args[0]

    def test_wrong_compression_surfaces_decode_error(self, proton_archive, tmp_path):
        orchestrator, _source = _orchestrator(_assets(proton_archive))
        with pytest.raises(ArchiveDecodeError):
            orchestrator.acquire(
                ToolKind.LOL_WINE, DownloadRequest(skip_checksum=True), tmp_path
            )
