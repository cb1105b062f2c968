"""
Tests for the GE-Man exception hierarchy.

Covers message formatting of the GemanError base class and the extra
attributes carried by each error family.
"""

from unittest.mock import Mock

import pytest

from geman.download.version import ToolKind
from geman.exceptions import (
    APIError,
    AppConfigError,
    ArchiveDecodeError,
    ArchiveError,
    AttributeNotFoundError,
    ChecksumMismatchError,
    ConfigFileError,
    ConfigFileMissingError,
    ConfigurationError,
    DownloadError,
    EmptyArchiveError,
    FileSystemError,
    GemanError,
    LabelError,
    MigrationError,
    NetworkError,
    NoTagsError,
    RegistryError,
    RegistryFileError,
    ReleaseHasNoAssetsError,
    StatusNotOkError,
    TagParseError,
    ValidationError,
    VersionInUseError,
    VersionRangeError,
)

pytestmark = [pytest.mark.unit]


class TestGemanError:
    """Test the base exception."""

    def test_message_only(self):
        error = GemanError("Something failed")
        assert str(error) == "Something failed"
        assert error.details is None

    def test_message_with_details(self):
        error = GemanError("Something failed", details="disk full")
        assert str(error) == "Something failed - disk full"

    def test_catchable_as_exception(self):
        with pytest.raises(GemanError):
            raise MigrationError("boom")


class TestHierarchy:
    """Every error family is rooted at GemanError."""

    @pytest.mark.parametrize(
        "subclass, parent",
        [
            (ConfigFileError, ConfigurationError),
            (NetworkError, DownloadError),
            (StatusNotOkError, APIError),
            (NoTagsError, APIError),
            (ArchiveDecodeError, ArchiveError),
            (EmptyArchiveError, ArchiveError),
            (TagParseError, ValidationError),
            (LabelError, ValidationError),
            (VersionRangeError, ValidationError),
            (VersionInUseError, RegistryError),
            (RegistryFileError, RegistryError),
            (AttributeNotFoundError, AppConfigError),
            (ConfigFileMissingError, AppConfigError),
            (MigrationError, FileSystemError),
            (ChecksumMismatchError, GemanError),
        ],
    )
    def test_subclass(self, subclass, parent):
        assert issubclass(subclass, parent)
        assert issubclass(subclass, GemanError)


class TestAttributes:
    """Test the context attributes of specific errors."""

    def test_status_not_ok_keeps_response(self):
        response = Mock(status_code=403, url="https://api.github.com/x", reason="Forbidden")
        error = StatusNotOkError(response)

        assert error.response is response
        assert error.status_code == 403
        assert error.endpoint == "https://api.github.com/x"
        assert str(error) == "GitHub API returned status 403 - Forbidden"

    def test_release_has_no_assets(self):
        error = ReleaseHasNoAssetsError("GE-Proton7-22", ToolKind.PROTON)
        assert error.tag == "GE-Proton7-22"
        assert error.kind is ToolKind.PROTON
        assert "GE-Proton7-22" in str(error)

    def test_checksum_mismatch(self):
        error = ChecksumMismatchError("a.tar.gz", "aaa", "bbb")
        assert str(error) == "Checksum mismatch for a.tar.gz - expected aaa, got bbb"

    def test_validation_fields(self):
        error = LabelError("Label too long", field="label", value="x")
        assert (error.field, error.value) == ("label", "x")

    def test_app_config_fields(self):
        error = ConfigFileMissingError(
            "Steam config not found", path="/s/config.vdf", kind=ToolKind.PROTON
        )
        assert error.path == "/s/config.vdf"
        assert error.kind is ToolKind.PROTON

    def test_download_error_url(self):
        error = NetworkError("Request failed", url="https://example.com", details="timeout")
        assert error.url == "https://example.com"
        assert str(error) == "Request failed - timeout"
