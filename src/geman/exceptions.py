"""
Custom exceptions for the GE-Man application.

This module defines domain-specific exceptions that provide better error
categorization and more informative error messages for users and developers.
"""

from pathlib import Path
from typing import Any


class GemanError(Exception):
    """
    Base exception for all GE-Man errors.

    All custom exceptions in GE-Man inherit from this class so callers can
    catch every application-specific error in one place.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(GemanError):
    """
    Exception raised when the program's own settings are invalid.

    This includes:
    - Invalid setting values
    - Undefined environment variables referenced from settings
    """

    pass


class ConfigFileError(ConfigurationError):
    """Exception raised when the settings file cannot be read or parsed."""

    pass


# =============================================================================
# Transport Errors
# =============================================================================


class DownloadError(GemanError):
    """
    Base exception for download-related errors.

    Attributes:
        url: The URL that was being requested when the error occurred.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url


class NetworkError(DownloadError):
    """
    Exception raised for network-related failures.

    This includes:
    - Connection timeouts
    - DNS resolution failures
    - SSL/TLS errors
    """

    pass


class APIError(GemanError):
    """
    Exception raised for GitHub API errors.

    Attributes:
        endpoint: The API endpoint that was called.
        status_code: HTTP status code returned, if any.
    """

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
        details: str | None = None,
    ) -> None:
        """
        Initialize the API exception.

        Args:
            message: The primary error message.
            endpoint: The API endpoint that was called.
            status_code: HTTP status code returned, if any.
            details: Optional additional context.
        """
        super().__init__(message, details)
        self.endpoint = endpoint
        self.status_code = status_code


class StatusNotOkError(APIError):
    """
    Exception raised when GitHub answers with anything but 200.

    Attributes:
        response: The full response object, kept for inspection by callers.
    """

    def __init__(self, response: Any) -> None:
        status_code = getattr(response, "status_code", None)
        super().__init__(
            f"GitHub API returned status {status_code}",
            endpoint=getattr(response, "url", None),
            status_code=status_code,
            details=getattr(response, "reason", None),
        )
        self.response = response


class DeserializationError(APIError):
    """Exception raised when a GitHub response body cannot be decoded."""

    pass


class NoTagsError(APIError):
    """Exception raised when a tag listing page comes back empty."""

    pass


class ReleaseHasNoAssetsError(APIError):
    """
    Exception raised when a release has no downloadable assets.

    Attributes:
        tag: The release tag.
        kind: The tool kind the release was requested for.
    """

    def __init__(self, tag: str, kind: Any) -> None:
        super().__init__(
            f"Release {tag} has no assets",
            details=f"kind: {kind}",
        )
        self.tag = tag
        self.kind = kind


class MissingAssetError(APIError):
    """Exception raised when a release lacks its archive or checksum asset."""

    pass


# =============================================================================
# Integrity Errors
# =============================================================================


class ChecksumMismatchError(GemanError):
    """
    Exception raised when a downloaded archive fails checksum verification.

    Attributes:
        archive_name: File name of the archive.
        expected: Digest published upstream.
        actual: Digest computed locally.
    """

    def __init__(self, archive_name: str, expected: str, actual: str) -> None:
        super().__init__(
            f"Checksum mismatch for {archive_name}",
            details=f"expected {expected}, got {actual}",
        )
        self.archive_name = archive_name
        self.expected = expected
        self.actual = actual


# =============================================================================
# Archive Errors
# =============================================================================


class ArchiveError(GemanError):
    """
    Exception raised for archive-related errors.

    This includes:
    - Streams that cannot be decompressed
    - Archives without entries
    - Extraction failures
    """

    def __init__(
        self,
        message: str,
        archive_name: str | None = None,
        details: str | None = None,
        extracted_path: Path | None = None,
    ) -> None:
        """
        Initialize the archive exception.

        Args:
            message: The primary error message.
            archive_name: Name of the problematic archive.
            details: Optional additional context.
            extracted_path: Top-level directory left partly written, if any.
        """
        super().__init__(message, details)
        self.archive_name = archive_name
        self.extracted_path = extracted_path


class ArchiveDecodeError(ArchiveError):
    """Exception raised when an archive stream is corrupt or uses the wrong compression."""

    pass


class EmptyArchiveError(ArchiveError):
    """Exception raised when an archive contains no entries."""

    pass


class ExtractionError(ArchiveError):
    """Exception raised when archive members cannot be written to disk."""

    pass


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(GemanError):
    """
    Exception raised when validation fails.

    This includes:
    - Tags that cannot be turned into a semver string
    - Over-long labels
    - Invalid version ranges
    - Unknown tool kinds
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: str | None = None,
        details: str | None = None,
    ) -> None:
        """
        Initialize the validation exception.

        Args:
            message: The primary error message.
            field: The name of the field that failed validation.
            value: The value that failed validation.
            details: Optional additional context.
        """
        super().__init__(message, details)
        self.field = field
        self.value = value


class TagParseError(ValidationError):
    """Exception raised when a semver string cannot be derived from a tag."""

    pass


class LabelError(ValidationError):
    """Exception raised when a version label is invalid."""

    pass


class VersionRangeError(ValidationError):
    """Exception raised when a clean range is malformed."""

    pass


class ToolKindError(ValidationError):
    """Exception raised when a tool kind name is not recognized."""

    pass


# =============================================================================
# Registry Errors
# =============================================================================


class RegistryError(GemanError):
    """Base exception for managed version registry errors."""

    pass


class VersionNotManagedError(RegistryError):
    """Exception raised when a version is not in the registry."""

    pass


class VersionAlreadyManagedError(RegistryError):
    """Exception raised when a version is already in the registry."""

    pass


class VersionInUseError(RegistryError):
    """Exception raised when removing a version that a host application uses."""

    pass


class RegistryFileError(RegistryError):
    """
    Exception raised when the registry file cannot be read or written.

    Attributes:
        path: Location of the registry file.
    """

    def __init__(
        self, message: str, path: str | None = None, details: str | None = None
    ) -> None:
        super().__init__(message, details)
        self.path = path


# =============================================================================
# Application Config Errors
# =============================================================================


class AppConfigError(GemanError):
    """
    Exception raised for Steam and Lutris config file errors.

    Attributes:
        path: The config file path.
        kind: The tool kind whose host application owns the file.
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        kind: Any = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.path = path
        self.kind = kind


class AttributeNotFoundError(AppConfigError):
    """Exception raised when the active tool attribute cannot be located."""

    pass


class ConfigFileMissingError(AppConfigError):
    """Exception raised when a host application config file does not exist."""

    pass


class ConfigIOError(AppConfigError):
    """Exception raised when a host application config file cannot be read or written."""

    pass


# =============================================================================
# File System Errors
# =============================================================================


class FileSystemError(GemanError):
    """
    Exception raised for file system-related errors.

    This includes:
    - Permission denied errors
    - Missing directories
    - Failed moves and deletions
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: str | None = None,
    ) -> None:
        """
        Initialize the file system exception.

        Args:
            message: The primary error message.
            path: The file path that caused the error.
            details: Optional additional context.
        """
        super().__init__(message, details)
        self.path = path


class MigrationError(FileSystemError):
    """Exception raised when an existing directory cannot be brought under management."""

    pass
