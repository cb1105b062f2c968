"""
File Operations for the GE-Man Download Subsystem

Checksum verification, compressed tar extraction and atomic file writes.
"""

import gzip
import io
import json
import lzma
import os
import shutil
import tarfile
import tempfile
import zlib
from pathlib import Path, PurePosixPath
from typing import IO, Any, Callable, Optional, Union

from geman.exceptions import (
    ArchiveDecodeError,
    ChecksumMismatchError,
    EmptyArchiveError,
    ExtractionError,
    FileSystemError,
)
from geman.log_utils import logger
from geman.utils import calculate_sha512

from .version import ToolKind

Pathish = Union[str, Path]

# Errors raised while decompressing or parsing the tar stream
_DECODE_ERRORS = (
    tarfile.ReadError,
    tarfile.CompressionError,
    gzip.BadGzipFile,
    lzma.LZMAError,
    zlib.error,
    EOFError,
)


def _expected_digest(checksum_text: str) -> str:
    # Upstream files read "<digest>  <file name>"
    tokens = checksum_text.split()
    return tokens[0] if tokens else ""


def checksums_match(data: bytes, checksum_text: str) -> bool:
    """
    Check `data` against a published checksum file.

    Parameters:
        data (bytes): The downloaded archive.
        checksum_text (str): Contents of the checksum file; only its first whitespace-delimited token is used.

    Returns:
        bool: True if the SHA-512 hex digest of `data` equals the expected digest.
    """
    return calculate_sha512(data) == _expected_digest(checksum_text)


def verify_checksum(data: bytes, checksum_text: str, archive_name: str) -> None:
    """
    Raise ChecksumMismatchError unless `data` matches `checksum_text`.
    """
    if not checksums_match(data, checksum_text):
        raise ChecksumMismatchError(
            archive_name, _expected_digest(checksum_text), calculate_sha512(data)
        )
    logger.info(f"Checksum verified for {archive_name}")


def tar_mode_for(kind: ToolKind) -> str:
    """Proton ships gzip-compressed tarballs, the Wine family xz-compressed ones."""
    if kind is ToolKind.PROTON:
        return "r:gz"
    return "r:xz"


def _is_safe_archive_member(member_name: str) -> bool:
    """
    Determine whether an archive member name is safe to extract.

    Returns:
        `True` if the member name contains no absolute paths, parent-directory references, or null bytes, `False` otherwise.
    """
    if not member_name or member_name.startswith("/") or member_name.startswith("\\"):
        return False
    if "\x00" in member_name:
        return False
    normalized = os.path.normpath(member_name)
    if os.path.isabs(normalized):
        return False
    if normalized == ".." or normalized.startswith(f"..{os.sep}"):
        return False
    return True


def _top_level_name(member_name: str) -> str:
    parts = [part for part in PurePosixPath(member_name).parts if part != "."]
    return parts[0] if parts else ""


def _partial_path(destination: Path, top_level_name: str) -> Optional[Path]:
    if not top_level_name or not _is_safe_archive_member(top_level_name):
        return None
    return destination / top_level_name


def _extract_member(
    tar: tarfile.TarFile, member: tarfile.TarInfo, destination: Path, archive_name: str
) -> None:
    if not _is_safe_archive_member(member.name):
        raise ExtractionError(
            f"Unsafe archive member: {member.name}", archive_name=archive_name
        )
    tar.extract(member, path=destination, filter="tar")


def extract_compressed_tar(
    kind: ToolKind, data: bytes, destination: Pathish, archive_name: str = ""
) -> Path:
    """
    Decompress and untar an in-memory GE archive into `destination`.

    The first entry is taken to be the archive's single top-level directory. It
    is extracted first and its name captured; the remaining entries follow in
    archive order. A failure part way through leaves whatever was written;
    the error then names the partly written directory in `extracted_path`.

    Parameters:
        kind (ToolKind): Selects the decompressor (gzip for Proton, xz otherwise).
        data (bytes): The compressed archive.
        destination (Pathish): Directory to extract into; created if missing.
        archive_name (str): Archive file name used in error messages.

    Returns:
        Path: `destination` joined with the top-level entry name.

    Raises:
        ArchiveDecodeError: If the stream cannot be decompressed or parsed, including when the wrong compression is used.
        EmptyArchiveError: If the archive holds no entries.
        ExtractionError: If a member is unsafe or cannot be written.
    """
    destination = Path(destination)
    mode = tar_mode_for(kind)
    logger.debug(f"Extracting {archive_name or 'archive'} ({mode}) into {destination}")

    try:
        tar = tarfile.open(fileobj=io.BytesIO(data), mode=mode)
    except _DECODE_ERRORS as e:
        raise ArchiveDecodeError(
            "Could not decode archive", archive_name=archive_name, details=str(e)
        ) from e

    top_level_name = ""
    with tar:
        try:
            first = tar.next()
            if first is None:
                raise EmptyArchiveError(
                    "Archive contains no entries", archive_name=archive_name
                )

            destination.mkdir(parents=True, exist_ok=True)
            top_level_name = _top_level_name(first.name)
            _extract_member(tar, first, destination, archive_name)

            member = tar.next()
            while member is not None:
                _extract_member(tar, member, destination, archive_name)
                member = tar.next()
        except ExtractionError as e:
            e.extracted_path = _partial_path(destination, top_level_name)
            raise
        except _DECODE_ERRORS as e:
            raise ArchiveDecodeError(
                "Archive is corrupt",
                archive_name=archive_name,
                details=str(e),
                extracted_path=_partial_path(destination, top_level_name),
            ) from e
        except (tarfile.TarError, OSError) as e:
            raise ExtractionError(
                "Could not extract archive",
                archive_name=archive_name,
                details=str(e),
                extracted_path=_partial_path(destination, top_level_name),
            ) from e

    extracted = destination / top_level_name
    logger.debug(f"Extracted {archive_name or 'archive'} to {extracted}")
    return extracted


def _atomic_write(
    file_path: Pathish,
    writer_func: Callable[[IO[Any]], None],
    suffix: str = ".tmp",
    binary: bool = False,
) -> None:
    """
    Write a file atomically by writing to a temporary file and replacing the target.

    An existing target keeps its permission bits, and a symlinked target is
    replaced at the path it points to.

    Parameters:
        file_path (Pathish): Destination file path.
        writer_func (Callable): Receives the open temporary file and writes the content.
        suffix (str): Suffix for the temporary file name.
        binary (bool): Open the temporary file in binary mode.

    Raises:
        FileSystemError: If the temporary file cannot be created, written or moved into place.
    """
    file_path = str(file_path)
    # Write through symlinks so the link itself survives
    target = os.path.realpath(file_path)
    try:
        temp_fd, temp_path = tempfile.mkstemp(
            dir=os.path.dirname(target) or ".", prefix="tmp-", suffix=suffix
        )
    except OSError as e:
        raise FileSystemError(
            "Could not create temporary file", path=file_path, details=str(e)
        ) from e

    try:
        if binary:
            with os.fdopen(temp_fd, "wb") as temp_f:
                writer_func(temp_f)
        else:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as temp_f:
                writer_func(temp_f)
        if os.path.exists(target):
            shutil.copymode(target, temp_path)
        os.replace(temp_path, target)
    except (OSError, UnicodeEncodeError) as e:
        raise FileSystemError(
            f"Could not write to {file_path}", path=file_path, details=str(e)
        ) from e
    finally:
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError:
                pass


def _atomic_write_json(file_path: Pathish, data: dict) -> None:
    """Atomically write `data` to `file_path` as pretty-printed JSON."""
    _atomic_write(file_path, lambda f: json.dump(data, f, indent=2), suffix=".json")


def _atomic_write_bytes(file_path: Pathish, data: bytes) -> None:
    """Atomically write raw bytes to `file_path`."""
    _atomic_write(file_path, lambda f: f.write(data), binary=True)
