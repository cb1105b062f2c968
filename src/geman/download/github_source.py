"""
GitHub Release Source for GE Releases

This module resolves GE-Proton and Wine-GE releases on GitHub and downloads
their archive and checksum assets.
"""

from typing import Any, Dict, List, Optional

import requests  # type: ignore[import-untyped]

from geman.constants import (
    ASSET_DOWNLOAD_TIMEOUT,
    FIRST_TAGS_PAGE,
    PROTON_GE_LATEST_RELEASE_URL,
    PROTON_GE_RELEASE_BY_TAG_URL,
    WINE_GE_RELEASE_BY_TAG_URL,
    WINE_GE_TAGS_URL,
)
from geman.exceptions import (
    DeserializationError,
    NoTagsError,
    ReleaseHasNoAssetsError,
)
from geman.log_utils import logger
from geman.utils import GithubClient, format_size

from .interfaces import (
    DownloadedAssets,
    DownloadedChecksum,
    DownloadedTar,
    DownloadRequest,
    Release,
    create_release_from_github_data,
)
from .version import Tag, ToolKind, WineKind


def _decode_json(response: requests.Response, url: str) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise DeserializationError(
            "Could not decode GitHub response", endpoint=url, details=str(e)
        ) from e


class GithubReleaseSource:
    """
    Resolves and downloads GE releases.

    The transport is injected so tests can substitute it. Pagination state for
    the Wine tag scan lives in local variables, so one instance can serve
    concurrent calls.

    Usage:
        source = GithubReleaseSource()
        release = source.fetch_release(None, ToolKind.PROTON)
        assets = source.download_release(ToolKind.PROTON, DownloadRequest())
    """

    def __init__(self, client: Optional[GithubClient] = None):
        """
        Parameters:
            client (Optional[GithubClient]): Transport for GitHub requests; a default client is created when omitted.
        """
        self.client = client or GithubClient()

    def fetch_release(self, tag: Optional[str], kind: ToolKind) -> Release:
        """
        Fetch a release by tag, or the latest release of `kind` when `tag` is None.

        Proton's latest release comes from the "latest release" endpoint. The
        Wine family has no usable equivalent, so its latest tag is found by
        scanning the tag listing first.

        Raises:
            StatusNotOkError: For non-200 responses.
            DeserializationError: If a response body is not valid release JSON.
            NoTagsError: If the Wine tag scan runs out of pages.
        """
        if tag is None:
            if kind is ToolKind.PROTON:
                return self._get_release(PROTON_GE_LATEST_RELEASE_URL)
            tag = self.fetch_latest_wine_tag(kind.wine_kind).value

        return self._get_release(self._release_url(tag, kind))

    def fetch_latest_tag(self, kind: ToolKind) -> Tag:
        """Return the tag of the latest upstream release of `kind`."""
        if kind is ToolKind.PROTON:
            return Tag(self._get_release(PROTON_GE_LATEST_RELEASE_URL).tag_name)
        return self.fetch_latest_wine_tag(kind.wine_kind)

    def fetch_latest_wine_tag(self, wine_kind: Optional[WineKind]) -> Tag:
        """
        Scan the Wine-GE tag listing page by page for the newest tag of `wine_kind`.

        Tags are filtered by the presence of "LoL", tags without a derivable
        semver are dropped, and the maximum by semver wins. Pages without a
        candidate are skipped; an empty page ends the scan with NoTagsError.
        """
        want_lol = wine_kind is WineKind.LOL
        page = FIRST_TAGS_PAGE
        while True:
            names = self._get_tag_names(page)
            if not names:
                raise NoTagsError(
                    "No tags found",
                    endpoint=WINE_GE_TAGS_URL,
                    details=f"page {page}",
                )

            candidates = [
                Tag(name) for name in names if ("LoL" in name) == want_lol
            ]
            candidates = [tag for tag in candidates if tag.semver is not None]
            if candidates:
                latest = max(candidates, key=Tag.semver_key)
                logger.debug(f"Latest Wine GE tag on page {page}: {latest}")
                return latest

            logger.debug(f"No matching Wine GE tags on page {page}, trying next page")
            page += 1

    def download_release(
        self, kind: ToolKind, request: DownloadRequest
    ) -> DownloadedAssets:
        """
        Download the archive and, unless skipped, the checksum of a release.

        The archive is read fully into memory.

        Raises:
            ReleaseHasNoAssetsError: If the release lists no assets at all.
            MissingAssetError: If the archive or checksum asset is absent.
        """
        release = self.fetch_release(request.tag, kind)
        if not release.assets:
            raise ReleaseHasNoAssetsError(release.tag_name, kind)

        tar_asset = release.tar_asset()
        checksum = None
        if not request.skip_checksum:
            checksum_asset = release.checksum_asset()
            logger.debug(f"Downloading checksum {checksum_asset.name}")
            response = self.client.get(checksum_asset.download_url)
            checksum = DownloadedChecksum(
                file_name=checksum_asset.name, checksum=response.text
            )

        logger.info(f"Downloading {tar_asset.name}")
        response = self.client.get(
            tar_asset.download_url, timeout=ASSET_DOWNLOAD_TIMEOUT
        )
        content = response.content
        logger.info(f"Downloaded: {tar_asset.name} ({format_size(len(content))})")

        return DownloadedAssets(
            tag=release.tag_name,
            compressed_tar=DownloadedTar(
                file_name=tar_asset.name, compressed_content=content
            ),
            checksum=checksum,
        )

    def _release_url(self, tag: str, kind: ToolKind) -> str:
        if kind is ToolKind.PROTON:
            return PROTON_GE_RELEASE_BY_TAG_URL.format(tag=tag)
        return WINE_GE_RELEASE_BY_TAG_URL.format(tag=tag)

    def _get_release(self, url: str) -> Release:
        data = _decode_json(self.client.get(url), url)
        if not isinstance(data, dict):
            raise DeserializationError(
                "Unexpected release payload",
                endpoint=url,
                details=f"expected object, got {type(data).__name__}",
            )
        try:
            return create_release_from_github_data(data)
        except (KeyError, TypeError) as e:
            raise DeserializationError(
                "Malformed release payload", endpoint=url, details=str(e)
            ) from e

    def _get_tag_names(self, page: int) -> List[str]:
        params: Dict[str, Any] = {"page": page}
        response = self.client.get(WINE_GE_TAGS_URL, params=params)
        data = _decode_json(response, WINE_GE_TAGS_URL)
        if not isinstance(data, list):
            raise DeserializationError(
                "Unexpected tag listing payload",
                endpoint=WINE_GE_TAGS_URL,
                details=f"expected list, got {type(data).__name__}",
            )
        try:
            return [entry["name"] for entry in data]
        except (KeyError, TypeError) as e:
            raise DeserializationError(
                "Malformed tag listing", endpoint=WINE_GE_TAGS_URL, details=str(e)
            ) from e
