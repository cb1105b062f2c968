import hashlib
import importlib.metadata
import os
from typing import Any, Dict, Optional

import requests  # type: ignore[import-untyped]

from geman.constants import (
    GITHUB_ACCEPT_HEADER,
    GITHUB_API_TIMEOUT,
    LOW_RATE_LIMIT_THRESHOLD,
)
from geman.exceptions import NetworkError, StatusNotOkError
from geman.log_utils import logger

_USER_AGENT_CACHE: Optional[str] = None


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    Returns:
        The string `ge-man/{version}`, where `{version}` is the installed package version or `unknown` if the version cannot be determined.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        try:
            app_version = importlib.metadata.version("ge-man")
        except importlib.metadata.PackageNotFoundError:
            app_version = "unknown"

        _USER_AGENT_CACHE = f"ge-man/{app_version}"

    return _USER_AGENT_CACHE


def get_effective_github_token(
    github_token: Optional[str], allow_env_token: bool = True
) -> Optional[str]:
    """
    Determine the GitHub token to use, preferring the explicit argument over the environment.

    Parameters:
        github_token (Optional[str]): Explicit token to use; leading and trailing whitespace are ignored.
        allow_env_token (bool): If True, fall back to the `GITHUB_TOKEN` environment variable when no explicit token is provided.

    Returns:
        Optional[str]: The chosen token with surrounding whitespace removed, or `None` if no token is available.
    """
    candidate = (github_token or "").strip()
    if candidate:
        return candidate
    if not allow_env_token:
        return None
    env_token = os.environ.get("GITHUB_TOKEN")
    return env_token.strip() if env_token else None


def _parse_rate_limit_header(header_value: Any) -> Optional[int]:
    """
    Parse an HTTP rate-limit header value into an integer remaining count.

    Returns:
        Optional[int]: The parsed integer value, or `None` for missing or non-numeric values.
    """
    if isinstance(header_value, str) and header_value.isdigit():
        return int(header_value)
    if isinstance(header_value, (int, float)):
        return int(header_value)
    return None


def _log_rate_limit(response: requests.Response) -> None:
    remaining = _parse_rate_limit_header(
        response.headers.get("X-RateLimit-Remaining")
    )
    if remaining is None:
        return
    if remaining <= LOW_RATE_LIMIT_THRESHOLD:
        logger.warning(f"GitHub API rate limit low: {remaining} requests remaining")
    else:
        logger.debug(f"GitHub API requests remaining: {remaining}")


def make_github_api_request(
    url: str,
    github_token: Optional[str] = None,
    allow_env_token: bool = True,
    params: Optional[Dict[str, Any]] = None,
    timeout: Optional[int] = None,
) -> requests.Response:
    """
    Perform a single GitHub GET request with optional token authentication.

    Parameters:
        url (str): GitHub API or asset download URL.
        github_token (Optional[str]): Explicit GitHub token to send as Authorization.
        allow_env_token (bool): If True, fall back to the GITHUB_TOKEN environment variable.
        params (Optional[Dict[str, Any]]): Query parameters to include in the request.
        timeout (Optional[int]): Request timeout in seconds; module default when omitted.

    Returns:
        requests.Response: The response, guaranteed to carry status 200.

    Raises:
        StatusNotOkError: For any status other than 200; the response is attached.
        NetworkError: For lower-level connection or request errors.
    """
    headers = {
        "Accept": GITHUB_ACCEPT_HEADER,
        "User-Agent": get_user_agent(),
    }

    effective_token = get_effective_github_token(github_token, allow_env_token)
    if effective_token:
        headers["Authorization"] = f"token {effective_token}"
        logger.debug("Using GitHub token for API authentication")

    try:
        logger.debug(f"Making GitHub API request: {url}")
        response = requests.get(
            url,
            timeout=timeout or GITHUB_API_TIMEOUT,
            headers=headers,
            params=params,
        )
    except requests.RequestException as e:
        raise NetworkError(f"Request to {url} failed", url=url, details=str(e)) from e

    _log_rate_limit(response)

    if response.status_code != 200:
        logger.debug(f"GitHub returned {response.status_code} for {url}")
        raise StatusNotOkError(response)
    return response


class GithubClient:
    """
    Thin transport used by the release resolver.

    Holds the token settings so callers only pass a URL and query parameters.
    Tests replace an instance of this class rather than patching `requests`.
    """

    def __init__(
        self,
        github_token: Optional[str] = None,
        allow_env_token: bool = True,
        timeout: Optional[int] = None,
    ):
        self.github_token = github_token
        self.allow_env_token = allow_env_token
        self.timeout = timeout

    def get(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[int] = None,
    ) -> requests.Response:
        return make_github_api_request(
            url,
            github_token=self.github_token,
            allow_env_token=self.allow_env_token,
            params=params,
            timeout=timeout or self.timeout,
        )


def calculate_sha512(data: bytes) -> str:
    """Return the lowercase SHA-512 hex digest of `data`."""
    return hashlib.sha512(data).hexdigest()


def format_size(num_bytes: int) -> str:
    """Format a byte count in MB with one decimal, as used in download log lines."""
    return f"{num_bytes / (1024 * 1024):.1f} MB"
