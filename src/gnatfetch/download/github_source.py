"""
GitHub Release Catalog

This module queries the GNAT-FSF-builds releases API, turning the JSON
payloads into typed records: the list of published compiler versions and
the asset listing of a single release.
"""

import json
import re
from typing import Any, Dict, List, Optional

import requests

from gnatfetch.config import Settings, get_user_agent
from gnatfetch.constants import (
    GITHUB_API_ACCEPT,
    GITHUB_API_VERSION,
    GITHUB_MAX_PER_PAGE,
    RELEASE_TAG_PATTERN,
)
from gnatfetch.exceptions import (
    CatalogUnavailableError,
    DownloadFailedError,
    ReleaseNotFoundError,
)
from gnatfetch.log_utils import logger

from .http import RetryPolicy, auth_headers, build_session, request_with_retry
from .interfaces import Release, ReleaseAsset
from .version import GnatVersion, latest_stable, sort_versions, try_parse_version

RELEASE_TAG_RX = re.compile(RELEASE_TAG_PATTERN)


class GithubApiClient:
    """
    Thin GitHub REST client with token authentication and retries.

    If an authenticated request is rejected with 401 the request is repeated
    once without the token, so a stale token degrades to anonymous access
    instead of failing outright.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        github_token: Optional[str] = None,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: Optional[float] = None,
    ):
        self.session = session or build_session()
        self.github_token = github_token
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout = timeout

    @classmethod
    def from_settings(
        cls, settings: Settings, session: Optional[requests.Session] = None
    ) -> "GithubApiClient":
        return cls(
            session=session,
            github_token=settings.github_token,
            retry_policy=RetryPolicy(settings.retry_attempts, settings.retry_delay),
            timeout=settings.request_timeout,
        )

    def _headers(self, token: Optional[str]) -> Dict[str, str]:
        headers = {
            "Accept": GITHUB_API_ACCEPT,
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": get_user_agent(),
        }
        headers.update(auth_headers(token))
        return headers

    def get(
        self, url: str, params: Optional[Dict[str, Any]] = None
    ) -> requests.Response:
        """
        Perform a GitHub API GET request.

        Returns:
            requests.Response: The final response, which may carry a 4xx
                status; 5xx and connection errors are retried first.

        Raises:
            DownloadFailedError: If every attempt failed transiently.
            requests.RequestException: For non-transient request errors
                such as too many redirects or an invalid URL.
        """
        token = self.github_token
        if token:
            logger.debug("Using GitHub token for API authentication")
        else:
            logger.debug("No GitHub token available - using unauthenticated API requests")

        response = request_with_retry(
            self.session,
            url,
            self.retry_policy,
            headers=self._headers(token),
            params=params,
            timeout=self.timeout,
        )

        if response.status_code == 401 and token:
            logger.warning(
                f"GitHub token authentication failed for {url}. Retrying without authentication."
            )
            response = request_with_retry(
                self.session,
                url,
                self.retry_policy,
                headers=self._headers(None),
                params=params,
                timeout=self.timeout,
            )

        remaining = response.headers.get("X-RateLimit-Remaining")
        if remaining is not None:
            logger.debug(f"GitHub API rate-limit remaining: {remaining}")
        if response.status_code == 403 and remaining == "0":
            logger.error(
                "GitHub API rate limit exceeded. Set GITHUB_TOKEN or GITHUB_API_TOKEN for higher rate limits."
            )
        return response


class GithubReleaseCatalog:
    """
    Enumerates GNAT releases and looks up individual release tags.

    Usage:
        catalog = GithubReleaseCatalog(GithubApiClient.from_settings(settings), settings)
        versions = catalog.list_versions()
        release = catalog.lookup_by_tag("gnat-16.0.0-snapshot")
    """

    def __init__(self, client: GithubApiClient, settings: Optional[Settings] = None):
        self.client = client
        self.settings = settings or Settings()

    @property
    def releases_url(self) -> str:
        return self.settings.releases_url

    def list_versions(self) -> List[GnatVersion]:
        """
        Return every published native GNAT version, sorted ascending.

        Only tags matching `gnat-X.Y.Z`, `gnat-X.Y.Z-N` or
        `gnat-X.Y.Z-snapshot` are kept; cross-compiler tags, duplicates and
        malformed entries are dropped without error.

        Raises:
            CatalogUnavailableError: If the listing cannot be fetched or is
                not a JSON array.
        """
        versions: List[GnatVersion] = []
        seen: set = set()

        for release_data in self._fetch_release_pages():
            if not isinstance(release_data, dict):
                logger.debug(
                    f"Skipping malformed release entry: expected dict, got {type(release_data).__name__}"
                )
                continue
            tag_name = release_data.get("tag_name")
            if not isinstance(tag_name, str):
                continue
            match = RELEASE_TAG_RX.match(tag_name.strip())
            if not match:
                continue
            version_string = match.group(1)
            if version_string in seen:
                continue
            version = try_parse_version(version_string)
            if version is None:
                continue
            seen.add(version_string)
            versions.append(version)

        logger.debug(f"Found {len(versions)} GNAT versions at {self.releases_url}")
        return sort_versions(versions)

    def latest_stable(self) -> GnatVersion:
        """Return the newest non-snapshot version published upstream."""
        return latest_stable(self.list_versions())

    def lookup_by_tag(self, tag: str) -> Release:
        """
        Fetch the release published under `tag`.

        Raises:
            ReleaseNotFoundError: If the API answers 404.
            CatalogUnavailableError: For any other failure.
        """
        url = f"{self.releases_url}/tags/{tag}"
        try:
            response = self.client.get(url)
        except (DownloadFailedError, requests.RequestException) as e:
            raise CatalogUnavailableError(
                f"Failed to query release {tag}", endpoint=url, details=str(e)
            ) from e

        if response.status_code == 404:
            raise ReleaseNotFoundError(
                f"Release not found: {tag}", endpoint=url, status_code=404
            )
        if not response.ok:
            raise CatalogUnavailableError(
                f"Failed to query release {tag}",
                endpoint=url,
                status_code=response.status_code,
                details=f"HTTP {response.status_code}",
            )

        data = self._decode_json(response, url)
        if not isinstance(data, dict):
            raise CatalogUnavailableError(
                f"Unexpected response for release {tag}",
                endpoint=url,
                details=f"expected object, got {type(data).__name__}",
            )
        return create_release_from_github_data(data, fallback_tag=tag)

    def _fetch_release_pages(self) -> List[Any]:
        """
        Fetch the raw release listing.

        Only the first page of up to 100 releases is read unless
        `max_release_pages` is raised, in which case `Link: rel="next"`
        headers are followed up to that many pages.
        """
        url: Optional[str] = self.releases_url
        params: Optional[Dict[str, Any]] = {"per_page": GITHUB_MAX_PER_PAGE}
        releases: List[Any] = []
        pages = 0

        while url and pages < self.settings.max_release_pages:
            try:
                response = self.client.get(url, params=params)
            except (DownloadFailedError, requests.RequestException) as e:
                raise CatalogUnavailableError(
                    "Failed to fetch releases from GitHub",
                    endpoint=url,
                    details=str(e),
                ) from e

            if not response.ok:
                raise CatalogUnavailableError(
                    "Failed to fetch releases from GitHub",
                    endpoint=url,
                    status_code=response.status_code,
                    details=f"HTTP {response.status_code}",
                )

            data = self._decode_json(response, url)
            if not isinstance(data, list):
                raise CatalogUnavailableError(
                    "Invalid releases data received from GitHub API",
                    endpoint=url,
                    details=f"expected array, got {type(data).__name__}",
                )
            releases.extend(data)
            pages += 1

            # The next-page URL already carries its query string
            url = response.links.get("next", {}).get("url")
            params = None

        return releases

    @staticmethod
    def _decode_json(response: requests.Response, url: str) -> Any:
        try:
            return response.json()
        except (ValueError, json.JSONDecodeError) as e:
            raise CatalogUnavailableError(
                "Malformed JSON received from GitHub API",
                endpoint=url,
                details=str(e),
            ) from e


def create_release_from_github_data(
    release_data: Dict[str, Any], fallback_tag: str = ""
) -> Release:
    """
    Create a Release from GitHub API release data.

    Assets without a usable name are skipped with a warning; missing
    download URLs become empty strings.
    """
    tag_name = release_data.get("tag_name")
    if not isinstance(tag_name, str) or not tag_name.strip():
        tag_name = fallback_tag

    release = Release(
        tag_name=tag_name,
        prerelease=bool(release_data.get("prerelease", False)),
    )

    assets_data = release_data.get("assets")
    if not isinstance(assets_data, list):
        logger.warning(f"Release {tag_name} has no asset list")
        return release

    for asset_data in assets_data:
        if not isinstance(asset_data, dict):
            logger.warning(f"Skipping malformed asset for release {tag_name}")
            continue
        asset_name = asset_data.get("name")
        if not isinstance(asset_name, str) or not asset_name.strip():
            logger.warning(f"Skipping asset with invalid name for release {tag_name}")
            continue
        download_url = asset_data.get("browser_download_url")
        release.assets.append(
            ReleaseAsset(
                name=asset_name,
                browser_download_url=download_url if isinstance(download_url, str) else "",
            )
        )

    return release
