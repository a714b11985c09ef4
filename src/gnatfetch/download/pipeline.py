"""
Download pipeline coordination.

Wires platform detection, version resolution, download and checksum
verification together for a single requested version. Each step runs
strictly after the previous one and any fatal error aborts the run.
"""

from pathlib import Path
from typing import Optional, Union

import requests

from gnatfetch.config import Settings
from gnatfetch.constants import CHECKSUM_EXTENSION
from gnatfetch.log_utils import logger
from gnatfetch.platform_info import PlatformArch, detect_platform

from .checksum import ChecksumVerifier
from .github_source import GithubApiClient, GithubReleaseCatalog
from .http import FileDownloader, RetryPolicy, build_session
from .interfaces import Asset, DownloadResult
from .resolver import VersionResolver

LATEST_ALIAS = "latest"


class ArtifactFetcher:
    """
    Resolves, downloads and verifies one GNAT archive.

    The platform is detected lazily on first use unless one is passed in,
    so listing versions works on hosts with no published archives.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
        platform_arch: Optional[PlatformArch] = None,
    ):
        self.settings = settings or Settings()
        self.session = session or build_session()
        self._platform_arch = platform_arch

        self.catalog = GithubReleaseCatalog(
            GithubApiClient.from_settings(self.settings, session=self.session),
            self.settings,
        )
        self.resolver = VersionResolver(self.catalog, self.settings.releases_base_url)
        self.downloader = FileDownloader(
            session=self.session,
            retry_policy=RetryPolicy(
                self.settings.retry_attempts, self.settings.retry_delay
            ),
            timeout=self.settings.request_timeout,
        )
        self.verifier = ChecksumVerifier()

    @property
    def platform_arch(self) -> PlatformArch:
        if self._platform_arch is None:
            self._platform_arch = detect_platform()
        return self._platform_arch

    def _expand_version(self, version_string: str) -> str:
        if version_string.strip().lower() == LATEST_ALIAS:
            latest = self.catalog.latest_stable()
            logger.info(f"Latest stable version is {latest}")
            return str(latest)
        return version_string.strip()

    def resolve(self, version_string: str) -> Asset:
        """Resolve a version string (or `latest`) to an Asset for this host."""
        return self.resolver.resolve(
            self._expand_version(version_string), self.platform_arch
        )

    def fetch_version(
        self,
        version_string: str,
        destination_dir: Union[str, Path],
        show_progress: bool = False,
    ) -> DownloadResult:
        """
        Download and verify the archive for `version_string`.

        The archive and its `.sha256` sidecar are written to
        `destination_dir`. On a checksum mismatch both files are kept for
        inspection and ChecksumMismatchError propagates.
        """
        asset = self.resolve(version_string)
        destination = Path(destination_dir)
        file_path = destination / asset.filename
        checksum_path = destination / f"{asset.filename}{CHECKSUM_EXTENSION}"
        token = self.settings.github_token

        logger.info(f"Downloading {asset.filename}")
        self.downloader.fetch(
            asset.download_url,
            file_path,
            show_progress=show_progress,
            auth_token=token,
        )
        self.downloader.fetch(asset.checksum_url, checksum_path, auth_token=token)

        verification = self.verifier.verify(file_path, checksum_path)
        return DownloadResult(
            asset=asset,
            file_path=file_path,
            checksum_path=checksum_path,
            verification=verification,
        )
