"""
Version resolution.

Stable releases are addressed purely by naming convention:
`gnat-<arch>-<platform>-<version>.tar.gz` under tag `gnat-<version>`.
Snapshot archives embed an upstream build date in their filename, so the
only way to learn the name is to list the snapshot release's assets.
"""

import re
from typing import Optional, Protocol

from gnatfetch.constants import ARCHIVE_EXTENSION, CHECKSUM_EXTENSION
from gnatfetch.exceptions import NoMatchingSnapshotAssetError, ValidationError
from gnatfetch.log_utils import logger
from gnatfetch.platform_info import PlatformArch

from .interfaces import Asset, Release
from .version import GnatVersion, parse_version, release_tag


class ReleaseLookup(Protocol):
    def lookup_by_tag(self, tag: str) -> Release: ...


def locate(tag_name: str, filename: str, releases_base_url: str) -> Asset:
    """
    Compose the download and checksum URLs for a release file.

    Raises:
        ValidationError: If the tag or filename is empty.
    """
    if not tag_name or not tag_name.strip():
        raise ValidationError("Release tag must not be empty", field="tag_name")
    if not filename or not filename.strip():
        raise ValidationError("Artifact filename must not be empty", field="filename")

    download_url = f"{releases_base_url.rstrip('/')}/{tag_name}/{filename}"
    return Asset(
        filename=filename,
        tag_name=tag_name,
        download_url=download_url,
        checksum_url=f"{download_url}{CHECKSUM_EXTENSION}",
    )


def stable_filename(version_string: str, platform_arch: PlatformArch) -> str:
    """Return the archive filename of a stable release for the given host."""
    return f"gnat-{platform_arch.arch}-{platform_arch.platform}-{version_string}{ARCHIVE_EXTENSION}"


def snapshot_filename_pattern(
    version: GnatVersion, platform_arch: PlatformArch
) -> "re.Pattern[str]":
    """Match `gnat-<arch>-<platform>-<X.Y.Z>-<builddate>.tar.gz`."""
    return re.compile(
        rf"^gnat-{re.escape(platform_arch.arch)}-{re.escape(platform_arch.platform)}"
        rf"-{re.escape(version.base)}-\d+{re.escape(ARCHIVE_EXTENSION)}$"
    )


class VersionResolver:
    """
    Turns a requested version string into a downloadable Asset.
    """

    def __init__(self, catalog: ReleaseLookup, releases_base_url: str):
        self.catalog = catalog
        self.releases_base_url = releases_base_url

    def resolve(self, version_string: str, platform_arch: PlatformArch) -> Asset:
        """
        Resolve `version_string` for `platform_arch`.

        Stable versions never touch the network. Snapshot versions issue
        exactly one release-by-tag lookup and take the first asset whose
        name matches the host's arch and platform.

        Raises:
            VersionError: If the version string is malformed.
            ReleaseNotFoundError: If the snapshot tag does not exist.
            NoMatchingSnapshotAssetError: If the snapshot release has no
                archive for this host.
        """
        version = parse_version(version_string)
        tag_name = release_tag(str(version))

        if version.is_snapshot:
            filename = self._find_snapshot_filename(version, tag_name, platform_arch)
        else:
            filename = stable_filename(str(version), platform_arch)

        asset = locate(tag_name, filename, self.releases_base_url)
        logger.debug(f"Resolved {version} for {platform_arch} to {asset.download_url}")
        return asset

    def _find_snapshot_filename(
        self, version: GnatVersion, tag_name: str, platform_arch: PlatformArch
    ) -> str:
        release = self.catalog.lookup_by_tag(tag_name)
        pattern = snapshot_filename_pattern(version, platform_arch)

        match: Optional[str] = next(
            (name for name in release.asset_names if pattern.match(name)), None
        )
        if match is None:
            raise NoMatchingSnapshotAssetError(
                f"No snapshot archive for {platform_arch} in release {tag_name}",
                tag_name=tag_name,
                available=release.asset_names,
            )
        logger.debug(f"Snapshot {tag_name} provides {match}")
        return match
