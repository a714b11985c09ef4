"""
Core data structures for the gnatfetch download subsystem.

These records are the typed form of the GitHub API payloads and of the
artifacts the resolver produces.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass
class ReleaseAsset:
    """A file attached to an upstream GitHub release."""

    name: str
    """The asset filename"""

    browser_download_url: str = ""
    """Public download URL reported by the API"""


@dataclass
class Release:
    """An upstream release as returned by the release-by-tag endpoint."""

    tag_name: str
    """The release tag (e.g., 'gnat-15.2.0-1')"""

    prerelease: bool = False
    """Whether GitHub marks the release as a prerelease"""

    assets: List[ReleaseAsset] = field(default_factory=list)
    """Assets published with this release"""

    @property
    def asset_names(self) -> List[str]:
        return [asset.name for asset in self.assets]


@dataclass(frozen=True)
class Asset:
    """A resolved, downloadable compiler archive."""

    filename: str
    """Archive filename (e.g., 'gnat-x86_64-linux-15.2.0-1.tar.gz')"""

    tag_name: str
    """Release tag the archive belongs to"""

    download_url: str
    """Direct URL of the archive"""

    checksum_url: str
    """URL of the `.sha256` sidecar; always `download_url + '.sha256'`"""


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of a checksum verification."""

    verified: bool
    """True when the computed digest matched the sidecar"""

    skipped: bool = False
    """True when no SHA-256 implementation was available"""

    expected: Optional[str] = None
    """Digest read from the sidecar"""

    actual: Optional[str] = None
    """Digest computed over the file"""


@dataclass
class DownloadResult:
    """Result of fetching and verifying one artifact."""

    asset: Asset
    """The artifact that was downloaded"""

    file_path: Path
    """Local path of the archive"""

    checksum_path: Path
    """Local path of the checksum sidecar"""

    verification: VerificationResult
    """How the archive was verified"""
