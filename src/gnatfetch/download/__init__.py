"""
gnatfetch Download Subsystem

Resolves GNAT compiler versions to upstream archives and fetches them.

Core Components:
- interfaces: Typed records for releases, assets and results
- version: Version parsing, ordering and latest-stable selection
- github_source: GitHub release catalog and tag lookup
- resolver: Stable/snapshot resolution and URL composition
- http: Retry policy and file downloader
- checksum: SHA-256 sidecar verification
- pipeline: End-to-end coordination
"""

from .checksum import ChecksumVerifier, calculate_sha256
from .github_source import GithubApiClient, GithubReleaseCatalog
from .http import FileDownloader, RetryPolicy
from .interfaces import (
    Asset,
    DownloadResult,
    Release,
    ReleaseAsset,
    VerificationResult,
)
from .pipeline import ArtifactFetcher
from .resolver import VersionResolver, locate
from .version import GnatVersion, latest_stable, parse_version, sort_versions

__all__ = [
    # Interfaces
    "Asset",
    "DownloadResult",
    "Release",
    "ReleaseAsset",
    "VerificationResult",
    # Versions
    "GnatVersion",
    "parse_version",
    "sort_versions",
    "latest_stable",
    # Catalog and resolution
    "GithubApiClient",
    "GithubReleaseCatalog",
    "VersionResolver",
    "locate",
    # Transfer and verification
    "FileDownloader",
    "RetryPolicy",
    "ChecksumVerifier",
    "calculate_sha256",
    # Orchestration
    "ArtifactFetcher",
]
