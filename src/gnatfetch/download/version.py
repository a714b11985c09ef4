"""
Version parsing and ordering for GNAT releases.

Upstream versions follow `MAJOR.MINOR.PATCH[-BUILD]` for stable releases
and `MAJOR.MINOR.PATCH-snapshot` for snapshot builds. Ordering is numeric
on the first three components only.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from gnatfetch.constants import RELEASE_TAG_PREFIX, VERSION_PATTERN
from gnatfetch.exceptions import NoStableVersionFoundError, VersionError
from gnatfetch.log_utils import logger

VERSION_RX = re.compile(VERSION_PATTERN)


@dataclass(frozen=True)
class GnatVersion:
    """
    A parsed GNAT version identifier.

    At most one of `build_number` and `is_snapshot` is set. `raw` keeps the
    exact input text, which is what release tags and filenames are built
    from.
    """

    major: int
    minor: int
    patch: int
    build_number: Optional[int] = None
    is_snapshot: bool = False
    raw: str = ""

    @property
    def release_key(self) -> Tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    @property
    def sort_key(self) -> Tuple[int, int, int, bool, int]:
        """
        Total ordering key.

        For one numeric prefix the order is `X.Y.Z` < `X.Y.Z-1` < `X.Y.Z-2` <
        `X.Y.Z-snapshot`.
        """
        build = self.build_number if self.build_number is not None else -1
        return (self.major, self.minor, self.patch, self.is_snapshot, build)

    @property
    def base(self) -> str:
        """The `MAJOR.MINOR.PATCH` part of the version."""
        return f"{self.major}.{self.minor}.{self.patch}"

    @property
    def tag_name(self) -> str:
        return release_tag(str(self))

    def __str__(self) -> str:
        if self.raw:
            return self.raw
        if self.is_snapshot:
            return f"{self.base}-snapshot"
        if self.build_number is not None:
            return f"{self.base}-{self.build_number}"
        return self.base


def parse_version(text: str) -> GnatVersion:
    """
    Parse a version string into a GnatVersion.

    Raises:
        VersionError: If `text` is not `MAJOR.MINOR.PATCH`, optionally
            followed by `-BUILD` or `-snapshot`.
    """
    trimmed = (text or "").strip()
    match = VERSION_RX.match(trimmed)
    if not match:
        raise VersionError(
            f"Invalid version string: {text!r}",
            field="version",
            value=text,
            details="expected MAJOR.MINOR.PATCH[-BUILD] or MAJOR.MINOR.PATCH-snapshot",
        )

    major, minor, patch, build, snapshot = match.groups()
    return GnatVersion(
        major=int(major),
        minor=int(minor),
        patch=int(patch),
        build_number=int(build) if build is not None else None,
        is_snapshot=snapshot is not None,
        raw=trimmed,
    )


def try_parse_version(text: Optional[str]) -> Optional[GnatVersion]:
    """Like parse_version(), but return None for unparsable input."""
    if not isinstance(text, str):
        return None
    try:
        return parse_version(text)
    except VersionError:
        return None


def release_tag(version_string: str) -> str:
    """Return the upstream release tag for a version string."""
    return f"{RELEASE_TAG_PREFIX}{version_string}"


def sort_versions(
    versions: Iterable[GnatVersion], descending: bool = False
) -> List[GnatVersion]:
    """
    Sort versions numerically by (major, minor, patch).

    Versions sharing a numeric prefix are ordered by build number, with the
    snapshot last, so the result does not depend on the input order.
    """
    return sorted(versions, key=lambda v: v.sort_key, reverse=descending)


def latest_stable(versions: Iterable[GnatVersion]) -> GnatVersion:
    """
    Return the newest non-snapshot version.

    Build numbers only break ties between releases with the same numeric
    prefix.

    Raises:
        NoStableVersionFoundError: If every version is a snapshot, or there
            are none at all.
    """
    stable = [v for v in versions if not v.is_snapshot]
    if not stable:
        raise NoStableVersionFoundError("No stable GNAT version found")

    newest = max(stable, key=lambda v: v.sort_key)
    logger.debug(f"Latest stable version is {newest}")
    return newest
