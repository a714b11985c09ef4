"""End-to-end tests for ArtifactFetcher with a fake upstream."""

import hashlib

import pytest
import requests

from gnatfetch.config import Settings
from gnatfetch.download.pipeline import ArtifactFetcher
from gnatfetch.exceptions import (
    ChecksumMismatchError,
    DownloadFailedError,
    UnsupportedPlatformError,
)
from gnatfetch.platform_info import PlatformArch

pytestmark = [pytest.mark.integration, pytest.mark.core_downloads]

API = "https://api.github.com/repos/alire-project/GNAT-FSF-builds/releases"
DOWNLOADS = "https://github.com/alire-project/GNAT-FSF-builds/releases/download"
ARCHIVE = b"\x1f\x8b fake gnat archive bytes"
DIGEST = hashlib.sha256(ARCHIVE).hexdigest()
LINUX_X86 = PlatformArch(platform="linux", arch="x86_64")


@pytest.fixture
def upstream(mock_session, response_factory, sample_snapshot_release):
    """
    Route session.get() calls to canned responses keyed by URL.

    Returns the routing dict so tests can adjust individual entries.
    """
    stable_url = f"{DOWNLOADS}/gnat-15.2.0-1/gnat-x86_64-linux-15.2.0-1.tar.gz"
    snapshot_url = (
        f"{DOWNLOADS}/gnat-16.0.0-snapshot/gnat-x86_64-linux-16.0.0-20250103.tar.gz"
    )
    routes = {
        API: lambda: response_factory(
            json_data=[
                {"tag_name": "gnat-15.2.0-1"},
                {"tag_name": "gnat-16.0.0-snapshot"},
                {"tag_name": "gnat-14.2.0-1"},
            ]
        ),
        f"{API}/tags/gnat-16.0.0-snapshot": lambda: response_factory(
            json_data=sample_snapshot_release
        ),
        stable_url: lambda: response_factory(content=ARCHIVE),
        stable_url + ".sha256": lambda: response_factory(
            content=f"{DIGEST}  gnat-x86_64-linux-15.2.0-1.tar.gz\n".encode()
        ),
        snapshot_url: lambda: response_factory(content=ARCHIVE),
        snapshot_url + ".sha256": lambda: response_factory(content=DIGEST.encode()),
    }

    def _get(url, **_kwargs):
        handler = routes.get(url)
        if handler is None:
            return response_factory(status_code=404, url=url)
        return handler()

    mock_session.get.side_effect = _get
    return routes


@pytest.fixture
def fetcher(mock_session):
    settings = Settings(github_token="secret-token")
    return ArtifactFetcher(settings, session=mock_session, platform_arch=LINUX_X86)


def _requested_urls(mock_session):
    return [call.args[0] for call in mock_session.get.call_args_list]


def test_stable_download_and_verify(tmp_path, fetcher, upstream, mock_session):
    result = fetcher.fetch_version("15.2.0-1", tmp_path)

    assert result.file_path == tmp_path / "gnat-x86_64-linux-15.2.0-1.tar.gz"
    assert result.file_path.read_bytes() == ARCHIVE
    assert result.checksum_path.exists()
    assert result.verification.verified is True
    # Stable resolution needs no API call
    assert not any(url.startswith(API) for url in _requested_urls(mock_session))
    for call in mock_session.get.call_args_list:
        assert call.kwargs["headers"]["Authorization"] == "token secret-token"


def test_checksum_mismatch_keeps_download(tmp_path, fetcher, upstream, response_factory):
    bad_digest = ("0" if DIGEST[0] != "0" else "1") + DIGEST[1:]
    upstream[
        f"{DOWNLOADS}/gnat-15.2.0-1/gnat-x86_64-linux-15.2.0-1.tar.gz.sha256"
    ] = lambda: response_factory(content=bad_digest.encode())

    with pytest.raises(ChecksumMismatchError) as exc_info:
        fetcher.fetch_version("15.2.0-1", tmp_path)

    assert exc_info.value.expected == bad_digest
    assert exc_info.value.actual == DIGEST
    assert (tmp_path / "gnat-x86_64-linux-15.2.0-1.tar.gz").read_bytes() == ARCHIVE


def test_snapshot_download(tmp_path, fetcher, upstream, mock_session):
    result = fetcher.fetch_version("16.0.0-snapshot", tmp_path)

    assert result.asset.filename == "gnat-x86_64-linux-16.0.0-20250103.tar.gz"
    assert result.verification.verified is True
    urls = _requested_urls(mock_session)
    assert urls.count(f"{API}/tags/gnat-16.0.0-snapshot") == 1


def test_latest_alias(fetcher, upstream):
    asset = fetcher.resolve("latest")

    assert asset.tag_name == "gnat-15.2.0-1"


def test_missing_version_fails_without_retry(tmp_path, fetcher, upstream, mock_session):
    with pytest.raises(DownloadFailedError) as exc_info:
        fetcher.fetch_version("1.0.0", tmp_path)

    assert exc_info.value.status_code == 404
    assert mock_session.get.call_count == 1
    assert list(tmp_path.iterdir()) == []


def test_transient_failures_retried_within_bound(
    tmp_path, fetcher, upstream, mock_session
):
    stable_url = f"{DOWNLOADS}/gnat-15.2.0-1/gnat-x86_64-linux-15.2.0-1.tar.gz"

    def _refuse():
        raise requests.ConnectionError("down")

    upstream[stable_url] = _refuse

    with pytest.raises(DownloadFailedError):
        fetcher.fetch_version("15.2.0-1", tmp_path)

    assert _requested_urls(mock_session).count(stable_url) == 3


def test_platform_detected_lazily(mock_session, mocker):
    detect = mocker.patch(
        "gnatfetch.download.pipeline.detect_platform",
        side_effect=UnsupportedPlatformError("Unsupported operating system: Plan9"),
    )
    fetcher = ArtifactFetcher(Settings(), session=mock_session)
    detect.assert_not_called()

    with pytest.raises(UnsupportedPlatformError):
        fetcher.resolve("15.2.0-1")
    mock_session.get.assert_not_called()
