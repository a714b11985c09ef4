import json
import time

import platformdirs
import pytest
import requests
from requests.structures import CaseInsensitiveDict

_NETWORK_BLOCK_MSG = (
    "Network access is blocked during tests. Mock requests.* or Session.request."
)


def _block_network(*_args, **_kwargs):
    """
    Prevent network calls in tests by raising a RuntimeError.

    Raises:
        RuntimeError: with `_NETWORK_BLOCK_MSG` indicating that network access is blocked during tests.
    """
    raise RuntimeError(_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """Register the markers used across the suite."""
    config.addinivalue_line("markers", "unit: fast isolated unit tests")
    config.addinivalue_line(
        "markers", "core_downloads: version resolution and artifact download tests"
    )
    config.addinivalue_line("markers", "user_interface: command-line interface tests")
    config.addinivalue_line("markers", "configuration: settings and logging tests")
    config.addinivalue_line(
        "markers", "integration: end-to-end tests against a fake upstream"
    )


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point platformdirs at a temporary directory and clear gnatfetch-related environment variables.

    Token variables are removed so that tests never pick up a developer's real GitHub token, and
    GNATFETCH_CONFIG is cleared so the default config location (inside the temp tree) is used.
    """
    config_dir = tmp_path_factory.mktemp("gnatfetch") / "config"
    config_dir.mkdir(parents=True, exist_ok=True)

    for var in (
        "GITHUB_TOKEN",
        "GITHUB_API_TOKEN",
        "GNATFETCH_CONFIG",
        "GNATFETCH_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)

    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )


def pytest_runtest_setup():
    """
    Prevent real network requests during tests by replacing HTTP entry points with blocking callables.
    """
    requests.get = _block_network
    requests.post = _block_network
    requests.put = _block_network
    requests.delete = _block_network
    requests.head = _block_network
    requests.patch = _block_network
    requests.options = _block_network
    requests.Session.request = _block_network


@pytest.fixture(autouse=True)
def _mock_time_sleep(monkeypatch):
    """
    Make time.sleep instant for all tests to prevent delays.

    Retry loops sleep between attempts. Tests that need to observe the
    delays patch time.sleep themselves.
    """
    monkeypatch.setattr(time, "sleep", lambda *_args, **_kwargs: None)


def make_response(
    status_code=200, content=b"", json_data=None, headers=None, url="https://example.com/"
):
    """
    Build a real requests.Response with an already-consumed body.

    Parameters:
        status_code (int): HTTP status to report.
        content (bytes): Body returned by iter_content()/content.
        json_data: If given, serialized as the JSON body (overrides `content`).
        headers (dict | None): Response headers.
        url (str): URL the response claims to come from.
    """
    response = requests.Response()
    response.status_code = status_code
    if json_data is not None:
        content = json.dumps(json_data).encode("utf-8")
    response._content = content
    response._content_consumed = True
    response.headers = CaseInsensitiveDict(headers or {})
    response.url = url
    response.encoding = "utf-8"
    return response


@pytest.fixture
def response_factory():
    """Provide make_response() to tests."""
    return make_response


@pytest.fixture
def mock_session(mocker):
    """A MagicMock standing in for requests.Session; configure `.get` per test."""
    session = mocker.MagicMock(spec=requests.Session)
    session.headers = {}
    return session


@pytest.fixture
def sample_release_listing():
    """GitHub release listing payload mixing native, cross and snapshot tags."""
    return [
        {"tag_name": "gnat-15.2.0-1", "prerelease": False, "assets": []},
        {"tag_name": "gnat-16.0.0-snapshot", "prerelease": True, "assets": []},
        {"tag_name": "gnat-arm-elf-15.2.0-1", "prerelease": False, "assets": []},
        {"tag_name": "gnat-14.2.0-1", "prerelease": False, "assets": []},
        {"tag_name": "gnat-14.2.0-1", "prerelease": False, "assets": []},
        {"tag_name": "gprbuild-24.0.0-1", "prerelease": False, "assets": []},
        {"tag_name": "gnat-13.2.0", "prerelease": False, "assets": []},
        "not-a-release",
        {"name": "missing tag"},
    ]


@pytest.fixture
def sample_snapshot_release():
    """Release-by-tag payload for a snapshot with date-stamped asset names."""
    base = "https://github.com/alire-project/GNAT-FSF-builds/releases/download/gnat-16.0.0-snapshot"
    names = [
        "gnat-x86_64-windows64-16.0.0-20250101.tar.gz",
        "gnat-x86_64-linux-16.0.0-20250103.tar.gz",
        "gnat-x86_64-linux-16.0.0-20250103.tar.gz.sha256",
        "gnat-aarch64-darwin-16.0.0-20250102.tar.gz",
        "gnat-aarch64-linux-16.0.0-20250103.tar.gz",
    ]
    return {
        "tag_name": "gnat-16.0.0-snapshot",
        "prerelease": True,
        "assets": [
            {"name": name, "browser_download_url": f"{base}/{name}"} for name in names
        ],
    }
