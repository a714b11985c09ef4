"""Tests for the gnatfetch command line."""

from pathlib import Path

import pytest

from gnatfetch import cli
from gnatfetch.download.interfaces import Asset, DownloadResult, VerificationResult
from gnatfetch.download.version import parse_version
from gnatfetch.exceptions import (
    ChecksumMismatchError,
    ConfigurationError,
    NoStableVersionFoundError,
    UnsupportedPlatformError,
)
from gnatfetch.platform_info import PlatformArch

pytestmark = [pytest.mark.user_interface, pytest.mark.unit]

ASSET = Asset(
    filename="gnat-x86_64-linux-15.2.0-1.tar.gz",
    tag_name="gnat-15.2.0-1",
    download_url="https://example.com/gnat-15.2.0-1/gnat-x86_64-linux-15.2.0-1.tar.gz",
    checksum_url="https://example.com/gnat-15.2.0-1/gnat-x86_64-linux-15.2.0-1.tar.gz.sha256",
)


@pytest.fixture
def fetcher(mocker):
    """Replace ArtifactFetcher in the CLI with a mock and return the instance."""
    fetcher_cls = mocker.patch.object(cli, "ArtifactFetcher")
    return fetcher_cls.return_value


def _run(argv):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(argv)
    return exc_info.value.code


def test_list_all_prints_one_version_per_line(fetcher, capsys):
    fetcher.catalog.list_versions.return_value = [
        parse_version(v) for v in ("13.2.0", "14.2.0-1", "16.0.0-snapshot")
    ]

    assert _run(["list-all"]) == 0

    assert capsys.readouterr().out == "13.2.0\n14.2.0-1\n16.0.0-snapshot\n"


def test_latest(fetcher, capsys):
    fetcher.catalog.latest_stable.return_value = parse_version("15.2.0-1")

    assert _run(["latest"]) == 0
    assert capsys.readouterr().out.strip() == "15.2.0-1"


def test_url_and_checksum_url(fetcher, capsys):
    fetcher.resolve.return_value = ASSET

    assert _run(["url", "15.2.0-1"]) == 0
    assert capsys.readouterr().out.strip() == ASSET.download_url

    assert _run(["url", "15.2.0-1", "--checksum"]) == 0
    assert capsys.readouterr().out.strip() == ASSET.checksum_url
    fetcher.resolve.assert_called_with("15.2.0-1")


def test_download(fetcher, capsys, tmp_path):
    fetcher.fetch_version.return_value = DownloadResult(
        asset=ASSET,
        file_path=tmp_path / ASSET.filename,
        checksum_path=tmp_path / f"{ASSET.filename}.sha256",
        verification=VerificationResult(verified=True),
    )

    assert _run(["download", "15.2.0-1", "--dest", str(tmp_path), "--no-progress"]) == 0

    fetcher.fetch_version.assert_called_once_with(
        "15.2.0-1", Path(tmp_path), show_progress=False
    )
    assert capsys.readouterr().out.strip() == str(tmp_path / ASSET.filename)


def test_download_progress_flag(fetcher, tmp_path):
    fetcher.fetch_version.return_value = DownloadResult(
        asset=ASSET,
        file_path=tmp_path / ASSET.filename,
        checksum_path=tmp_path / f"{ASSET.filename}.sha256",
        verification=VerificationResult(verified=True),
    )

    _run(["download", "15.2.0-1", "-d", str(tmp_path), "--progress"])

    assert fetcher.fetch_version.call_args.kwargs["show_progress"] is True


@pytest.mark.parametrize(
    "error",
    [
        UnsupportedPlatformError("Unsupported operating system: Plan9"),
        NoStableVersionFoundError("No stable GNAT version found"),
        ChecksumMismatchError("a" * 64, "b" * 64),
    ],
)
def test_errors_exit_nonzero(fetcher, mocker, error):
    fetcher.resolve.side_effect = error
    fetcher.catalog.latest_stable.side_effect = error
    fetcher.fetch_version.side_effect = error
    log_error = mocker.patch.object(cli.log_utils.logger, "error")

    assert _run(["download", "latest", "--no-progress"]) == 1
    log_error.assert_called_once_with(str(error))


def test_configuration_error_exit(mocker):
    mocker.patch.object(cli, "load_settings", side_effect=ConfigurationError("bad config"))
    log_error = mocker.patch.object(cli.log_utils.logger, "error")

    assert _run(["list-all"]) == 1
    log_error.assert_called_once_with("bad config")


def test_no_command_prints_help(capsys):
    assert _run([]) == 1
    assert "list-all" in capsys.readouterr().out


def test_log_level_option(fetcher, mocker):
    fetcher.catalog.list_versions.return_value = []
    set_level = mocker.patch.object(cli.log_utils, "set_log_level")

    _run(["--log-level", "DEBUG", "list-all"])

    set_level.assert_called_once_with("DEBUG")


def test_config_option_passed_to_loader(fetcher, mocker, tmp_path):
    fetcher.catalog.list_versions.return_value = []
    config_file = tmp_path / "gnatfetch.yaml"
    config_file.write_text("RETRY_ATTEMPTS: 5\n")
    load = mocker.spy(cli, "load_settings")

    _run(["--config", str(config_file), "list-all"])

    load.assert_called_once_with(str(config_file))
    settings = cli.ArtifactFetcher.call_args.args[0]
    assert settings.retry_attempts == 5


def test_download_into_a_file_exits_with_error(mocker, tmp_path, capsys):
    mocker.patch(
        "gnatfetch.download.pipeline.detect_platform",
        return_value=PlatformArch(platform="linux", arch="x86_64"),
    )
    not_a_dir = tmp_path / "occupied"
    not_a_dir.write_text("")
    log_error = mocker.patch.object(cli.log_utils.logger, "error")

    assert _run(["download", "15.2.0-1", "--dest", str(not_a_dir), "--no-progress"]) == 1

    log_error.assert_called_once()
    assert "Cannot write" in log_error.call_args.args[0]
    assert capsys.readouterr().out == ""
