# src/gnatfetch/cli.py

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

from gnatfetch import log_utils
from gnatfetch.config import get_user_agent, load_settings
from gnatfetch.download.pipeline import ArtifactFetcher
from gnatfetch.exceptions import GnatFetchError


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the gnatfetch command line."""
    parser = argparse.ArgumentParser(
        prog="gnatfetch",
        description="gnatfetch - GNAT FSF compiler release resolver and downloader",
    )
    parser.add_argument(
        "--version", action="version", version=get_user_agent().replace("/", " ")
    )
    parser.add_argument(
        "--log-level",
        metavar="LEVEL",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "--log-file-dir",
        metavar="DIR",
        help="Also write logs to gnatfetch.log in this directory",
    )
    parser.add_argument(
        "--config",
        metavar="FILE",
        help="Path to a YAML configuration file",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser(
        "list-all", help="List every published version, oldest first"
    )
    subparsers.add_parser("latest", help="Print the newest stable version")

    url_parser = subparsers.add_parser(
        "url", help="Print the download URL of a version for this host"
    )
    url_parser.add_argument("version", help="Version (e.g. 15.2.0-1, 16.0.0-snapshot, latest)")
    url_parser.add_argument(
        "--checksum",
        action="store_true",
        help="Print the URL of the .sha256 checksum file instead",
    )

    download_parser = subparsers.add_parser(
        "download", help="Download and verify a version for this host"
    )
    download_parser.add_argument("version", help="Version (e.g. 15.2.0-1, 16.0.0-snapshot, latest)")
    download_parser.add_argument(
        "--dest",
        "-d",
        default=".",
        help="Directory to download into (default: current directory)",
    )
    progress_group = download_parser.add_mutually_exclusive_group()
    progress_group.add_argument(
        "--progress",
        dest="progress",
        action="store_true",
        default=None,
        help="Always show a progress bar",
    )
    progress_group.add_argument(
        "--no-progress",
        dest="progress",
        action="store_false",
        help="Never show a progress bar",
    )

    return parser


def _run_command(args: argparse.Namespace, fetcher: ArtifactFetcher) -> int:
    if args.command == "list-all":
        for version in fetcher.catalog.list_versions():
            print(version)
    elif args.command == "latest":
        print(fetcher.catalog.latest_stable())
    elif args.command == "url":
        asset = fetcher.resolve(args.version)
        print(asset.checksum_url if args.checksum else asset.download_url)
    elif args.command == "download":
        show_progress = args.progress
        if show_progress is None:
            show_progress = sys.stdout.isatty()
        result = fetcher.fetch_version(
            args.version, Path(args.dest), show_progress=show_progress
        )
        print(os.fspath(result.file_path))
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the gnatfetch command-line interface.

    Parses arguments, configures logging, loads settings and dispatches the
    `list-all`, `latest`, `url` and `download` subcommands. Command output
    goes to stdout; logs go to stderr. Any gnatfetch error is logged and
    ends the process with exit status 1.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        log_utils.set_log_level(args.log_level)
    if args.log_file_dir:
        log_utils.add_file_logging(
            Path(args.log_file_dir), level_name=args.log_level or "INFO"
        )

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        settings = load_settings(args.config)
        fetcher = ArtifactFetcher(settings)
        exit_code = _run_command(args, fetcher)
    except GnatFetchError as e:
        log_utils.logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        log_utils.logger.error("Interrupted")
        sys.exit(130)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
