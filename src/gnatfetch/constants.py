"""
Constants and configuration values for gnatfetch.

This module contains all hardcoded values, URLs, timeouts, and other constants
used throughout the application.
"""

# Upstream release repository
GNAT_FSF_REPO = "alire-project/GNAT-FSF-builds"
GITHUB_API_URL = "https://api.github.com"
GITHUB_RELEASES_DOWNLOAD_URL = f"https://github.com/{GNAT_FSF_REPO}/releases/download"

# GitHub API request settings
GITHUB_API_ACCEPT = "application/vnd.github+json"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_MAX_PER_PAGE = 100
DEFAULT_MAX_RELEASE_PAGES = 1

# Token environment variables, highest priority first
GITHUB_TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GITHUB_API_TOKEN")

# Tag and artifact naming
RELEASE_TAG_PREFIX = "gnat-"
SNAPSHOT_SUFFIX = "-snapshot"
ARCHIVE_EXTENSION = ".tar.gz"
CHECKSUM_EXTENSION = ".sha256"

# Matches native compiler tags only (cross toolchains like gnat-arm-elf-* are skipped)
RELEASE_TAG_PATTERN = r"^gnat-(\d+\.\d+\.\d+(?:-\d+|-snapshot)?)$"
VERSION_PATTERN = r"^(\d+)\.(\d+)\.(\d+)(?:-(\d+)|-(snapshot))?$"

# Download and retry settings (seconds)
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 2.0
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_CHUNK_SIZE = 8192
HASH_CHUNK_SIZE = 4096

# Configuration
CONFIG_FILE_NAME = "gnatfetch.yaml"
CONFIG_PATH_ENV_VAR = "GNATFETCH_CONFIG"

# Logging configuration
LOGGER_NAME = "gnatfetch"
LOG_LEVEL_ENV_VAR = "GNATFETCH_LOG_LEVEL"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5
