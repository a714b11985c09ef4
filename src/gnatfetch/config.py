"""
Runtime settings for gnatfetch.

Settings are resolved once per invocation from an optional YAML file and
the process environment, then passed explicitly to the components that
need them. Nothing below reads the environment after load_settings().
"""

import importlib.metadata
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import platformdirs
import yaml

from gnatfetch.constants import (
    CONFIG_FILE_NAME,
    CONFIG_PATH_ENV_VAR,
    DEFAULT_MAX_RELEASE_PAGES,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY,
    GITHUB_API_URL,
    GITHUB_RELEASES_DOWNLOAD_URL,
    GITHUB_TOKEN_ENV_VARS,
    GNAT_FSF_REPO,
    LOGGER_NAME,
)
from gnatfetch.exceptions import ConfigurationError
from gnatfetch.log_utils import logger

_USER_AGENT_CACHE: Optional[str] = None

# YAML key -> (Settings attribute, type)
_CONFIG_KEYS = {
    "REPOSITORY": ("repository", str),
    "API_BASE_URL": ("api_base_url", str),
    "RELEASES_BASE_URL": ("releases_base_url", str),
    "GITHUB_TOKEN": ("github_token", str),
    "RETRY_ATTEMPTS": ("retry_attempts", int),
    "RETRY_DELAY": ("retry_delay", float),
    "REQUEST_TIMEOUT": ("request_timeout", float),
    "MAX_RELEASE_PAGES": ("max_release_pages", int),
}


@dataclass
class Settings:
    """Resolved configuration for one gnatfetch invocation."""

    repository: str = GNAT_FSF_REPO
    api_base_url: str = GITHUB_API_URL
    releases_base_url: str = GITHUB_RELEASES_DOWNLOAD_URL
    github_token: Optional[str] = None
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    max_release_pages: int = DEFAULT_MAX_RELEASE_PAGES

    @property
    def releases_url(self) -> str:
        """GitHub API URL listing the repository's releases."""
        return f"{self.api_base_url.rstrip('/')}/repos/{self.repository}/releases"


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    Returns:
        The string `gnatfetch/{version}`, where `{version}` is the installed package version or `unknown` if the version cannot be determined.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        try:
            app_version = importlib.metadata.version(LOGGER_NAME)
        except importlib.metadata.PackageNotFoundError:
            app_version = "unknown"
        _USER_AGENT_CACHE = f"{LOGGER_NAME}/{app_version}"

    return _USER_AGENT_CACHE


def resolve_github_token(
    explicit_token: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Optional[str]:
    """
    Determine the GitHub token to use.

    An explicit token wins; otherwise GITHUB_TOKEN is preferred over
    GITHUB_API_TOKEN. Surrounding whitespace is ignored and blank values
    count as unset.

    Returns:
        Optional[str]: The chosen token, or `None` if no token is available.
    """
    candidate = (explicit_token or "").strip()
    if candidate:
        return candidate

    env = os.environ if environ is None else environ
    for var_name in GITHUB_TOKEN_ENV_VARS:
        value = (env.get(var_name) or "").strip()
        if value:
            logger.debug(f"Using GitHub token from {var_name}")
            return value
    return None


def default_config_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Return the config file path from GNATFETCH_CONFIG or the platform config dir."""
    env = os.environ if environ is None else environ
    override = env.get(CONFIG_PATH_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path(platformdirs.user_config_dir(LOGGER_NAME)) / CONFIG_FILE_NAME


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in configuration file {config_path}", details=str(e)
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read configuration file {config_path}", details=str(e)
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file {config_path} must contain a mapping",
            details=f"got {type(data).__name__}",
        )
    return data


def load_settings(
    config_path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Build Settings from an optional YAML config file and the environment.

    The file is looked up at `config_path`, then GNATFETCH_CONFIG, then
    `<user config dir>/gnatfetch.yaml`. A missing default file is not an
    error; a missing explicitly requested file is. Unknown keys are logged
    and ignored. The GitHub token is resolved last so that a token in the
    file takes precedence over the environment variables.

    Raises:
        ConfigurationError: If the file cannot be read, is not valid YAML,
            or holds a value of the wrong type.
    """
    settings = Settings()
    explicit = config_path is not None
    path = Path(config_path) if explicit else default_config_path(environ)

    if path.exists():
        config = _read_config_file(path)
        logger.debug(f"Loaded configuration from {path}")
        for key, value in config.items():
            if key not in _CONFIG_KEYS:
                logger.warning(f"Ignoring unknown configuration key: {key}")
                continue
            attr, cast = _CONFIG_KEYS[key]
            if value is None:
                continue
            try:
                setattr(settings, attr, cast(value))
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    f"Invalid value for {key} in {path}", details=str(e)
                ) from e
    elif explicit:
        raise ConfigurationError(f"Configuration file not found: {path}")

    if settings.retry_attempts < 1:
        raise ConfigurationError("RETRY_ATTEMPTS must be at least 1")
    if settings.max_release_pages < 1:
        raise ConfigurationError("MAX_RELEASE_PAGES must be at least 1")

    settings.github_token = resolve_github_token(settings.github_token, environ)
    return settings
