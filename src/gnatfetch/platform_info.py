"""
Host platform detection.

Maps the raw OS and machine names reported by the interpreter onto the
tokens used in upstream artifact names.
"""

import platform
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from gnatfetch.exceptions import UnsupportedArchitectureError, UnsupportedPlatformError
from gnatfetch.log_utils import logger

# Order matters: first match wins
_PLATFORM_PATTERNS: Tuple[Tuple[re.Pattern, str], ...] = (
    (re.compile(r"^linux", re.IGNORECASE), "linux"),
    (re.compile(r"^darwin", re.IGNORECASE), "darwin"),
    (re.compile(r"^(mingw|msys|cygwin)", re.IGNORECASE), "windows64"),
    (re.compile(r"^windows$", re.IGNORECASE), "windows64"),
)

_ARCH_PATTERNS: Tuple[Tuple[re.Pattern, str], ...] = (
    (re.compile(r"^(x86_64|amd64)$", re.IGNORECASE), "x86_64"),
    (re.compile(r"^(aarch64|arm64)$", re.IGNORECASE), "aarch64"),
)


@dataclass(frozen=True)
class PlatformArch:
    """Canonical platform/architecture pair used in artifact filenames."""

    platform: str
    arch: str

    def __str__(self) -> str:
        return f"{self.platform}/{self.arch}"


def _match(patterns, raw: str) -> Optional[str]:
    for pattern, token in patterns:
        if pattern.search(raw):
            return token
    return None


def detect_platform(
    system: Optional[str] = None, machine: Optional[str] = None
) -> PlatformArch:
    """
    Detect the canonical platform and architecture tokens for the host.

    Parameters:
        system: Raw OS name; defaults to `platform.system()`.
        machine: Raw machine name; defaults to `platform.machine()`.

    Raises:
        UnsupportedPlatformError: If the OS name is not recognized. The
            architecture is not inspected in that case.
        UnsupportedArchitectureError: If the machine name is not recognized.
    """
    raw_system = (system if system is not None else platform.system()).strip()
    platform_token = _match(_PLATFORM_PATTERNS, raw_system)
    if platform_token is None:
        raise UnsupportedPlatformError(
            f"Unsupported operating system: {raw_system or '<empty>'}",
            value=raw_system,
        )

    raw_machine = (machine if machine is not None else platform.machine()).strip()
    arch_token = _match(_ARCH_PATTERNS, raw_machine)
    if arch_token is None:
        raise UnsupportedArchitectureError(
            f"Unsupported architecture: {raw_machine or '<empty>'}",
            value=raw_machine,
        )

    detected = PlatformArch(platform=platform_token, arch=arch_token)
    logger.debug(f"Detected platform {detected} from {raw_system}/{raw_machine}")
    return detected
