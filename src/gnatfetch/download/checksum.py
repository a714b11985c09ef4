"""
SHA-256 verification against `.sha256` sidecar files.
"""

import hashlib
import os
from pathlib import Path
from typing import Union

from gnatfetch.constants import HASH_CHUNK_SIZE
from gnatfetch.exceptions import (
    ChecksumError,
    ChecksumMismatchError,
    HashToolUnavailableError,
)
from gnatfetch.log_utils import logger

from .interfaces import VerificationResult

Pathish = Union[str, Path]


def _new_sha256():
    try:
        return hashlib.new("sha256")
    except ValueError as e:
        raise HashToolUnavailableError(
            "No SHA-256 implementation available", details=str(e)
        ) from e


def calculate_sha256(file_path: Pathish) -> str:
    """
    Compute the SHA-256 hex digest of a file, streaming it in chunks.

    Raises:
        HashToolUnavailableError: If the runtime has no SHA-256 support.
        OSError: If the file cannot be read.
    """
    sha256_hash = _new_sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
            sha256_hash.update(chunk)
    return sha256_hash.hexdigest()


def read_expected_checksum(checksum_file_path: Pathish) -> str:
    """
    Return the digest stored in a sidecar file.

    The sidecar holds either a bare hash or `<hash>  <filename>`; the first
    whitespace-delimited token is the digest.

    Raises:
        ChecksumError: If the sidecar is missing, unreadable or empty.
    """
    try:
        with open(checksum_file_path, "r", encoding="utf-8", errors="replace") as f:
            content = f.read()
    except OSError as e:
        raise ChecksumError(
            f"Cannot read checksum file {checksum_file_path}", details=str(e)
        ) from e

    tokens = content.split()
    if not tokens:
        raise ChecksumError(f"Checksum file {checksum_file_path} is empty")
    return tokens[0]


class ChecksumVerifier:
    """Validates downloaded artifacts against their published digests."""

    def verify(
        self, file_path: Pathish, checksum_file_path: Pathish
    ) -> VerificationResult:
        """
        Verify `file_path` against the digest in `checksum_file_path`.

        Both digests are compared as lowercase hex. When the runtime cannot
        compute SHA-256 at all, verification is skipped with a warning; the
        returned result then has `verified=False, skipped=True`.

        Raises:
            ChecksumMismatchError: If the digests differ. The file is left
                in place.
            ChecksumError: If the sidecar cannot be read.
        """
        expected = read_expected_checksum(checksum_file_path).lower()
        name = os.path.basename(str(file_path))

        try:
            actual = calculate_sha256(file_path).lower()
        except HashToolUnavailableError as e:
            logger.warning(f"{e}; skipping checksum verification for {name}")
            return VerificationResult(verified=False, skipped=True, expected=expected)
        except OSError as e:
            raise ChecksumError(f"Cannot read {file_path}", details=str(e)) from e

        if actual != expected:
            raise ChecksumMismatchError(expected, actual, file_path=str(file_path))

        logger.info(f"Checksum verified for {name}")
        return VerificationResult(verified=True, expected=expected, actual=actual)
