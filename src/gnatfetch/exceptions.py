"""
Custom exceptions for gnatfetch.

Every error the resolution and download pipeline can raise derives from
GnatFetchError so callers (and the CLI) can catch them in one place. All of
them are fatal except HashToolUnavailableError, which the checksum verifier
downgrades to a warning.
"""


class GnatFetchError(Exception):
    """
    Base exception for all gnatfetch errors.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(GnatFetchError):
    """Exception raised when the configuration file is unreadable or invalid."""

    pass


# =============================================================================
# Platform Errors
# =============================================================================


class PlatformError(GnatFetchError):
    """
    Base exception for host detection failures.

    Attributes:
        value: The raw OS or machine name that could not be mapped.
    """

    def __init__(self, message: str, value: str | None = None) -> None:
        super().__init__(message)
        self.value = value


class UnsupportedPlatformError(PlatformError):
    """Exception raised when the operating system has no published artifacts."""

    pass


class UnsupportedArchitectureError(PlatformError):
    """Exception raised when the machine architecture has no published artifacts."""

    pass


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(GnatFetchError):
    """
    Exception raised when input validation fails.

    Attributes:
        field: The name of the field that failed validation.
        value: The value that failed validation.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field
        self.value = value


class VersionError(ValidationError):
    """Exception raised when a version string does not follow the GNAT grammar."""

    pass


# =============================================================================
# API Errors
# =============================================================================


class APIError(GnatFetchError):
    """
    Exception raised for GitHub API failures.

    Attributes:
        endpoint: The API endpoint that was accessed.
        status_code: The HTTP status code returned, if any.
    """

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.endpoint = endpoint
        self.status_code = status_code


class CatalogUnavailableError(APIError):
    """Exception raised when the release listing cannot be fetched or parsed."""

    pass


class ReleaseNotFoundError(APIError):
    """Exception raised when a release tag does not exist upstream."""

    pass


# =============================================================================
# Resolution Errors
# =============================================================================


class ResolutionError(GnatFetchError):
    """Base exception for failures turning a version into a concrete artifact."""

    pass


class NoMatchingSnapshotAssetError(ResolutionError):
    """
    Exception raised when a snapshot release has no asset for the host.

    Attributes:
        tag_name: The snapshot release tag that was searched.
        available: Asset names the release does publish.
    """

    def __init__(
        self,
        message: str,
        tag_name: str | None = None,
        available: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.tag_name = tag_name
        self.available = list(available or [])


class NoStableVersionFoundError(ResolutionError):
    """Exception raised when the catalog holds no stable release at all."""

    pass


# =============================================================================
# Download Errors
# =============================================================================


class DownloadError(GnatFetchError):
    """
    Base exception for download-related errors.

    Attributes:
        url: The URL that was being downloaded when the error occurred.
        retry_count: Number of attempts made before failure.
        is_retryable: Whether the final failure was of a transient kind.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        retry_count: int = 0,
        is_retryable: bool = False,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url
        self.retry_count = retry_count
        self.is_retryable = is_retryable


class DownloadFailedError(DownloadError):
    """
    Exception raised when a resource could not be fetched within the retry budget.

    Attributes:
        status_code: The last HTTP status code seen, if the server answered.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        retry_count: int = 0,
        is_retryable: bool = False,
        status_code: int | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, url, retry_count, is_retryable, details)
        self.status_code = status_code


# =============================================================================
# Checksum Errors
# =============================================================================


class ChecksumError(GnatFetchError):
    """Exception raised when a checksum sidecar cannot be read or used."""

    pass


class ChecksumMismatchError(ChecksumError):
    """
    Exception raised when a file's SHA-256 digest differs from its sidecar.

    Attributes:
        expected: Digest published in the sidecar.
        actual: Digest computed over the downloaded file.
        file_path: The file that failed verification.
    """

    def __init__(
        self,
        expected: str,
        actual: str,
        file_path: str | None = None,
    ) -> None:
        super().__init__(
            "Checksum verification failed",
            details=f"expected {expected}, got {actual}",
        )
        self.expected = expected
        self.actual = actual
        self.file_path = file_path


class HashToolUnavailableError(ChecksumError):
    """Exception raised when the runtime offers no SHA-256 implementation."""

    pass
