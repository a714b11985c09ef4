"""
HTTP retry and file download helpers.

All network access in gnatfetch goes through a RetryPolicy: a plain
blocking loop that retries connection errors, timeouts and 5xx responses
a fixed number of times with a fixed delay. Client errors (4xx) are never
retried.
"""

import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar, Union

import requests
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

from gnatfetch.config import get_user_agent
from gnatfetch.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY,
)
from gnatfetch.exceptions import DownloadFailedError
from gnatfetch.log_utils import logger

T = TypeVar("T")

RETRYABLE_EXCEPTIONS = (
    requests.ConnectionError,
    requests.Timeout,
    requests.exceptions.ChunkedEncodingError,
)


class ServerError(Exception):
    """Raised inside a retried operation when the server answers with 5xx."""

    def __init__(self, status_code: int, url: str) -> None:
        super().__init__(f"HTTP {status_code} from {url}")
        self.status_code = status_code
        self.url = url


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-count, fixed-delay retry loop."""

    attempts: int = DEFAULT_RETRY_ATTEMPTS
    delay: float = DEFAULT_RETRY_DELAY

    def run(self, operation: Callable[[], T], url: str) -> T:
        """
        Call `operation` until it succeeds or the attempts are used up.

        Transient failures are connection errors, timeouts, interrupted
        transfers and ServerError. Anything else propagates immediately.

        Raises:
            DownloadFailedError: After the last transient failure.
        """
        last_error: Optional[BaseException] = None
        last_status: Optional[int] = None

        for attempt in range(1, self.attempts + 1):
            try:
                return operation()
            except ServerError as e:
                last_error = e
                last_status = e.status_code
            except RETRYABLE_EXCEPTIONS as e:
                last_error = e
                last_status = None

            if attempt < self.attempts:
                logger.warning(
                    f"Attempt {attempt}/{self.attempts} for {url} failed ({last_error}); "
                    f"retrying in {self.delay:g}s"
                )
                time.sleep(self.delay)

        raise DownloadFailedError(
            f"Failed to fetch {url} after {self.attempts} attempts",
            url=url,
            retry_count=self.attempts,
            is_retryable=True,
            status_code=last_status,
            details=str(last_error) if last_error else None,
        )


def build_session() -> requests.Session:
    """Create a requests session carrying the gnatfetch User-Agent."""
    session = requests.Session()
    session.headers.update({"User-Agent": get_user_agent()})
    return session


def auth_headers(auth_token: Optional[str]) -> Dict[str, str]:
    """Return the Authorization header for a GitHub token, or nothing."""
    if auth_token:
        return {"Authorization": f"token {auth_token}"}
    return {}


def request_with_retry(
    session: requests.Session,
    url: str,
    retry_policy: RetryPolicy,
    headers: Optional[Mapping[str, str]] = None,
    params: Optional[Dict[str, Any]] = None,
    timeout: Optional[float] = None,
) -> requests.Response:
    """
    GET `url`, retrying transient failures per `retry_policy`.

    Redirects are followed. The returned response may carry a 4xx status;
    interpreting it is left to the caller.

    Raises:
        DownloadFailedError: If every attempt failed transiently.
    """

    def _attempt() -> requests.Response:
        response = session.get(
            url,
            headers=dict(headers or {}),
            params=params,
            timeout=timeout or DEFAULT_REQUEST_TIMEOUT,
            allow_redirects=True,
        )
        logger.debug(f"GET {url} -> HTTP {response.status_code}")
        if response.status_code >= 500:
            response.close()
            raise ServerError(response.status_code, url)
        return response

    return retry_policy.run(_attempt, url)


class FileDownloader:
    """
    Downloads a single URL to a local file.

    Data is streamed to a temporary sibling of the destination and moved
    into place only once the whole body has been received, so a failed
    download never leaves a truncated file at the destination.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        console: Optional[Console] = None,
    ):
        self.session = session or build_session()
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout = timeout
        self.console = console or Console(stderr=True)

    def fetch(
        self,
        url: str,
        destination_path: Union[str, Path],
        show_progress: bool = False,
        auth_token: Optional[str] = None,
    ) -> Path:
        """
        Download `url` to `destination_path`.

        Parameters:
            url (str): HTTP(S) URL to fetch; redirects are followed.
            destination_path: Final location of the file. Parent directories
                are created as needed.
            show_progress (bool): Render a rich progress bar while streaming.
            auth_token (Optional[str]): GitHub token sent as
                `Authorization: token ...` on every attempt.

        Returns:
            Path: The destination path.

        Raises:
            DownloadFailedError: On a 4xx response or any other
                non-transient request error (no retry), once the retry
                policy is exhausted, or when the destination cannot be
                written.
        """
        destination = Path(destination_path)
        temp_path = destination.with_name(f"{destination.name}.tmp.{os.getpid()}")
        headers = auth_headers(auth_token)
        attempts_made = 0

        def _attempt() -> int:
            nonlocal attempts_made
            attempts_made += 1
            return self._stream_to_file(
                url, temp_path, headers, show_progress, destination.name
            )

        logger.debug(f"Downloading {url} to {destination}")
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            try:
                downloaded_bytes = self.retry_policy.run(_attempt, url)
            except requests.HTTPError as e:
                status = e.response.status_code if e.response is not None else None
                raise DownloadFailedError(
                    f"Failed to fetch {url}",
                    url=url,
                    retry_count=attempts_made,
                    is_retryable=False,
                    status_code=status,
                    details=f"HTTP {status}" if status else str(e),
                ) from e
            except requests.RequestException as e:
                raise DownloadFailedError(
                    f"Failed to fetch {url}",
                    url=url,
                    retry_count=attempts_made,
                    is_retryable=False,
                    details=str(e),
                ) from e
            os.replace(temp_path, destination)
        except OSError as e:
            # requests exceptions are OSError subclasses but are converted above
            raise DownloadFailedError(
                f"Cannot write {destination}",
                url=url,
                retry_count=attempts_made,
                is_retryable=False,
                details=str(e),
            ) from e
        finally:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError as e_rm:
                    logger.debug(f"Could not remove temporary file {temp_path}: {e_rm}")

        logger.debug(f"Saved {downloaded_bytes} bytes to {destination}")
        return destination

    def _stream_to_file(
        self,
        url: str,
        temp_path: Path,
        headers: Dict[str, str],
        show_progress: bool,
        label: str = "",
    ) -> int:
        response = self.session.get(
            url,
            headers=headers,
            stream=True,
            timeout=self.timeout,
            allow_redirects=True,
        )
        try:
            logger.debug(f"GET {url} -> HTTP {response.status_code}")
            if response.status_code >= 500:
                raise ServerError(response.status_code, url)
            response.raise_for_status()

            try:
                total = int(response.headers.get("Content-Length") or 0) or None
            except ValueError:
                logger.debug(
                    f"Ignoring malformed Content-Length {response.headers.get('Content-Length')!r}"
                )
                total = None
            downloaded = 0
            with open(temp_path, "wb") as f:
                if show_progress:
                    with Progress(
                        TextColumn("{task.description}"),
                        BarColumn(),
                        DownloadColumn(),
                        TransferSpeedColumn(),
                        TimeRemainingColumn(),
                        console=self.console,
                        transient=True,
                    ) as progress:
                        task_id = progress.add_task(label or url, total=total)
                        for chunk in response.iter_content(chunk_size=DEFAULT_CHUNK_SIZE):
                            if chunk:
                                f.write(chunk)
                                downloaded += len(chunk)
                                progress.update(task_id, completed=downloaded)
                else:
                    for chunk in response.iter_content(chunk_size=DEFAULT_CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
                            downloaded += len(chunk)
            return downloaded
        finally:
            response.close()
