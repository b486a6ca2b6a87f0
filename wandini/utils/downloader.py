"""
HTTP download of master assets.

Streams the response body to disk in chunks so multi-hundred-megabyte
masters never sit in memory.
"""

import logging
import os
from pathlib import Path

import requests

from wandini.config import DOWNLOAD_CHUNK_SIZE, DOWNLOAD_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class DownloadError(IOError):
    """Raised when a download fails or returns a non-success status."""

    def __init__(self, url: str, message: str, status_code: int | None = None):
        super().__init__(f"Download of {url} failed: {message}")
        self.url = url
        self.status_code = status_code


class Downloader:
    """Fetches a URL and persists the body to a local path."""

    def __init__(
        self,
        timeout: float = DOWNLOAD_TIMEOUT_SECONDS,
        chunk_size: int = DOWNLOAD_CHUNK_SIZE,
        session: requests.Session | None = None,
    ):
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.session = session or requests.Session()

    def fetch(self, url: str, dest: Path) -> Path:
        """
        Download `url` to `dest`.

        The body is written to a `.part` sibling first and renamed into
        place once complete, so `dest` only ever holds a full download.

        Args:
            url: Source URL
            dest: Destination file path (parent must exist)

        Returns:
            The destination path

        Raises:
            DownloadError: On network errors or non-2xx responses
        """
        dest = Path(dest)
        part = dest.with_name(dest.name + ".part")

        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as response:
                if not response.ok:
                    raise DownloadError(
                        url,
                        f"HTTP {response.status_code}",
                        status_code=response.status_code,
                    )
                with open(part, "wb") as f:
                    for chunk in response.iter_content(chunk_size=self.chunk_size):
                        if chunk:
                            f.write(chunk)
            os.replace(part, dest)
        except requests.RequestException as e:
            raise DownloadError(url, str(e)) from e
        finally:
            if part.exists():
                part.unlink()

        logger.info("Downloaded %s -> %s (%d bytes)", url, dest, dest.stat().st_size)
        return dest
