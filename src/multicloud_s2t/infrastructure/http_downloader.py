"""httpx implementation of the Downloader interface."""

import logging
import os
import tempfile

import httpx

from multicloud_s2t.domain.locations import get_file_type
from multicloud_s2t.exceptions import StorageDownloadError

from .interfaces import Downloader

logger = logging.getLogger(__name__)


class HttpDownloader(Downloader):
    """Downloads files from public HTTP(S) URLs."""

    def __init__(self, client: httpx.Client):
        self._client = client

    def download_to_file(self, url: str) -> str:
        file_type = get_file_type(url)
        fd, local_path = tempfile.mkstemp(
            prefix="s2t-", suffix=f".{file_type}" if file_type else ""
        )
        try:
            with os.fdopen(fd, "wb") as f:
                with self._client.stream("GET", url) as response:
                    response.raise_for_status()
                    for chunk in response.iter_bytes():
                        f.write(chunk)
        except Exception as e:
            os.remove(local_path)
            logger.exception("Download failed", extra={"url": url})
            raise StorageDownloadError(url, e) from e

        logger.info(
            "File downloaded", extra={"url": url, "local_path": local_path}
        )
        return local_path

    def fetch(self, url: str) -> bytes:
        try:
            response = self._client.get(url)
            response.raise_for_status()
            return response.content
        except httpx.HTTPError as e:
            logger.exception("Fetch failed", extra={"url": url})
            raise StorageDownloadError(url, e) from e

    def close(self) -> None:
        self._client.close()
