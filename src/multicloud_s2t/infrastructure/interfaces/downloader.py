"""Abstract interface for fetching files from generic remote URLs."""

from abc import ABC, abstractmethod


class Downloader(ABC):
    """Retrieves publicly reachable files over HTTP(S)."""

    @abstractmethod
    def download_to_file(self, url: str) -> str:
        """
        Streams ``url`` into a new local temporary file.

        The file keeps the URL's extension. The caller owns the file.

        Returns:
            Path of the local file.

        Raises:
            StorageDownloadError: If the request fails.
        """

    @abstractmethod
    def fetch(self, url: str) -> bytes:
        """
        Returns the body of ``url``.

        Raises:
            StorageDownloadError: If the request fails.
        """

    def close(self) -> None:
        """Releases network resources. Optional."""
