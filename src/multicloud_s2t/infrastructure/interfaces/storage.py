"""Abstract interface for object storage transfers."""

from abc import ABC, abstractmethod

from multicloud_s2t.domain.locations import LocalFileLocation, ObjectLocation


class StorageTransfer(ABC):
    """Moves files between the local machine and backend object storage."""

    @abstractmethod
    def upload_file(self, local_path: str, location: ObjectLocation) -> None:
        """
        Uploads a local file.

        Args:
            local_path: Path of the file to upload.
            location: Target object.

        Raises:
            StorageUploadError: If the upload fails.
        """

    @abstractmethod
    def download_file(self, location: ObjectLocation) -> str:
        """
        Downloads an object into a new local temporary file.

        The caller owns the returned file and must remove it.

        Returns:
            Path of the local file.

        Raises:
            StorageDownloadError: If the download fails.
        """

    @abstractmethod
    def read(self, location: ObjectLocation) -> bytes:
        """
        Returns the contents of an object.

        Raises:
            StorageDownloadError: If the download fails.
        """

    @abstractmethod
    def write(
        self,
        location: ObjectLocation | LocalFileLocation,
        data: bytes,
        content_type: str = "text/plain",
    ) -> None:
        """
        Stores ``data`` at ``location``.

        Raises:
            StorageUploadError: If the write fails.
        """

    @abstractmethod
    def copy(self, source: ObjectLocation, destination: ObjectLocation) -> None:
        """
        Copies an object, possibly into a bucket in another region.

        Raises:
            StorageCopyError: If the copy fails.
        """

    @abstractmethod
    def delete(self, location: ObjectLocation) -> None:
        """
        Deletes an object.

        Raises:
            StorageDeleteError: If the deletion fails.
        """
