"""MinIO implementation of the StorageTransfer interface.

Amazon S3 is addressed natively; Google Cloud Storage through its
S3-compatible XML API.
"""

import io
import logging
import os
import tempfile
from collections.abc import Mapping

from minio import Minio
from minio.commonconfig import CopySource

from multicloud_s2t.domain.locations import (
    LocalFileLocation,
    ObjectLocation,
    get_file_type,
)
from multicloud_s2t.domain.models import Provider
from multicloud_s2t.exceptions import (
    StorageCopyError,
    StorageDeleteError,
    StorageDownloadError,
    StorageUploadError,
)

from .interfaces import StorageTransfer

logger = logging.getLogger(__name__)


class MinioStorageTransfer(StorageTransfer):
    """Handles object transfers using one MinIO client per storage provider."""

    def __init__(self, clients: Mapping[Provider, Minio]):
        self._clients = dict(clients)

    def _client(self, location: ObjectLocation) -> Minio:
        client = self._clients.get(location.provider)
        if client is None:
            raise LookupError(
                f"No storage client configured for provider '{location.provider.value}'"
            )
        return client

    def upload_file(self, local_path: str, location: ObjectLocation) -> None:
        try:
            self._client(location).fput_object(
                bucket_name=location.bucket,
                object_name=location.key,
                file_path=local_path,
            )
            logger.info(
                "File uploaded",
                extra={"local_path": local_path, "location": str(location)},
            )
        except Exception as e:
            logger.exception("Upload failed", extra={"location": str(location)})
            raise StorageUploadError(str(location), e) from e

    def download_file(self, location: ObjectLocation) -> str:
        file_type = get_file_type(location.key)
        fd, local_path = tempfile.mkstemp(
            prefix="s2t-", suffix=f".{file_type}" if file_type else ""
        )
        os.close(fd)
        try:
            self._client(location).fget_object(
                bucket_name=location.bucket,
                object_name=location.key,
                file_path=local_path,
            )
            logger.info(
                "File downloaded",
                extra={"location": str(location), "local_path": local_path},
            )
            return local_path
        except Exception as e:
            os.remove(local_path)
            logger.exception("Download failed", extra={"location": str(location)})
            raise StorageDownloadError(str(location), e) from e

    def read(self, location: ObjectLocation) -> bytes:
        try:
            response = self._client(location).get_object(
                bucket_name=location.bucket, object_name=location.key
            )
            try:
                return response.read()
            finally:
                response.close()
                response.release_conn()
        except Exception as e:
            logger.exception("Read failed", extra={"location": str(location)})
            raise StorageDownloadError(str(location), e) from e

    def write(
        self,
        location: ObjectLocation | LocalFileLocation,
        data: bytes,
        content_type: str = "text/plain",
    ) -> None:
        try:
            if isinstance(location, LocalFileLocation):
                with open(location.path, "wb") as f:
                    f.write(data)
            else:
                self._client(location).put_object(
                    bucket_name=location.bucket,
                    object_name=location.key,
                    data=io.BytesIO(data),
                    length=len(data),
                    content_type=content_type,
                )
            logger.info(
                "Data written", extra={"location": str(location), "size": len(data)}
            )
        except Exception as e:
            logger.exception("Write failed", extra={"location": str(location)})
            raise StorageUploadError(str(location), e) from e

    def copy(self, source: ObjectLocation, destination: ObjectLocation) -> None:
        try:
            if source.provider != destination.provider:
                raise ValueError("objects can only be copied within one provider")
            self._client(destination).copy_object(
                bucket_name=destination.bucket,
                object_name=destination.key,
                source=CopySource(bucket_name=source.bucket, object_name=source.key),
            )
            logger.info(
                "Object copied",
                extra={"source": str(source), "destination": str(destination)},
            )
        except Exception as e:
            logger.exception(
                "Copy failed",
                extra={"source": str(source), "destination": str(destination)},
            )
            raise StorageCopyError(str(source), str(destination), e) from e

    def delete(self, location: ObjectLocation) -> None:
        try:
            self._client(location).remove_object(
                bucket_name=location.bucket, object_name=location.key
            )
            logger.info("Object deleted", extra={"location": str(location)})
        except Exception as e:
            logger.exception("Delete failed", extra={"location": str(location)})
            raise StorageDeleteError(str(location), e) from e
