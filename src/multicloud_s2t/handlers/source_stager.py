"""Stages source audio where the selected backend can read it."""

import logging
import os

from pydantic import BaseModel

from multicloud_s2t.domain.locations import (
    LocalFileLocation,
    ObjectLocation,
    RemoteUrlLocation,
    StagedArtifact,
    classify_location,
    get_file_type,
)
from multicloud_s2t.domain.models import TranscriptionRequest, unique_timestamp
from multicloud_s2t.exceptions import CleanupError, S2TError, StagingError
from multicloud_s2t.infrastructure.interfaces import (
    Downloader,
    StorageTransfer,
    TranscriptionBackend,
)

logger = logging.getLogger(__name__)


class StagingOutcome(BaseModel, frozen=True):
    """Where the backend reads the audio from, and what to clean up later."""

    source_url: str
    artifact: StagedArtifact | None = None
    region: str


class SourceStager:
    """Classifies sources and uploads or relocates them when needed."""

    def __init__(
        self,
        storage: StorageTransfer,
        downloader: Downloader,
        delete_temp_files: bool = True,
    ):
        self._storage = storage
        self._downloader = downloader
        self._delete_temp_files = delete_temp_files

    def stage(
        self,
        source: str,
        destination: str | None,
        request: TranscriptionRequest,
        region: str,
        backend: TranscriptionBackend,
    ) -> StagingOutcome:
        """
        Makes ``source`` readable for ``backend``.

        Args:
            source: Backend storage URL, HTTP(S) URL or local path.
            destination: Destination string, consulted for its region.
            request: Options of the call (temporary bucket).
            region: Pinned execution region, or ``""`` to resolve one.
            backend: The selected backend.

        Returns:
            StagingOutcome with the effective source, the artifact to clean
            up (if any) and the execution region.

        Raises:
            StagingError: If the source cannot be classified or transferred.
        """
        location = classify_location(source)
        destination_location = (
            classify_location(destination, must_exist=False) if destination else None
        )
        resolved_region = region or self.resolve_region(
            location, destination_location, backend
        )

        logger.info(
            "Staging source",
            extra={
                "source": source,
                "source_kind": location.kind,
                "provider": backend.provider.value,
                "region": resolved_region,
            },
        )

        if isinstance(location, ObjectLocation) and backend.owns_storage_url(source):
            if region and location.region and location.region != region:
                return self._relocate(location, source, request, region, backend)
            return StagingOutcome(source_url=source, region=resolved_region)

        if isinstance(location, RemoteUrlLocation):
            if backend.supports_remote_url_input():
                return StagingOutcome(source_url=source, region=resolved_region)
            target = self._temporary_location(source, request, resolved_region, backend)
            local_path = self._download(
                source, lambda: self._downloader.download_to_file(source)
            )
            return self._upload_temporary(local_path, source, target, backend)

        if isinstance(location, ObjectLocation):
            # object on another backend's storage
            target = self._temporary_location(source, request, resolved_region, backend)
            local_path = self._download(
                source, lambda: self._storage.download_file(location)
            )
            return self._upload_temporary(local_path, source, target, backend)

        if backend.supports_direct_file_input():
            return StagingOutcome(source_url=source, region=resolved_region)
        target = self._temporary_location(source, request, resolved_region, backend)
        return self._upload(location.path, source, target, backend)

    def resolve_region(
        self,
        source: ObjectLocation | RemoteUrlLocation | LocalFileLocation,
        destination: ObjectLocation | RemoteUrlLocation | LocalFileLocation | None,
        backend: TranscriptionBackend,
    ) -> str:
        """Source region, then destination region, then the backend default."""
        for location in (source, destination):
            if (
                isinstance(location, ObjectLocation)
                and location.provider == backend.provider
                and location.region
            ):
                return location.region
        return backend.default_region()

    def cleanup(self, artifact: StagedArtifact | None) -> None:
        """
        Deletes a staged artifact if the deletion policy allows it.

        Raises:
            CleanupError: If the deletion fails.
        """
        if artifact is None or not artifact.delete_after_use:
            return
        if not self._delete_temp_files:
            logger.info(
                "Keeping temporary artifact", extra={"location": str(artifact.location)}
            )
            return
        try:
            self._storage.delete(artifact.location)
        except S2TError as e:
            logger.exception(
                "Temporary artifact cleanup failed",
                extra={"location": str(artifact.location)},
            )
            raise CleanupError(str(artifact.location), e) from e
        logger.info(
            "Temporary artifact deleted", extra={"location": str(artifact.location)}
        )

    def _temporary_location(
        self,
        source: str,
        request: TranscriptionRequest,
        region: str,
        backend: TranscriptionBackend,
    ) -> ObjectLocation:
        if not request.temp_bucket:
            raise StagingError(
                source,
                f"{backend.provider.value} cannot read this source directly "
                "and no temporary bucket is configured",
            )
        file_type = get_file_type(source)
        key = str(unique_timestamp())
        if file_type:
            key = f"{key}.{file_type}"
        return ObjectLocation(
            provider=backend.provider,
            bucket=request.temp_bucket,
            key=key,
            region=region,
        )

    def _relocate(
        self,
        location: ObjectLocation,
        source: str,
        request: TranscriptionRequest,
        region: str,
        backend: TranscriptionBackend,
    ) -> StagingOutcome:
        target = self._temporary_location(source, request, region, backend)
        try:
            self._storage.copy(location, target)
        except S2TError as e:
            raise StagingError(source, f"copy to region '{region}' failed", e) from e
        logger.info(
            "Source relocated",
            extra={"source": source, "target": str(target), "region": region},
        )
        return StagingOutcome(
            source_url=backend.object_url(target),
            artifact=StagedArtifact(location=target),
            region=region,
        )

    def _download(self, source: str, download) -> str:
        try:
            return download()
        except S2TError as e:
            raise StagingError(source, "download failed", e) from e

    def _upload_temporary(
        self,
        local_path: str,
        source: str,
        target: ObjectLocation,
        backend: TranscriptionBackend,
    ) -> StagingOutcome:
        """Uploads a downloaded copy and removes the local file afterwards."""
        try:
            return self._upload(local_path, source, target, backend)
        finally:
            if self._delete_temp_files:
                self._remove_local_file(local_path)

    def _upload(
        self,
        local_path: str,
        source: str,
        target: ObjectLocation,
        backend: TranscriptionBackend,
    ) -> StagingOutcome:
        try:
            self._storage.upload_file(local_path, target)
        except S2TError as e:
            raise StagingError(source, "upload failed", e) from e
        logger.info(
            "Source uploaded to temporary storage",
            extra={"source": source, "target": str(target)},
        )
        return StagingOutcome(
            source_url=backend.object_url(target),
            artifact=StagedArtifact(location=target),
            region=target.region,
        )

    def _remove_local_file(self, local_path: str) -> None:
        try:
            os.remove(local_path)
        except OSError:
            logger.exception(
                "Removing local temporary file failed",
                extra={"local_path": local_path},
            )
