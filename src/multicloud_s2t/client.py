"""Orchestrating client: provider selection, staging, invocation and cleanup."""

import logging
import os
import threading
from collections.abc import Callable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor

from multicloud_s2t.config import CredentialsHolder
from multicloud_s2t.domain.capabilities import CAPABILITIES, BackendCapabilities
from multicloud_s2t.domain.locations import (
    LocalFileLocation,
    ObjectLocation,
    StagedArtifact,
    classify_location,
)
from multicloud_s2t.domain.models import (
    Provider,
    TranscriptionRequest,
    TranscriptionResult,
    unique_timestamp,
)
from multicloud_s2t.domain.provider_selector import DEFAULT_PROVIDER, select_provider
from multicloud_s2t.exceptions import (
    CleanupError,
    CombinedError,
    ProviderSelectionError,
    StagingError,
)
from multicloud_s2t.handlers.source_stager import SourceStager
from multicloud_s2t.infrastructure.interfaces import (
    Downloader,
    StorageTransfer,
    TranscriptionBackend,
)

logger = logging.getLogger(__name__)

BackendFactory = Callable[[Provider], TranscriptionBackend]


class SpeechToTextClient:
    """
    Transcribes audio on whichever cloud backend fits the request.

    Backend adapters are created on first use and kept for the lifetime of
    the client, one per provider. Direct transcriptions run on the client's
    thread pool and report through a ``Future``.
    """

    def __init__(
        self,
        storage: StorageTransfer,
        downloader: Downloader,
        backend_factory: BackendFactory,
        credentials: CredentialsHolder | None = None,
        region: str = "",
        delete_temp_files: bool = True,
        default_provider: Provider = DEFAULT_PROVIDER,
        max_workers: int = 4,
        capabilities: Mapping[Provider, BackendCapabilities] = CAPABILITIES,
    ):
        self._downloader = downloader
        self._stager = SourceStager(storage, downloader, delete_temp_files)
        self._backend_factory = backend_factory
        self._credentials = credentials or CredentialsHolder()
        self._region = region
        self._default_provider = default_provider
        self._capabilities = capabilities
        self._backends: dict[Provider, TranscriptionBackend] = {}
        self._backends_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="s2t-direct"
        )

    def __enter__(self) -> "SpeechToTextClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def get_backend(self, provider: Provider) -> TranscriptionBackend:
        """Returns the cached adapter of ``provider``, creating it on first use."""
        if provider == Provider.UNSPECIFIED:
            raise ProviderSelectionError("provider is unspecified")
        with self._backends_lock:
            backend = self._backends.get(provider)
            if backend is None:
                backend = self._backend_factory(provider)
                self._backends[provider] = backend
            return backend

    def transcribe(
        self, source: str, destination: str, request: TranscriptionRequest
    ) -> None:
        """
        Transcribes ``source`` and stores the text at ``destination``.

        Blocks until the transcript is written, including job polling.

        Args:
            source: Backend storage URL, HTTP(S) URL or local path.
            destination: Backend storage URL (or local path) for the text.
                A folder-like URL ending in ``/`` gets a generated file name.
            request: Options of the call.

        Raises:
            S2TError: Subclass identifying the stage that failed.
        """
        self._run(source, destination, request)

    def transcribe_direct(
        self, source: str, request: TranscriptionRequest
    ) -> Future[TranscriptionResult]:
        """
        Transcribes ``source`` in the background.

        Returns:
            Future settled exactly once, with the TranscriptionResult or with
            the error of the failed stage.
        """
        return self._executor.submit(self._run, source, None, request)

    def is_provider_storage_url(self, url: str) -> bool:
        """True if ``url`` addresses the storage of any supported backend."""
        return any(
            self.get_backend(provider).owns_storage_url(url)
            for provider in Provider.all()
        )

    def close_backend(self, provider: Provider) -> None:
        with self._backends_lock:
            backend = self._backends.get(provider)
        if backend is not None:
            backend.close_client()

    def close_all_backends(self) -> None:
        """
        Closes the vendor clients of every cached backend.

        Raises:
            CombinedError: Holding every individual close failure.
        """
        with self._backends_lock:
            backends = list(self._backends.values())

        errors: list[Exception] = []
        for backend in backends:
            try:
                backend.close_client()
            except Exception as e:
                errors.append(e)
        if errors:
            raise CombinedError(errors)

    def close(self) -> None:
        try:
            self.close_all_backends()
        finally:
            self._executor.shutdown(wait=True)
            self._downloader.close()

    def _run(
        self,
        source: str,
        destination: str | None,
        request: TranscriptionRequest,
    ) -> TranscriptionResult | None:
        if request.provider == Provider.UNSPECIFIED:
            request = select_provider(
                request, source, self._capabilities, self._default_provider
            )
        backend = self.get_backend(request.provider)

        destination_location = None
        if destination is not None:
            destination_location = self._destination_location(destination, request)

        staged = self._stager.stage(
            source,
            destination,
            request,
            request.region or self._client_region_for(backend),
            backend,
        )
        request = request.model_copy(update={"region": staged.region})

        logger.info(
            "Transcription started",
            extra={
                "provider": request.provider.value,
                "source": staged.source_url,
                "region": staged.region,
                "direct": destination is None,
            },
        )

        try:
            result = self._invoke(
                backend, staged.source_url, destination_location, request
            )
        except Exception as e:
            self._cleanup_after_failure(staged.artifact, e)
            raise

        self._stager.cleanup(staged.artifact)
        logger.info(
            "Transcription finished",
            extra={"provider": request.provider.value, "source": source},
        )
        return result

    def _client_region_for(self, backend: TranscriptionBackend) -> str:
        """The client-wide region, when it is in ``backend``'s region namespace."""
        if not self._region or backend.accepts_region(self._region):
            return self._region
        logger.info(
            "Client region not applicable to backend",
            extra={"provider": backend.provider.value, "region": self._region},
        )
        return ""

    def _invoke(
        self,
        backend: TranscriptionBackend,
        source_url: str,
        destination: ObjectLocation | LocalFileLocation | None,
        request: TranscriptionRequest,
    ) -> TranscriptionResult | None:
        backend.create_client(self._credentials, request.region)
        source_url, request = backend.transform_request(source_url, request)
        if destination is None:
            return backend.transcribe_direct(source_url, request)
        backend.transcribe_to_destination(source_url, destination, request)
        return None

    def _cleanup_after_failure(
        self, artifact: StagedArtifact | None, error: Exception
    ) -> None:
        try:
            self._stager.cleanup(artifact)
        except CleanupError as cleanup_error:
            raise CombinedError([error, cleanup_error]) from error

    def _destination_location(
        self, destination: str, request: TranscriptionRequest
    ) -> ObjectLocation | LocalFileLocation:
        location = classify_location(destination, must_exist=False)
        file_name = f"{unique_timestamp()}.{request.default_text_file_extension}"

        if isinstance(location, ObjectLocation):
            if not location.key or location.key.endswith("/"):
                location = location.model_copy(
                    update={"key": f"{location.key}{file_name}"}
                )
            return location
        if isinstance(location, LocalFileLocation):
            if os.path.isdir(location.path):
                location = LocalFileLocation(
                    path=os.path.join(location.path, file_name)
                )
            return location
        raise StagingError(
            destination, "destination must be a storage URL or a local path"
        )
