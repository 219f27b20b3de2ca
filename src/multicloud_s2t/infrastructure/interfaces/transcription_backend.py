"""Abstract interface for speech-to-text backends."""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any

from multicloud_s2t.config import CredentialsHolder
from multicloud_s2t.domain.capabilities import CAPABILITIES, BackendCapabilities
from multicloud_s2t.domain.locations import (
    LocalFileLocation,
    ObjectLocation,
    object_url,
)
from multicloud_s2t.domain.models import (
    Provider,
    TranscriptionRequest,
    TranscriptionResult,
)
from multicloud_s2t.exceptions import (
    ClientCreationError,
    CombinedError,
    InvocationError,
)

from .storage import StorageTransfer

logger = logging.getLogger(__name__)


class TranscriptionBackend(ABC):
    """
    Base class of the backend adapters.

    Vendor clients are created per region through ``create_client`` and kept
    until ``close_client``. Requests reach the adapter with ``region`` set to
    the execution region, which selects the vendor client to use.
    """

    provider: Provider

    def __init__(self, storage: StorageTransfer):
        self._storage = storage
        self._clients: dict[str, Any] = {}
        self._clients_lock = threading.Lock()

    @property
    def capabilities(self) -> BackendCapabilities:
        return CAPABILITIES[self.provider]

    def create_client(self, credentials: CredentialsHolder, region: str) -> None:
        """
        Establishes the vendor session for ``region`` unless one exists.

        Raises:
            ClientCreationError: If the vendor client cannot be built.
        """
        with self._clients_lock:
            if region in self._clients:
                return
            try:
                client = self._build_client(credentials, region)
            except Exception as e:
                logger.exception(
                    "Client creation failed",
                    extra={"provider": self.provider.value, "region": region},
                )
                raise ClientCreationError(self.provider.value, region, e) from e
            self._clients[region] = client
            logger.info(
                "Client created",
                extra={"provider": self.provider.value, "region": region},
            )

    def close_client(self) -> None:
        """
        Closes every vendor client of this adapter.

        Raises:
            CombinedError: If one or more clients failed to close.
        """
        with self._clients_lock:
            clients = list(self._clients.values())
            self._clients.clear()

        errors: list[Exception] = []
        for client in clients:
            try:
                self._close_vendor_client(client)
            except Exception as e:
                logger.exception(
                    "Closing client failed", extra={"provider": self.provider.value}
                )
                errors.append(e)
        if errors:
            raise CombinedError(errors)

    def _client_for(self, request: TranscriptionRequest) -> Any:
        region = request.region or self.default_region()
        with self._clients_lock:
            client = self._clients.get(region)
        if client is None:
            raise InvocationError(
                self.provider.value, f"no client created for region '{region}'"
            )
        return client

    def _write_transcript(
        self, destination: ObjectLocation | LocalFileLocation, text: str
    ) -> None:
        self._storage.write(destination, text.encode("utf-8"), "text/plain")

    def object_url(self, location: ObjectLocation) -> str:
        return object_url(location)

    def supports_file_type(self, file_type: str) -> bool:
        return self.capabilities.supports_file_type(file_type)

    def supports_direct_file_input(self) -> bool:
        return self.capabilities.direct_file_input

    def supports_remote_url_input(self) -> bool:
        return self.capabilities.direct_remote_url_input

    def default_region(self) -> str:
        return self.capabilities.default_region

    def accepts_region(self, region: str) -> bool:
        """True if ``region`` names a location in this backend's region namespace."""
        return self.capabilities.accepts_region(region)

    @abstractmethod
    def _build_client(self, credentials: CredentialsHolder, region: str) -> Any:
        """Constructs the vendor SDK client for ``region``."""

    def _close_vendor_client(self, client: Any) -> None:
        """Closes a vendor client. Clients without a close operation ignore this."""

    @abstractmethod
    def owns_storage_url(self, url: str) -> bool:
        """True if ``url`` addresses this backend's native object storage."""

    @abstractmethod
    def transform_request(
        self, source_url: str, request: TranscriptionRequest
    ) -> tuple[str, TranscriptionRequest]:
        """
        Normalizes the source and options right before invocation.

        Raises:
            InvocationError: If the request cannot be served by this backend.
        """

    @abstractmethod
    def transcribe_to_destination(
        self,
        source_url: str,
        destination: ObjectLocation | LocalFileLocation,
        request: TranscriptionRequest,
    ) -> None:
        """
        Transcribes ``source_url`` and stores the text at ``destination``.

        Blocks until the transcript is written.

        Raises:
            InvocationError: If the vendor rejects or fails the request.
            TranscriptionJobFailedError: If a submitted job fails.
            StorageUploadError: If writing the transcript fails.
        """

    @abstractmethod
    def transcribe_direct(
        self, source_url: str, request: TranscriptionRequest
    ) -> TranscriptionResult:
        """
        Transcribes ``source_url`` and returns the text.

        Raises:
            InvocationError: If the vendor rejects or fails the request.
            TranscriptionJobFailedError: If a submitted job fails.
        """
