"""Dependency wiring: builds storage, backends and the client from config."""

import logging

import httpx
from minio import Minio
from minio.credentials import (
    AWSConfigProvider,
    ChainedProvider,
    EnvAWSProvider,
    IamAwsProvider,
)

from multicloud_s2t.client import BackendFactory, SpeechToTextClient
from multicloud_s2t.config import AppConfig, load_config
from multicloud_s2t.domain.models import Provider
from multicloud_s2t.exceptions import ProviderSelectionError
from multicloud_s2t.infrastructure import (
    AwsTranscribeBackend,
    GcpSpeechBackend,
    HttpDownloader,
    MinioStorageTransfer,
)
from multicloud_s2t.infrastructure.interfaces import (
    Downloader,
    StorageTransfer,
    TranscriptionBackend,
)

logger = logging.getLogger(__name__)


def get_minio_client(
    endpoint: str,
    access_key: str | None = None,
    secret_key: str | None = None,
    session_token: str | None = None,
    secure: bool = True,
) -> Minio:
    """
    Initialize and return a MinIO client for an S3-compatible endpoint.

    Without an access key the AWS default credential chain (environment,
    shared config, instance role) is used.
    """
    try:
        if access_key:
            return Minio(
                endpoint=endpoint,
                access_key=access_key,
                secret_key=secret_key,
                session_token=session_token,
                secure=secure,
            )
        return Minio(
            endpoint=endpoint,
            credentials=ChainedProvider(
                [EnvAWSProvider(), AWSConfigProvider(), IamAwsProvider()]
            ),
            secure=secure,
        )
    except Exception as e:
        logger.exception(
            "MinIO Client Initialization Failed",
            extra={"endpoint": endpoint, "user": access_key},
        )
        raise e


def build_storage(config: AppConfig) -> StorageTransfer:
    clients: dict[Provider, Minio] = {}

    aws = config.credentials.aws
    clients[Provider.AWS] = get_minio_client(
        config.storage.s3_endpoint,
        access_key=aws.access_key_id if aws else None,
        secret_key=aws.secret_access_key if aws else None,
        session_token=aws.session_token if aws else None,
        secure=config.storage.secure,
    )

    gcp = config.credentials.gcp
    if gcp is not None and gcp.hmac_access_key:
        clients[Provider.GCP] = get_minio_client(
            config.storage.gcs_endpoint,
            access_key=gcp.hmac_access_key,
            secret_key=gcp.hmac_secret,
            secure=config.storage.secure,
        )
    else:
        logger.warning("No HMAC keys configured, Cloud Storage transfers disabled")

    return MinioStorageTransfer(clients)


def build_downloader(config: AppConfig) -> Downloader:
    return HttpDownloader(
        httpx.Client(timeout=config.http_timeout_s, follow_redirects=True)
    )


def build_backend_factory(
    storage: StorageTransfer, downloader: Downloader
) -> BackendFactory:
    """Returns a factory creating the adapter of each supported provider."""

    def create_backend(provider: Provider) -> TranscriptionBackend:
        if provider == Provider.AWS:
            return AwsTranscribeBackend(storage, downloader)
        if provider == Provider.GCP:
            return GcpSpeechBackend(storage)
        raise ProviderSelectionError(f"unknown provider '{provider.value}'")

    return create_backend


def build_client(config: AppConfig | None = None) -> SpeechToTextClient:
    """Returns a client wired with MinIO storage, httpx and both backends."""
    config = config or load_config()
    storage = build_storage(config)
    downloader = build_downloader(config)
    return SpeechToTextClient(
        storage=storage,
        downloader=downloader,
        backend_factory=build_backend_factory(storage, downloader),
        credentials=config.credentials,
        region=config.region,
        delete_temp_files=config.delete_temp_files,
        default_provider=config.default_provider,
        max_workers=config.max_workers,
    )
