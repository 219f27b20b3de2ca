"""Configuration loaded from environment variables."""

import os

from pydantic import BaseModel

from multicloud_s2t.domain.models import Provider


class AwsCredentials(BaseModel, frozen=True):
    """Static AWS credentials. Used for both Transcribe and S3."""

    access_key_id: str
    secret_access_key: str
    session_token: str | None = None


class GcpCredentials(BaseModel, frozen=True):
    """
    Google Cloud credentials.

    Speech-to-Text authenticates with the service account file (or the
    application default credentials when unset). Cloud Storage is reached
    through its S3 interoperability API, which needs HMAC keys.
    """

    service_account_file: str | None = None
    hmac_access_key: str = ""
    hmac_secret: str = ""


class CredentialsHolder(BaseModel, frozen=True):
    """Per-backend credential material. Missing entries use SDK defaults."""

    aws: AwsCredentials | None = None
    gcp: GcpCredentials | None = None


class StorageConfig(BaseModel, frozen=True):
    """Object storage endpoints."""

    s3_endpoint: str = "s3.amazonaws.com"
    gcs_endpoint: str = "storage.googleapis.com"
    secure: bool = True


class AppConfig(BaseModel, frozen=True):
    """Root configuration."""

    credentials: CredentialsHolder = CredentialsHolder()
    region: str = ""
    default_provider: Provider = Provider.AWS
    delete_temp_files: bool = True
    max_workers: int = 4
    http_timeout_s: float = 60.0
    log_level: str = "INFO"
    storage: StorageConfig = StorageConfig()


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _load_credentials() -> CredentialsHolder:
    aws = None
    access_key_id = os.getenv("AWS_ACCESS_KEY_ID", "")
    secret_access_key = os.getenv("AWS_SECRET_ACCESS_KEY", "")
    if access_key_id and secret_access_key:
        aws = AwsCredentials(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=os.getenv("AWS_SESSION_TOKEN") or None,
        )

    gcp = None
    service_account_file = os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or None
    hmac_access_key = os.getenv("GCS_HMAC_ACCESS_KEY", "")
    hmac_secret = os.getenv("GCS_HMAC_SECRET", "")
    if service_account_file or hmac_access_key:
        gcp = GcpCredentials(
            service_account_file=service_account_file,
            hmac_access_key=hmac_access_key,
            hmac_secret=hmac_secret,
        )

    return CredentialsHolder(aws=aws, gcp=gcp)


def load_config() -> AppConfig:
    """Loads configuration from environment variables."""
    return AppConfig(
        credentials=_load_credentials(),
        region=os.getenv("S2T_REGION", ""),
        default_provider=Provider(os.getenv("S2T_DEFAULT_PROVIDER", "aws").lower()),
        delete_temp_files=_env_flag("S2T_DELETE_TEMP_FILES", True),
        max_workers=int(os.getenv("S2T_MAX_WORKERS", "4")),
        http_timeout_s=float(os.getenv("S2T_HTTP_TIMEOUT", "60")),
        log_level=os.getenv("S2T_LOG_LEVEL", "INFO"),
        storage=StorageConfig(
            s3_endpoint=os.getenv("S2T_S3_ENDPOINT", "s3.amazonaws.com"),
            gcs_endpoint=os.getenv("S2T_GCS_ENDPOINT", "storage.googleapis.com"),
        ),
    )
