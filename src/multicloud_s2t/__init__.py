from multicloud_s2t.client import SpeechToTextClient
from multicloud_s2t.config import (
    AppConfig,
    AwsCredentials,
    CredentialsHolder,
    GcpCredentials,
    load_config,
)
from multicloud_s2t.dependencies import build_client
from multicloud_s2t.domain import (
    ContentRedactionConfig,
    ContentRedactionType,
    JobNameConfig,
    JobStatus,
    Provider,
    RedactionEntityType,
    RedactionOutput,
    TranscriptionRequest,
    TranscriptionResult,
)
from multicloud_s2t.exceptions import (
    CleanupError,
    ClientCreationError,
    CombinedError,
    InvocationError,
    JobTimeoutError,
    ProviderSelectionError,
    S2TError,
    SourceNotFoundError,
    StagingError,
    TranscriptionJobFailedError,
)
from multicloud_s2t.logging import setup_logging

__all__ = [
    "SpeechToTextClient",
    "build_client",
    "setup_logging",
    "AppConfig",
    "AwsCredentials",
    "CredentialsHolder",
    "GcpCredentials",
    "load_config",
    "ContentRedactionConfig",
    "ContentRedactionType",
    "JobNameConfig",
    "JobStatus",
    "Provider",
    "RedactionEntityType",
    "RedactionOutput",
    "TranscriptionRequest",
    "TranscriptionResult",
    "CleanupError",
    "ClientCreationError",
    "CombinedError",
    "InvocationError",
    "JobTimeoutError",
    "ProviderSelectionError",
    "S2TError",
    "SourceNotFoundError",
    "StagingError",
    "TranscriptionJobFailedError",
]
