"""Domain layer exports."""

from .capabilities import CAPABILITIES, BackendCapabilities
from .locations import (
    LocalFileLocation,
    ObjectLocation,
    RemoteUrlLocation,
    StagedArtifact,
    StorageLocation,
    classify_location,
    get_file_type,
    object_url,
)
from .models import (
    ContentRedactionConfig,
    ContentRedactionType,
    JobNameConfig,
    JobState,
    JobStatus,
    Provider,
    RedactionEntityType,
    RedactionOutput,
    TranscriptionRequest,
    TranscriptionResult,
    unique_timestamp,
)
from .provider_selector import DEFAULT_PROVIDER, select_provider

__all__ = [
    "CAPABILITIES",
    "BackendCapabilities",
    "LocalFileLocation",
    "ObjectLocation",
    "RemoteUrlLocation",
    "StagedArtifact",
    "StorageLocation",
    "classify_location",
    "get_file_type",
    "object_url",
    "ContentRedactionConfig",
    "ContentRedactionType",
    "JobNameConfig",
    "JobState",
    "JobStatus",
    "Provider",
    "RedactionEntityType",
    "RedactionOutput",
    "TranscriptionRequest",
    "TranscriptionResult",
    "unique_timestamp",
    "DEFAULT_PROVIDER",
    "select_provider",
]
