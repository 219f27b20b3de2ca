"""Domain models for speech-to-text orchestration."""

import threading
import time
from enum import Enum

from pydantic import BaseModel, Field


class Provider(str, Enum):
    """Supported transcription backends."""

    UNSPECIFIED = "unspecified"
    AWS = "aws"
    GCP = "gcp"

    @classmethod
    def all(cls) -> tuple["Provider", ...]:
        """Returns every concrete backend in a fixed order."""
        return (cls.AWS, cls.GCP)


class ContentRedactionType(str, Enum):
    PII = "PII"


class RedactionEntityType(str, Enum):
    BANK_ACCOUNT_NUMBER = "BANK_ACCOUNT_NUMBER"
    BANK_ROUTING = "BANK_ROUTING"
    CREDIT_DEBIT_NUMBER = "CREDIT_DEBIT_NUMBER"
    CREDIT_DEBIT_CVV = "CREDIT_DEBIT_CVV"
    CREDIT_DEBIT_EXPIRY = "CREDIT_DEBIT_EXPIRY"
    PIN = "PIN"
    EMAIL = "EMAIL"
    ADDRESS = "ADDRESS"
    NAME = "NAME"
    PHONE = "PHONE"
    SSN = "SSN"
    ALL = "ALL"


class RedactionOutput(str, Enum):
    REDACTED = "redacted"
    REDACTED_AND_UNREDACTED = "redacted_and_unredacted"


class ContentRedactionConfig(BaseModel, frozen=True):
    """
    Which sensitive information is removed from the transcript.

    Plain strings are accepted next to the enum members so values the vendor
    publishes later can be passed through unchanged.
    """

    redaction_type: ContentRedactionType | str | None = None
    entity_types: tuple[RedactionEntityType | str, ...] = ()
    redaction_output: RedactionOutput | None = None

    def is_empty(self) -> bool:
        """True when redaction is disabled, i.e. no field is set."""
        return (
            not self.redaction_type
            and not self.entity_types
            and self.redaction_output is None
        )


_timestamp_lock = threading.Lock()
_last_timestamp = 0


def unique_timestamp() -> int:
    """Nanosecond timestamp that is strictly increasing within the process."""
    global _last_timestamp
    with _timestamp_lock:
        _last_timestamp = max(time.time_ns(), _last_timestamp + 1)
        return _last_timestamp


class JobNameConfig(BaseModel, frozen=True):
    """Base name of transcription jobs and whether a timestamp is appended."""

    base_name: str = ""
    append_timestamp: bool = True

    def resolve(self) -> str:
        if self.base_name and not self.append_timestamp:
            return self.base_name
        return f"{self.base_name}{unique_timestamp()}"


class TranscriptionRequest(BaseModel, frozen=True):
    """Options of a single transcription call."""

    provider: Provider = Provider.UNSPECIFIED
    language_code: str = ""
    identify_multiple_languages: bool = False
    language_options: tuple[str, ...] = ()
    # AWS only
    content_redaction: ContentRedactionConfig = ContentRedactionConfig()
    # GCP only
    enable_automatic_punctuation: bool = False
    enable_spoken_punctuation: bool = False
    enable_spoken_emojis: bool = False
    profanity_filter: bool = False
    job_name: JobNameConfig = JobNameConfig()
    job_check_interval_ms: int = Field(500, gt=0)
    job_max_wait_ms: int | None = Field(None, ge=0)
    temp_bucket: str = ""
    default_text_file_extension: str = "txt"
    region: str = ""

    def requests_gcp_features(self) -> bool:
        return (
            self.profanity_filter
            or self.enable_automatic_punctuation
            or self.enable_spoken_punctuation
            or self.enable_spoken_emojis
        )


class JobStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class JobState(BaseModel, frozen=True):
    """Status snapshot of a job on a job-based backend."""

    job_name: str
    status: JobStatus
    failure_reason: str | None = None
    transcript_uri: str | None = None


class TranscriptionResult(BaseModel, frozen=True):
    """Text returned by a direct transcription."""

    text: str
    provider: Provider
    job_name: str | None = None
    status: JobStatus | None = None
