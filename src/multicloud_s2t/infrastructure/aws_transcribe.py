"""Amazon Transcribe implementation of the TranscriptionBackend interface."""

import json
import logging
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from multicloud_s2t.config import CredentialsHolder
from multicloud_s2t.domain.locations import (
    LocalFileLocation,
    ObjectLocation,
    get_file_type,
    is_aws_url,
)
from multicloud_s2t.domain.models import (
    ContentRedactionConfig,
    ContentRedactionType,
    JobState,
    JobStatus,
    Provider,
    RedactionOutput,
    TranscriptionRequest,
    TranscriptionResult,
)
from multicloud_s2t.exceptions import InvocationError, S2TError
from multicloud_s2t.handlers.job_poller import JobPoller

from .interfaces import Downloader, StorageTransfer, TranscriptionBackend

logger = logging.getLogger(__name__)

_JOB_STATUSES = {
    "QUEUED": JobStatus.SUBMITTED,
    "IN_PROGRESS": JobStatus.IN_PROGRESS,
    "COMPLETED": JobStatus.COMPLETED,
    "FAILED": JobStatus.FAILED,
}


def _value(item: Enum | str) -> str:
    return item.value if isinstance(item, Enum) else str(item)


def job_state_from_response(job: dict[str, Any]) -> JobState:
    """Converts a ``TranscriptionJob`` structure into a JobState."""
    transcript = job.get("Transcript") or {}
    return JobState(
        job_name=job["TranscriptionJobName"],
        status=_JOB_STATUSES[job["TranscriptionJobStatus"]],
        failure_reason=job.get("FailureReason"),
        transcript_uri=transcript.get("RedactedTranscriptFileUri")
        or transcript.get("TranscriptFileUri"),
    )


class AwsTranscribeBackend(TranscriptionBackend):
    """Job-based backend on Amazon Transcribe, reading audio from S3."""

    provider = Provider.AWS

    def __init__(
        self,
        storage: StorageTransfer,
        downloader: Downloader,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(storage)
        self._downloader = downloader
        self._sleep = sleep
        self._clock = clock

    def _build_client(self, credentials: CredentialsHolder, region: str) -> Any:
        keys = {}
        if credentials.aws is not None:
            keys = {
                "aws_access_key_id": credentials.aws.access_key_id,
                "aws_secret_access_key": credentials.aws.secret_access_key,
                "aws_session_token": credentials.aws.session_token,
            }
        return boto3.client("transcribe", region_name=region, **keys)

    def owns_storage_url(self, url: str) -> bool:
        return is_aws_url(url)

    def transform_request(
        self, source_url: str, request: TranscriptionRequest
    ) -> tuple[str, TranscriptionRequest]:
        """Fills redaction defaults and normalizes entity type names."""
        redaction = request.content_redaction
        if redaction.is_empty():
            return source_url, request

        redaction = ContentRedactionConfig(
            redaction_type=redaction.redaction_type or ContentRedactionType.PII,
            entity_types=tuple(_value(e).upper() for e in redaction.entity_types),
            redaction_output=redaction.redaction_output or RedactionOutput.REDACTED,
        )
        return source_url, request.model_copy(update={"content_redaction": redaction})

    def transcribe_to_destination(
        self,
        source_url: str,
        destination: ObjectLocation | LocalFileLocation,
        request: TranscriptionRequest,
    ) -> None:
        state = self._run_job(source_url, request)
        text = self._read_transcript(state)
        self._write_transcript(destination, text)
        logger.info(
            "Transcript stored",
            extra={"job_name": state.job_name, "destination": str(destination)},
        )

    def transcribe_direct(
        self, source_url: str, request: TranscriptionRequest
    ) -> TranscriptionResult:
        state = self._run_job(source_url, request)
        return TranscriptionResult(
            text=self._read_transcript(state),
            provider=self.provider,
            job_name=state.job_name,
            status=state.status,
        )

    def build_job_input(
        self, source_url: str, request: TranscriptionRequest
    ) -> dict[str, Any]:
        """Maps a request onto ``StartTranscriptionJob`` parameters."""
        params: dict[str, Any] = {
            "TranscriptionJobName": request.job_name.resolve(),
            "Media": {"MediaFileUri": source_url},
        }

        media_format = get_file_type(source_url).lower()
        if self.supports_file_type(media_format):
            params["MediaFormat"] = media_format

        if request.language_code:
            params["LanguageCode"] = request.language_code
        else:
            if request.identify_multiple_languages:
                params["IdentifyMultipleLanguages"] = True
            else:
                params["IdentifyLanguage"] = True
            if request.language_options:
                params["LanguageOptions"] = list(request.language_options)

        redaction = request.content_redaction
        if not redaction.is_empty():
            content_redaction = {
                "RedactionType": _value(redaction.redaction_type),
                "RedactionOutput": _value(redaction.redaction_output),
            }
            if redaction.entity_types:
                content_redaction["PiiEntityTypes"] = [
                    _value(e) for e in redaction.entity_types
                ]
            params["ContentRedaction"] = content_redaction

        return params

    def _run_job(self, source_url: str, request: TranscriptionRequest) -> JobState:
        client = self._client_for(request)
        params = self.build_job_input(source_url, request)
        job_name = params["TranscriptionJobName"]

        try:
            response = client.start_transcription_job(**params)
        except (BotoCoreError, ClientError) as e:
            logger.exception(
                "Starting transcription job failed", extra={"job_name": job_name}
            )
            raise InvocationError(
                self.provider.value, f"error while starting job '{job_name}': {e}", e
            ) from e

        state = job_state_from_response(response["TranscriptionJob"])
        logger.info(
            "Transcription job submitted",
            extra={"job_name": job_name, "source": source_url},
        )

        poller = JobPoller.from_request(request, sleep=self._sleep, clock=self._clock)
        return poller.wait(state, lambda name: self._fetch_status(client, name))

    def _fetch_status(self, client: Any, job_name: str) -> JobState:
        try:
            response = client.get_transcription_job(TranscriptionJobName=job_name)
        except (BotoCoreError, ClientError) as e:
            logger.exception(
                "Checking transcription job failed", extra={"job_name": job_name}
            )
            raise InvocationError(
                self.provider.value, f"error while checking job '{job_name}': {e}", e
            ) from e
        return job_state_from_response(response["TranscriptionJob"])

    def _read_transcript(self, state: JobState) -> str:
        if not state.transcript_uri:
            raise InvocationError(
                self.provider.value, f"job '{state.job_name}' has no transcript"
            )
        try:
            document = json.loads(self._downloader.fetch(state.transcript_uri))
            transcripts = document["results"]["transcripts"]
            return " ".join(t["transcript"] for t in transcripts)
        except S2TError as e:
            raise InvocationError(
                self.provider.value, f"transcript of '{state.job_name}' unavailable", e
            ) from e
        except (ValueError, KeyError, TypeError) as e:
            raise InvocationError(
                self.provider.value,
                f"unexpected transcript document for '{state.job_name}'",
                e,
            ) from e
