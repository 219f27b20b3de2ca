"""Google Cloud Speech-to-Text implementation of the TranscriptionBackend interface."""

import concurrent.futures
import logging
from typing import Any

from google.api_core import exceptions as google_exceptions
from google.api_core.client_options import ClientOptions
from google.cloud import speech
from google.oauth2 import service_account

from multicloud_s2t.config import CredentialsHolder
from multicloud_s2t.domain.locations import (
    LocalFileLocation,
    ObjectLocation,
    get_file_type,
    is_gcs_url,
    parse_gcs_url,
)
from multicloud_s2t.domain.models import (
    Provider,
    TranscriptionRequest,
    TranscriptionResult,
)
from multicloud_s2t.exceptions import InvocationError, JobTimeoutError

from .interfaces import TranscriptionBackend

logger = logging.getLogger(__name__)

GLOBAL_REGION = "global"

# WAV and FLAC headers carry the encoding, so they stay unspecified.
_ENCODING_NAMES = {
    "mp3": "MP3",
    "ogg": "OGG_OPUS",
    "opus": "OGG_OPUS",
    "amr": "AMR",
    "awb": "AMR_WB",
    "webm": "WEBM_OPUS",
    "spx": "SPEEX_WITH_HEADER_BYTE",
}


def _encoding_for(file_type: str) -> speech.RecognitionConfig.AudioEncoding:
    encodings = speech.RecognitionConfig.AudioEncoding
    name = _ENCODING_NAMES.get(file_type.lower(), "ENCODING_UNSPECIFIED")
    return getattr(encodings, name, encodings.ENCODING_UNSPECIFIED)


class GcpSpeechBackend(TranscriptionBackend):
    """Direct backend on Google Cloud Speech-to-Text reading from Cloud Storage."""

    provider = Provider.GCP

    def _build_client(self, credentials: CredentialsHolder, region: str) -> Any:
        gcp_credentials = None
        if credentials.gcp is not None and credentials.gcp.service_account_file:
            gcp_credentials = service_account.Credentials.from_service_account_file(
                credentials.gcp.service_account_file
            )
        client_options = None
        if region and region != GLOBAL_REGION:
            client_options = ClientOptions(
                api_endpoint=f"{region}-speech.googleapis.com"
            )
        return speech.SpeechClient(
            credentials=gcp_credentials, client_options=client_options
        )

    def _close_vendor_client(self, client: Any) -> None:
        client.transport.close()

    def owns_storage_url(self, url: str) -> bool:
        return is_gcs_url(url)

    def transform_request(
        self, source_url: str, request: TranscriptionRequest
    ) -> tuple[str, TranscriptionRequest]:
        """Rewrites Cloud Storage URLs to ``gs://`` form and checks the language."""
        if not request.language_code:
            raise InvocationError(
                self.provider.value, "a language code is required on this backend"
            )
        location = parse_gcs_url(source_url)
        if location is not None:
            source_url = str(location)
        return source_url, request

    def transcribe_to_destination(
        self,
        source_url: str,
        destination: ObjectLocation | LocalFileLocation,
        request: TranscriptionRequest,
    ) -> None:
        text = self._recognize(source_url, request)
        self._write_transcript(destination, text)
        logger.info(
            "Transcript stored",
            extra={"source": source_url, "destination": str(destination)},
        )

    def transcribe_direct(
        self, source_url: str, request: TranscriptionRequest
    ) -> TranscriptionResult:
        return TranscriptionResult(
            text=self._recognize(source_url, request), provider=self.provider
        )

    def build_recognition_config(
        self, source_url: str, request: TranscriptionRequest
    ) -> speech.RecognitionConfig:
        return speech.RecognitionConfig(
            encoding=_encoding_for(get_file_type(source_url)),
            language_code=request.language_code,
            alternative_language_codes=list(request.language_options),
            enable_automatic_punctuation=request.enable_automatic_punctuation,
            enable_spoken_punctuation=request.enable_spoken_punctuation,
            enable_spoken_emojis=request.enable_spoken_emojis,
            profanity_filter=request.profanity_filter,
        )

    def _recognize(self, source_url: str, request: TranscriptionRequest) -> str:
        client = self._client_for(request)
        config = self.build_recognition_config(source_url, request)
        audio = speech.RecognitionAudio(uri=source_url)
        timeout = None
        if request.job_max_wait_ms is not None:
            timeout = request.job_max_wait_ms / 1000

        try:
            operation = client.long_running_recognize(config=config, audio=audio)
            response = operation.result(timeout=timeout)
        except concurrent.futures.TimeoutError as e:
            logger.exception("Recognition timed out", extra={"source": source_url})
            raise JobTimeoutError(source_url, request.job_max_wait_ms) from e
        except google_exceptions.GoogleAPIError as e:
            logger.exception("Recognition failed", extra={"source": source_url})
            raise InvocationError(self.provider.value, str(e), e) from e

        segments = []
        for result in response.results:
            if not result.alternatives:
                continue
            best = max(result.alternatives, key=lambda alt: alt.confidence)
            segments.append(best.transcript.strip())

        logger.info(
            "Recognition completed",
            extra={"source": source_url, "segments": len(segments)},
        )
        return " ".join(segments)
