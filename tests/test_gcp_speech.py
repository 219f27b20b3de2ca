import concurrent.futures
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from google.api_core import exceptions as google_exceptions
from google.cloud import speech

from multicloud_s2t.config import CredentialsHolder
from multicloud_s2t.domain.locations import LocalFileLocation
from multicloud_s2t.domain.models import Provider, TranscriptionRequest
from multicloud_s2t.exceptions import InvocationError, JobTimeoutError
from multicloud_s2t.infrastructure.gcp_speech import GcpSpeechBackend

SOURCE = "gs://bucket/audio.mp3"
REQUEST = TranscriptionRequest(
    provider=Provider.GCP,
    language_code="en-US",
    region="global",
)


def _alternative(transcript, confidence):
    return SimpleNamespace(transcript=transcript, confidence=confidence)


def _response(*results):
    return SimpleNamespace(
        results=[SimpleNamespace(alternatives=list(alts)) for alts in results]
    )


@pytest.fixture
def speech_client():
    with patch(
        "multicloud_s2t.infrastructure.gcp_speech.speech.SpeechClient"
    ) as factory:
        client = MagicMock()
        factory.return_value = client
        yield factory, client


@pytest.fixture
def backend(storage, speech_client):
    backend = GcpSpeechBackend(storage)
    backend.create_client(CredentialsHolder(), "global")
    return backend


# --- Client lifecycle ---

def test_global_region_uses_default_endpoint(speech_client, backend):
    factory, _ = speech_client
    factory.assert_called_once_with(credentials=None, client_options=None)


def test_regional_client_uses_regional_endpoint(storage, speech_client):
    factory, _ = speech_client
    backend = GcpSpeechBackend(storage)
    backend.create_client(CredentialsHolder(), "europe-west4")
    options = factory.call_args.kwargs["client_options"]
    assert options.api_endpoint == "europe-west4-speech.googleapis.com"


def test_close_client_closes_transport(speech_client, backend):
    _, client = speech_client
    backend.close_client()
    client.transport.close.assert_called_once()


# --- Request transformation ---

def test_missing_language_code_rejected(backend):
    request = REQUEST.model_copy(update={"language_code": ""})
    with pytest.raises(InvocationError):
        backend.transform_request(SOURCE, request)


def test_https_storage_url_rewritten_to_gs(backend):
    source_url, _ = backend.transform_request(
        "https://storage.googleapis.com/bucket/dir/audio.flac", REQUEST
    )
    assert source_url == "gs://bucket/dir/audio.flac"


def test_recognition_config_mapping(backend):
    request = REQUEST.model_copy(
        update={
            "language_options": ("de-DE",),
            "enable_automatic_punctuation": True,
            "profanity_filter": True,
        }
    )
    config = backend.build_recognition_config(SOURCE, request)
    assert config.language_code == "en-US"
    assert list(config.alternative_language_codes) == ["de-DE"]
    assert config.enable_automatic_punctuation
    assert config.profanity_filter
    assert not config.enable_spoken_emojis
    assert config.encoding == speech.RecognitionConfig.AudioEncoding.MP3


def test_self_describing_formats_leave_encoding_unspecified(backend):
    config = backend.build_recognition_config("gs://bucket/a.flac", REQUEST)
    assert config.encoding == (
        speech.RecognitionConfig.AudioEncoding.ENCODING_UNSPECIFIED
    )


# --- Recognition ---

def test_best_alternative_of_each_result_joined(backend, speech_client):
    _, client = speech_client
    client.long_running_recognize.return_value.result.return_value = _response(
        [_alternative("hello", 0.9), _alternative("yellow", 0.4)],
        [_alternative(" world ", 0.8)],
        [],
    )
    result = backend.transcribe_direct(SOURCE, REQUEST)

    assert result.text == "hello world"
    assert result.provider == Provider.GCP
    audio = client.long_running_recognize.call_args.kwargs["audio"]
    assert audio.uri == SOURCE


def test_transcript_written_to_destination(backend, speech_client, storage, tmp_path):
    _, client = speech_client
    client.long_running_recognize.return_value.result.return_value = _response(
        [_alternative("hello", 0.9)]
    )
    destination = LocalFileLocation(path=str(tmp_path / "out.txt"))
    backend.transcribe_to_destination(SOURCE, destination, REQUEST)
    assert storage.writes == [(destination, b"hello")]


def test_max_wait_passed_as_timeout(backend, speech_client):
    _, client = speech_client
    operation = client.long_running_recognize.return_value
    operation.result.return_value = _response()
    backend.transcribe_direct(
        SOURCE, REQUEST.model_copy(update={"job_max_wait_ms": 2500})
    )
    operation.result.assert_called_once_with(timeout=2.5)


def test_timeout_raises_job_timeout(backend, speech_client):
    _, client = speech_client
    client.long_running_recognize.return_value.result.side_effect = (
        concurrent.futures.TimeoutError()
    )
    request = REQUEST.model_copy(update={"job_max_wait_ms": 10})
    with pytest.raises(JobTimeoutError):
        backend.transcribe_direct(SOURCE, request)


def test_api_error_wrapped(backend, speech_client):
    _, client = speech_client
    client.long_running_recognize.side_effect = google_exceptions.InvalidArgument(
        "bad audio"
    )
    with pytest.raises(InvocationError) as exc_info:
        backend.transcribe_direct(SOURCE, REQUEST)
    assert "bad audio" in str(exc_info.value)
