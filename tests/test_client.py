import threading

import pytest

from multicloud_s2t.client import SpeechToTextClient
from multicloud_s2t.config import CredentialsHolder
from multicloud_s2t.domain.locations import LocalFileLocation, ObjectLocation
from multicloud_s2t.domain.models import Provider, TranscriptionRequest
from multicloud_s2t.exceptions import (
    CleanupError,
    CombinedError,
    InvocationError,
    ProviderSelectionError,
    StagingError,
)

REQUEST = TranscriptionRequest(language_code="en-US", temp_bucket="tmp-bucket")


# --- End to end ---

def test_local_file_transcribed_to_storage(client, storage, backends, audio_file):
    """A local source creates exactly one artifact, deleted after success."""
    client.transcribe(audio_file, "s3://out/result.txt", REQUEST)

    aws = backends[Provider.AWS]
    assert len(storage.uploads) == 1
    _, staged = storage.uploads[0]
    assert aws.invocations[0][0] == (
        f"https://tmp-bucket.s3.us-east-1.amazonaws.com/{staged.key}"
    )
    assert aws.created_regions == ["us-east-1"]
    destination = ObjectLocation(provider=Provider.AWS, bucket="out", key="result.txt")
    assert storage.writes == [(destination, b"hello world")]
    assert storage.deletes == [staged]


def test_selected_provider_reaches_backend(client, backends, audio_file):
    request = REQUEST.model_copy(update={"profanity_filter": True})
    client.transcribe(audio_file, "gs://out/result.txt", request)

    invoked = backends[Provider.GCP].invocations
    assert len(invoked) == 1
    assert invoked[0][1].provider == Provider.GCP
    assert invoked[0][1].region == "global"
    assert backends[Provider.AWS].invocations == []


def test_folder_destination_gets_generated_name(client, storage, audio_file):
    client.transcribe(audio_file, "s3://out/results/", REQUEST)
    location, _ = storage.writes[0]
    assert location.key.startswith("results/")
    assert location.key.endswith(".txt")


def test_local_directory_destination_gets_generated_name(
    client, storage, audio_file, tmp_path
):
    request = REQUEST.model_copy(update={"default_text_file_extension": "md"})
    client.transcribe(audio_file, str(tmp_path), request)
    location, _ = storage.writes[0]
    assert isinstance(location, LocalFileLocation)
    assert location.path.startswith(str(tmp_path))
    assert location.path.endswith(".md")


def test_remote_url_destination_rejected(client, audio_file):
    with pytest.raises(StagingError):
        client.transcribe(audio_file, "https://example.com/out.txt", REQUEST)


def test_pinned_region_used_for_client(client, backends):
    request = REQUEST.model_copy(update={"region": "eu-west-1"})
    source = "https://bucket.s3.eu-west-1.amazonaws.com/a.mp3"
    client.transcribe(source, "s3://out/r.txt", request)
    assert backends[Provider.AWS].created_regions == ["eu-west-1"]


def test_client_region_applies_only_to_matching_backend(
    storage, downloader, backends, audio_file
):
    """An AWS client region does not leak into GCP requests."""
    client = SpeechToTextClient(
        storage=storage,
        downloader=downloader,
        backend_factory=backends.__getitem__,
        region="eu-west-1",
    )
    try:
        gcp_request = REQUEST.model_copy(update={"profanity_filter": True})
        client.transcribe(audio_file, "gs://out/r.txt", gcp_request)
        client.transcribe(audio_file, "s3://out/r.txt", REQUEST)
    finally:
        client.close()

    assert backends[Provider.GCP].created_regions == ["global"]
    assert backends[Provider.AWS].created_regions == ["eu-west-1"]


# --- Failures ---

def test_invocation_failure_still_cleans_up(client, storage, backends, audio_file):
    backends[Provider.AWS].fail_with = InvocationError("aws", "boom")
    with pytest.raises(InvocationError):
        client.transcribe(audio_file, "s3://out/result.txt", REQUEST)
    assert len(storage.deletes) == 1


def test_invocation_and_cleanup_failure_combined(client, storage, backends, audio_file):
    backends[Provider.AWS].fail_with = InvocationError("aws", "boom")
    storage.fail_delete = True
    with pytest.raises(CombinedError) as exc_info:
        client.transcribe(audio_file, "s3://out/result.txt", REQUEST)

    errors = exc_info.value.errors
    assert isinstance(errors[0], InvocationError)
    assert isinstance(errors[1], CleanupError)


def test_cleanup_failure_after_success_raised(client, storage, audio_file):
    storage.fail_delete = True
    with pytest.raises(CleanupError):
        client.transcribe(audio_file, "s3://out/result.txt", REQUEST)
    assert len(storage.writes) == 1


def test_staging_failure_skips_backend(client, backends, audio_file):
    request = TranscriptionRequest(language_code="en-US")
    with pytest.raises(StagingError):
        client.transcribe(audio_file, "s3://out/result.txt", request)
    assert backends[Provider.AWS].invocations == []


def test_relocation_failure_skips_backend(client, storage, backends):
    storage.fail_copy = True
    request = REQUEST.model_copy(update={"region": "us-west-2"})
    source = "https://bucket.s3.eu-west-1.amazonaws.com/a.mp3"
    with pytest.raises(StagingError) as exc_info:
        client.transcribe(source, "s3://out/r.txt", request)

    assert exc_info.value.cause is not None
    assert backends[Provider.AWS].invocations == []
    assert storage.deletes == []


# --- Direct transcription ---

def test_direct_returns_future_with_text(client, audio_file):
    future = client.transcribe_direct(audio_file, REQUEST)
    result = future.result(timeout=5)
    assert result.text == "hello world"
    assert result.provider == Provider.AWS


def test_direct_failure_settles_future_with_error(client, backends, audio_file):
    backends[Provider.AWS].fail_with = InvocationError("aws", "boom")
    future = client.transcribe_direct(audio_file, REQUEST)
    with pytest.raises(InvocationError):
        future.result(timeout=5)


def test_direct_calls_run_concurrently(client, backends, storage, audio_file):
    futures = [client.transcribe_direct(audio_file, REQUEST) for _ in range(8)]
    results = [f.result(timeout=5) for f in futures]
    assert all(r.text == "hello world" for r in results)
    assert len(storage.deletes) == 8


# --- Backend cache ---

def test_backend_created_once_under_concurrency(client, factory_calls):
    barrier = threading.Barrier(8)

    def get():
        barrier.wait()
        client.get_backend(Provider.GCP)

    threads = [threading.Thread(target=get) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert factory_calls == [Provider.GCP]


def test_unspecified_backend_rejected(client):
    with pytest.raises(ProviderSelectionError):
        client.get_backend(Provider.UNSPECIFIED)


def test_is_provider_storage_url(client):
    assert client.is_provider_storage_url("s3://bucket/a.mp3")
    assert client.is_provider_storage_url("https://storage.googleapis.com/b/a.mp3")
    assert not client.is_provider_storage_url("https://example.com/a.mp3")


# --- Closing ---

def test_close_all_backends_aggregates_errors(client, backends):
    for provider in Provider.all():
        backend = client.get_backend(provider)
        backend.create_client(CredentialsHolder(), "r1")
        backends[provider].fail_close = True

    with pytest.raises(CombinedError) as exc_info:
        client.close_all_backends()
    assert len(exc_info.value.errors) == 2


def test_close_backend_closes_each_region(client, backends):
    backend = client.get_backend(Provider.AWS)
    backend.create_client(CredentialsHolder(), "us-east-1")
    backend.create_client(CredentialsHolder(), "eu-west-1")
    backend.create_client(CredentialsHolder(), "eu-west-1")

    client.close_backend(Provider.AWS)
    assert backends[Provider.AWS].created_regions == ["us-east-1", "eu-west-1"]
    assert backends[Provider.AWS].closed == 2


def test_close_releases_downloader(client, downloader):
    client.close()
    assert downloader.closed
