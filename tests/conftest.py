import threading

import pytest

from multicloud_s2t.client import SpeechToTextClient
from multicloud_s2t.domain.locations import is_aws_url, is_gcs_url
from multicloud_s2t.domain.models import Provider, TranscriptionResult
from multicloud_s2t.exceptions import (
    StorageCopyError,
    StorageDeleteError,
    StorageDownloadError,
    StorageUploadError,
)
from multicloud_s2t.infrastructure.interfaces import (
    Downloader,
    StorageTransfer,
    TranscriptionBackend,
)


class FakeStorage(StorageTransfer):
    """In-memory storage recording every call."""

    def __init__(self, tmp_path):
        self._tmp_path = tmp_path
        self.objects: dict[str, bytes] = {}
        self.uploads = []
        self.downloads = []
        self.copies = []
        self.deletes = []
        self.writes = []
        self.fail_upload = False
        self.fail_download = False
        self.fail_copy = False
        self.fail_delete = False

    def upload_file(self, local_path, location):
        if self.fail_upload:
            raise StorageUploadError(str(location))
        self.uploads.append((local_path, location))
        with open(local_path, "rb") as f:
            self.objects[str(location)] = f.read()

    def download_file(self, location):
        if self.fail_download:
            raise StorageDownloadError(str(location))
        self.downloads.append(location)
        path = self._tmp_path / f"storage-{len(self.downloads)}-{location.key}"
        path.write_bytes(b"audio")
        return str(path)

    def read(self, location):
        return self.objects[str(location)]

    def write(self, location, data, content_type="text/plain"):
        self.writes.append((location, data))
        self.objects[str(location)] = data

    def copy(self, source, destination):
        if self.fail_copy:
            raise StorageCopyError(str(source), str(destination))
        self.copies.append((source, destination))
        self.objects[str(destination)] = self.objects.get(str(source), b"")

    def delete(self, location):
        if self.fail_delete:
            raise StorageDeleteError(str(location))
        self.deletes.append(location)
        self.objects.pop(str(location), None)


class FakeDownloader(Downloader):
    def __init__(self, tmp_path):
        self._tmp_path = tmp_path
        self.downloaded = []
        self.documents: dict[str, bytes] = {}
        self.closed = False

    def download_to_file(self, url):
        self.downloaded.append(url)
        path = self._tmp_path / f"download-{len(self.downloaded)}.mp3"
        path.write_bytes(b"audio")
        return str(path)

    def fetch(self, url):
        if url not in self.documents:
            raise StorageDownloadError(url)
        return self.documents[url]

    def close(self):
        self.closed = True


class FakeBackend(TranscriptionBackend):
    """Backend recording invocations and returning canned text."""

    def __init__(self, storage, provider=Provider.AWS, text="hello world"):
        self.provider = provider
        super().__init__(storage)
        self.text = text
        self.invocations = []
        self.created_regions = []
        self.closed = 0
        self.fail_with = None
        self.fail_close = False

    def _build_client(self, credentials, region):
        self.created_regions.append(region)
        return object()

    def _close_vendor_client(self, client):
        self.closed += 1
        if self.fail_close:
            raise RuntimeError("close failed")

    def owns_storage_url(self, url):
        if self.provider == Provider.AWS:
            return is_aws_url(url)
        return is_gcs_url(url)

    def transform_request(self, source_url, request):
        return source_url, request

    def transcribe_to_destination(self, source_url, destination, request):
        self._invoke(source_url, request)
        self._write_transcript(destination, self.text)

    def transcribe_direct(self, source_url, request):
        self._invoke(source_url, request)
        return TranscriptionResult(text=self.text, provider=self.provider)

    def _invoke(self, source_url, request):
        self._client_for(request)
        self.invocations.append((source_url, request))
        if self.fail_with is not None:
            raise self.fail_with


@pytest.fixture
def storage(tmp_path):
    return FakeStorage(tmp_path)


@pytest.fixture
def downloader(tmp_path):
    return FakeDownloader(tmp_path)


@pytest.fixture
def audio_file(tmp_path):
    path = tmp_path / "speech.mp3"
    path.write_bytes(b"audio")
    return str(path)


@pytest.fixture
def backends(storage):
    return {
        Provider.AWS: FakeBackend(storage, Provider.AWS),
        Provider.GCP: FakeBackend(storage, Provider.GCP),
    }


@pytest.fixture
def factory_calls():
    return []


@pytest.fixture
def client(storage, downloader, backends, factory_calls):
    lock = threading.Lock()

    def factory(provider):
        with lock:
            factory_calls.append(provider)
        return backends[provider]

    client = SpeechToTextClient(
        storage=storage,
        downloader=downloader,
        backend_factory=factory,
    )
    yield client
    client._executor.shutdown(wait=True)

