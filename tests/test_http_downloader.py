import os
import tempfile

import httpx
import pytest

from multicloud_s2t.exceptions import StorageDownloadError
from multicloud_s2t.infrastructure.http_downloader import HttpDownloader


def _downloader(handler):
    return HttpDownloader(httpx.Client(transport=httpx.MockTransport(handler)))


def test_download_to_file_streams_body():
    downloader = _downloader(lambda request: httpx.Response(200, content=b"audio"))
    path = downloader.download_to_file("https://example.com/a/speech.wav?x=1")
    try:
        assert path.endswith(".wav")
        with open(path, "rb") as f:
            assert f.read() == b"audio"
    finally:
        os.remove(path)


def test_download_http_error_wrapped_and_file_removed(tmp_path, monkeypatch):
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))
    downloader = _downloader(lambda request: httpx.Response(404))
    with pytest.raises(StorageDownloadError) as exc_info:
        downloader.download_to_file("https://example.com/missing.mp3")
    assert isinstance(exc_info.value.cause, httpx.HTTPStatusError)
    assert list(tmp_path.iterdir()) == []


def test_fetch_returns_body():
    downloader = _downloader(lambda request: httpx.Response(200, content=b"{}"))
    assert downloader.fetch("https://example.com/t.json") == b"{}"


def test_fetch_error_wrapped():
    downloader = _downloader(lambda request: httpx.Response(500))
    with pytest.raises(StorageDownloadError):
        downloader.fetch("https://example.com/t.json")


def test_close_closes_client():
    client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    HttpDownloader(client).close()
    assert client.is_closed
