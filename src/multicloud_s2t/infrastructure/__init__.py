"""Infrastructure layer exports."""

from .interfaces import Downloader, StorageTransfer, TranscriptionBackend
from .aws_transcribe import AwsTranscribeBackend
from .gcp_speech import GcpSpeechBackend
from .http_downloader import HttpDownloader
from .minio_storage import MinioStorageTransfer

__all__ = [
    "Downloader",
    "StorageTransfer",
    "TranscriptionBackend",
    "AwsTranscribeBackend",
    "GcpSpeechBackend",
    "HttpDownloader",
    "MinioStorageTransfer",
]
