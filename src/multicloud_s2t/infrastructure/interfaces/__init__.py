"""Infrastructure interface exports."""

from .downloader import Downloader
from .storage import StorageTransfer
from .transcription_backend import TranscriptionBackend

__all__ = ["Downloader", "StorageTransfer", "TranscriptionBackend"]
