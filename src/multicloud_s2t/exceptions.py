"""Custom exceptions for the speech-to-text orchestration layer."""


class S2TError(Exception):
    """Base class for every error raised by this package."""


class ProviderSelectionError(S2TError):
    """Raised when no backend supports the requested feature combination."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"No speech-to-text backend available: {reason}")


class StagingError(S2TError):
    """Raised when the source audio cannot be made readable for the backend."""

    def __init__(self, source: str, reason: str, cause: Exception | None = None):
        self.source = source
        self.reason = reason
        self.cause = cause
        super().__init__(f"Failed to stage source '{source}': {reason}")


class SourceNotFoundError(StagingError):
    """Raised when a local source path does not exist."""

    def __init__(self, source: str):
        super().__init__(source, "local file does not exist")


class StorageDownloadError(S2TError):
    """Raised when downloading a file from storage or a remote URL fails."""

    def __init__(self, location: str, cause: Exception | None = None):
        self.location = location
        self.cause = cause
        super().__init__(f"Failed to download '{location}'")


class StorageUploadError(S2TError):
    """Raised when uploading a file to storage fails."""

    def __init__(self, location: str, cause: Exception | None = None):
        self.location = location
        self.cause = cause
        super().__init__(f"Failed to upload '{location}' to storage")


class StorageCopyError(S2TError):
    """Raised when copying an object between storage locations fails."""

    def __init__(self, source: str, destination: str, cause: Exception | None = None):
        self.source = source
        self.destination = destination
        self.cause = cause
        super().__init__(f"Failed to copy '{source}' to '{destination}'")


class StorageDeleteError(S2TError):
    """Raised when deleting an object from storage fails."""

    def __init__(self, location: str, cause: Exception | None = None):
        self.location = location
        self.cause = cause
        super().__init__(f"Failed to delete '{location}' from storage")


class ClientCreationError(S2TError):
    """Raised when the vendor client of a backend cannot be constructed."""

    def __init__(self, provider: str, region: str, cause: Exception | None = None):
        self.provider = provider
        self.region = region
        self.cause = cause
        super().__init__(
            f"Error while creating {provider} speech-to-text client "
            f"in region '{region}'"
        )


class InvocationError(S2TError):
    """Raised when a backend rejects or fails a transcription request."""

    def __init__(self, provider: str, message: str, cause: Exception | None = None):
        self.provider = provider
        self.cause = cause
        super().__init__(f"{provider} transcription failed: {message}")


class TranscriptionJobFailedError(S2TError):
    """Raised when a submitted job terminates unsuccessfully."""

    def __init__(self, job_name: str, failure_reason: str | None):
        self.job_name = job_name
        self.failure_reason = failure_reason
        super().__init__(
            f"Transcription job '{job_name}' failed: "
            f"{failure_reason or 'unknown reason'}"
        )


class JobTimeoutError(S2TError):
    """Raised when a job does not reach a terminal state before its deadline."""

    def __init__(self, job_name: str, max_wait_ms: int):
        self.job_name = job_name
        self.max_wait_ms = max_wait_ms
        super().__init__(
            f"Transcription job '{job_name}' did not finish within {max_wait_ms} ms"
        )


class CleanupError(S2TError):
    """Raised when a staged artifact could not be deleted."""

    def __init__(self, location: str, cause: Exception | None = None):
        self.location = location
        self.cause = cause
        super().__init__(f"Failed to delete temporary artifact '{location}'")


class CombinedError(S2TError):
    """Aggregates several failures that must all reach the caller."""

    def __init__(self, errors: list[Exception]):
        self.errors = list(errors)
        details = "; ".join(str(e) for e in self.errors)
        super().__init__(f"{len(self.errors)} errors occurred: {details}")
