"""Exception hierarchy for the media upload pipeline.

Only ``UploadFailedError`` is meant to reach callers of the orchestrator;
the other errors are absorbed by the retry loop or the fallback path.
"""
from typing import Optional


class MediaUploadError(Exception):
    """Base class for upload pipeline errors."""


class RemoteUploadError(MediaUploadError):
    """A single remote upload attempt failed.

    Args:
        message: Provider (or transport) error message.
        filename: Name of the file being uploaded.
    """

    def __init__(self, message: str, filename: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.filename = filename


class FallbackWriteError(MediaUploadError):
    """The local fallback write failed (disk full, permission denied, ...)."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path


class UploadFailedError(MediaUploadError):
    """Terminal failure: every remote attempt and the local fallback failed."""

    def __init__(
        self,
        filename: str,
        remote_error: Optional[BaseException],
        local_error: BaseException,
    ) -> None:
        super().__init__(
            f"Failed to upload {filename} to remote storage ({remote_error}) "
            f"and failed to save locally: {local_error}"
        )
        self.filename = filename
        self.remote_error = remote_error
        self.local_error = local_error
