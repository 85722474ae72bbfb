"""Resilient media upload pipeline.

Stores PDF documents, audio files and images in a remote object store
(S3 by default) with bounded retries, falling back to a local directory
when the remote store stays unavailable.

Components:
- RemoteStore / S3RemoteStore: single-attempt remote upload
- UploadOrchestrator: retry loop with linear backoff, then fallback
- LocalFallbackStore: durable local write, fallback-tagged results
- extract_text: best-effort PDF text extraction
"""
from .errors import FallbackWriteError, MediaUploadError, RemoteUploadError, UploadFailedError
from .extraction import extract_text, extract_text_async
from .fallback import LocalFallbackStore, sanitize_filename
from .orchestrator import UploadOrchestrator, get_upload_orchestrator, set_upload_orchestrator
from .s3 import S3RemoteStore
from .schemas import ResourceKind, RetryState, UploadFolder, UploadRequest, UploadResult
from .store import RemoteStore

__all__ = [
    "FallbackWriteError",
    "LocalFallbackStore",
    "MediaUploadError",
    "RemoteStore",
    "RemoteUploadError",
    "ResourceKind",
    "RetryState",
    "S3RemoteStore",
    "UploadFailedError",
    "UploadFolder",
    "UploadOrchestrator",
    "UploadRequest",
    "UploadResult",
    "extract_text",
    "extract_text_async",
    "get_upload_orchestrator",
    "sanitize_filename",
    "set_upload_orchestrator",
]
