"""Pydantic schemas for the media upload pipeline.

This module defines the data models shared by every store:
- UploadFolder: target folder/category chosen by the calling endpoint
- ResourceKind: provider-side handling class (raw, image, audio, auto)
- UploadRequest: validated caller input (buffer + naming metadata)
- UploadResult: uniform result returned by remote and fallback stores
- RetryState: per-call bookkeeping for the orchestrator's attempt loop
"""
import mimetypes
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import PurePosixPath
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class UploadFolder(str, Enum):
    """Storage folder, one per upload category."""
    DOCUMENTS = "documents"
    AUDIOS = "audios"
    PROFILES = "profiles"
    ROOM_IMAGES = "room_images"


class ResourceKind(str, Enum):
    """How the remote provider should treat the payload.

    AUTO lets the adapter infer the kind from the filename's MIME type.
    """
    RAW = "raw"
    IMAGE = "image"
    AUDIO = "audio"
    AUTO = "auto"


_FOLDER_DEFAULT_KIND = {
    UploadFolder.DOCUMENTS: ResourceKind.RAW,
    UploadFolder.AUDIOS: ResourceKind.AUDIO,
    UploadFolder.PROFILES: ResourceKind.IMAGE,
    UploadFolder.ROOM_IMAGES: ResourceKind.IMAGE,
}


def default_resource_kind(folder: UploadFolder) -> ResourceKind:
    """Return the resource kind normally used for *folder*."""
    return _FOLDER_DEFAULT_KIND.get(folder, ResourceKind.AUTO)


def resolve_resource_kind(kind: ResourceKind, filename: str) -> ResourceKind:
    """Resolve AUTO to a concrete kind using the filename's MIME type.

    Examples:
        >>> resolve_resource_kind(ResourceKind.AUTO, "clip.mp3")
        <ResourceKind.AUDIO: 'audio'>
        >>> resolve_resource_kind(ResourceKind.AUTO, "report.pdf")
        <ResourceKind.RAW: 'raw'>
    """
    if kind is not ResourceKind.AUTO:
        return kind
    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type:
        major = mime_type.split("/", 1)[0]
        if major == "image":
            return ResourceKind.IMAGE
        if major in ("audio", "video"):
            return ResourceKind.AUDIO
    return ResourceKind.RAW


def split_extension(filename: str) -> tuple[str, str]:
    """Split *filename* into (stem, extension without dot, original case)."""
    path = PurePosixPath(filename)
    return path.stem, path.suffix[1:]


class UploadRequest(BaseModel):
    """Caller-constructed upload input.

    Validation happens at construction, before the orchestrator is involved:
    an empty buffer, a blank filename or an unknown resource kind raise a
    ``pydantic.ValidationError``.
    """
    buffer: bytes = Field(..., description="Raw payload bytes")
    filename: str = Field(..., description="Original filename, used for naming only")
    folder: UploadFolder = Field(..., description="Target folder/category")
    resource_kind: Optional[ResourceKind] = Field(
        None, description="Provider resource kind; defaults from the folder"
    )

    @field_validator("buffer")
    @classmethod
    def _buffer_not_empty(cls, value: bytes) -> bytes:
        if not value:
            raise ValueError("buffer must not be empty")
        return value

    @field_validator("filename")
    @classmethod
    def _filename_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("filename must not be empty")
        return value

    @property
    def effective_kind(self) -> ResourceKind:
        if self.resource_kind is None:
            return default_resource_kind(self.folder)
        return self.resource_kind


class UploadResult(BaseModel):
    """Result of a stored upload, identical in shape for every store.

    ``is_fallback`` is True only when the Local Fallback Store produced the
    record; callers branch on it to schedule a later re-sync.
    """
    secure_url: str = Field(..., description="Public URL, or fallback-relative path")
    public_id: str = Field(..., description="Filename stem used as the asset id")
    resource_type: str = Field(..., description="Resource type as stored")
    byte_size: int = Field(..., description="Stored size in bytes")
    format: str = Field(..., description="File format (extension)")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Storage timestamp (UTC)",
    )
    is_fallback: bool = Field(False, description="True when stored locally")


@dataclass
class RetryState:
    """Attempt bookkeeping for a single orchestrator call."""
    attempts_made: int = 0
    last_error: Optional[Exception] = None
