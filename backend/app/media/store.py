"""Abstract RemoteStore interface.

Every remote object-storage back-end (S3, S3-compatible, test doubles, …)
implements this interface so the orchestrator stays provider-agnostic.
"""
from abc import ABC, abstractmethod

from .schemas import ResourceKind, UploadFolder, UploadResult


class RemoteStore(ABC):
    """Abstract base class for remote stores.

    Implementations perform exactly one attempt per call. Retrying and
    falling back are the orchestrator's job.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short provider name (used for logging)."""

    @abstractmethod
    async def upload(
        self,
        buffer: bytes,
        filename: str,
        folder: UploadFolder,
        resource_kind: ResourceKind = ResourceKind.AUTO,
        timeout: float = 60.0,
    ) -> UploadResult:
        """Upload *buffer* as *filename* under *folder*.

        Args:
            buffer: Payload bytes.
            filename: Original filename; its stem becomes the public id.
            folder: Target folder on the provider.
            resource_kind: Provider-side resource kind.
            timeout: Seconds to wait for the upload to complete.

        Returns:
            An ``UploadResult`` with ``is_fallback=False``.

        Raises:
            RemoteUploadError: On network error, timeout or provider rejection.
        """
