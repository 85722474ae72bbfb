"""UploadOrchestrator — retry-with-fallback layer over a RemoteStore.

Each call runs an explicit attempt loop against the remote store with
linear backoff (``retry_delay * attempts_made``). When every attempt has
failed the buffer is written to the LocalFallbackStore and the fallback
result is returned instead, so a remote outage never loses the payload.

A module-level singleton is initialised in ``app/main.py`` from config.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .errors import FallbackWriteError, UploadFailedError
from .fallback import LocalFallbackStore
from .schemas import (
    ResourceKind,
    RetryState,
    UploadFolder,
    UploadRequest,
    UploadResult,
    default_resource_kind,
)
from .store import RemoteStore

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
RETRY_DELAY = 2.0
DEFAULT_TIMEOUT = 60.0

# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_orchestrator: Optional["UploadOrchestrator"] = None


def get_upload_orchestrator() -> Optional["UploadOrchestrator"]:
    """Return the global UploadOrchestrator, or None if not yet initialised."""
    return _orchestrator


def set_upload_orchestrator(orchestrator: Optional["UploadOrchestrator"]) -> None:
    """Set (or replace) the global UploadOrchestrator instance."""
    global _orchestrator
    _orchestrator = orchestrator


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class UploadOrchestrator:
    """Uploads to a remote store with bounded retries and a local fallback.

    Args:
        remote: Remote store used for every attempt.
        fallback: Local store used once the remote attempts are exhausted.
        max_retries: Total number of remote attempts per call.
        retry_delay: Base backoff in seconds; the n-th retry waits ``n * retry_delay``.
        timeout: Per-attempt timeout passed to the remote store.
        sleep: Awaitable sleep function (injected by tests).
    """

    def __init__(
        self,
        remote: RemoteStore,
        fallback: LocalFallbackStore,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
        timeout: float = DEFAULT_TIMEOUT,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self._remote = remote
        self._fallback = fallback
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._timeout = timeout
        self._sleep = sleep

    @property
    def remote(self) -> RemoteStore:
        return self._remote

    @property
    def fallback(self) -> LocalFallbackStore:
        return self._fallback

    @property
    def max_retries(self) -> int:
        return self._max_retries

    def is_fallback_url(self, url: Optional[str]) -> bool:
        return self._fallback.is_fallback_url(url)

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    async def upload_with_resilience(
        self,
        buffer: bytes,
        filename: str,
        folder: UploadFolder,
        resource_kind: ResourceKind = ResourceKind.AUTO,
    ) -> UploadResult:
        """Upload *buffer*, retrying the remote store, then falling back locally.

        The buffer is assumed to be validated by the caller (see UploadRequest).

        Returns:
            The remote UploadResult, or the fallback one (``is_fallback=True``).

        Raises:
            UploadFailedError: Only if every remote attempt and the local
                               fallback write failed.
        """
        state = RetryState()

        while state.attempts_made < self._max_retries:
            try:
                return await self._remote.upload(
                    buffer,
                    filename,
                    folder,
                    resource_kind=resource_kind,
                    timeout=self._timeout,
                )
            except Exception as exc:
                state.last_error = exc
                state.attempts_made += 1
                logger.warning(
                    "%s upload failed (attempt %d/%d): %s",
                    self._remote.name,
                    state.attempts_made,
                    self._max_retries,
                    exc,
                )

            if state.attempts_made < self._max_retries:
                delay = self._retry_delay * state.attempts_made
                logger.debug("Retrying in %.1fs...", delay)
                await self._sleep(delay)

        logger.warning(
            "All %s upload attempts failed for %s. Saving file locally as fallback.",
            self._remote.name,
            filename,
        )
        try:
            return await self._fallback.save_locally(buffer, filename)
        except FallbackWriteError as exc:
            raise UploadFailedError(filename, state.last_error, exc) from exc

    async def upload(self, request: UploadRequest) -> UploadResult:
        """Upload a validated request using its folder and resource kind."""
        return await self.upload_with_resilience(
            request.buffer,
            request.filename,
            request.folder,
            resource_kind=request.effective_kind,
        )

    async def upload_document(self, buffer: bytes, filename: str) -> UploadResult:
        return await self._upload_category("document", buffer, filename, UploadFolder.DOCUMENTS)

    async def upload_audio(self, buffer: bytes, filename: str) -> UploadResult:
        return await self._upload_category("audio", buffer, filename, UploadFolder.AUDIOS)

    async def upload_profile(self, buffer: bytes, filename: str) -> UploadResult:
        return await self._upload_category("profile image", buffer, filename, UploadFolder.PROFILES)

    async def upload_room_image(self, buffer: bytes, filename: str) -> UploadResult:
        return await self._upload_category("room image", buffer, filename, UploadFolder.ROOM_IMAGES)

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    async def _upload_category(
        self,
        label: str,
        buffer: bytes,
        filename: str,
        folder: UploadFolder,
    ) -> UploadResult:
        logger.info("Uploading %s: %s (%d KB)", label, filename, round(len(buffer) / 1024))
        return await self.upload_with_resilience(
            buffer,
            filename,
            folder,
            resource_kind=default_resource_kind(folder),
        )
