"""AWS S3 remote store (works with any S3-compatible provider).

Streams the in-memory buffer to the bucket with ``s3:upload_fileobj``
(multipart for large payloads) and reads the stored object's metadata back
with ``head_object`` so the result reflects what the provider recorded.

Object layout
-------------
::

    <bucket>/<folder>/<filename>

The key is deterministic, so re-uploading the same filename overwrites the
existing object instead of creating a duplicate.
"""
import asyncio
import io
import logging
import mimetypes
from datetime import datetime, timezone
from typing import Optional

import boto3
from boto3.exceptions import Boto3Error
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .errors import RemoteUploadError
from .fallback import sanitize_filename
from .schemas import (
    ResourceKind,
    UploadFolder,
    UploadResult,
    resolve_resource_kind,
    split_extension,
)
from .store import RemoteStore

logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"
DEFAULT_TIMEOUT = 60.0

_RESOURCE_TYPE_METADATA_KEY = "resource-type"


class S3RemoteStore(RemoteStore):
    """Remote store backed by an S3 bucket.

    Args:
        bucket:                Target bucket name.
        region_name:           AWS region. Defaults to ``us-east-1``.
        endpoint_url:          Custom endpoint for S3-compatible providers.
        public_base_url:       Base of returned URLs (CDN, custom domain).
                               ``None`` → the bucket's virtual-host URL.
        aws_access_key_id:     AWS access key. ``None`` → default credential chain.
        aws_secret_access_key: AWS secret access key.
        aws_session_token:     Optional temporary-credential session token.
        timeout:               Connect/read timeout for botocore, in seconds.
    """

    def __init__(
        self,
        bucket: str,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        public_base_url: Optional[str] = None,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        aws_session_token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._bucket = bucket
        self._region = region_name or DEFAULT_REGION
        self._endpoint_url = endpoint_url
        self._public_base_url = public_base_url.rstrip("/") if public_base_url else None
        self._access_key = aws_access_key_id
        self._secret_key = aws_secret_access_key
        self._session_token = aws_session_token
        self._timeout = timeout
        self._client: Optional[object] = None

    # -----------------------------------------------------------------------
    # RemoteStore properties
    # -----------------------------------------------------------------------

    @property
    def name(self) -> str:
        return "s3"

    @property
    def bucket(self) -> str:
        return self._bucket

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    def _get_client(self) -> object:
        """Return a cached boto3 s3 client."""
        if self._client is None:
            kwargs: dict = {
                "region_name": self._region,
                # Retries belong to the orchestrator; botocore makes one attempt.
                "config": Config(
                    connect_timeout=self._timeout,
                    read_timeout=self._timeout,
                    retries={"max_attempts": 1, "mode": "standard"},
                ),
            }
            if self._endpoint_url:
                kwargs["endpoint_url"] = self._endpoint_url
            if self._access_key and self._secret_key:
                kwargs["aws_access_key_id"]     = self._access_key
                kwargs["aws_secret_access_key"] = self._secret_key
            if self._session_token:
                kwargs["aws_session_token"] = self._session_token

            self._client = boto3.client("s3", **kwargs)

        return self._client

    def object_key(self, filename: str, folder: UploadFolder) -> str:
        return f"{folder.value}/{sanitize_filename(filename)}"

    def object_url(self, key: str) -> str:
        if self._public_base_url:
            return f"{self._public_base_url}/{key}"
        if self._endpoint_url:
            return f"{self._endpoint_url.rstrip('/')}/{self._bucket}/{key}"
        return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{key}"

    def _put(self, buffer: bytes, key: str, kind: ResourceKind) -> dict:
        """Blocking upload + metadata read; runs in the default executor."""
        client = self._get_client()
        content_type = mimetypes.guess_type(key)[0] or "application/octet-stream"

        client.upload_fileobj(
            io.BytesIO(buffer),
            self._bucket,
            key,
            ExtraArgs={
                "ContentType": content_type,
                "Metadata": {_RESOURCE_TYPE_METADATA_KEY: kind.value},
            },
        )
        return client.head_object(Bucket=self._bucket, Key=key)

    # -----------------------------------------------------------------------
    # RemoteStore implementation
    # -----------------------------------------------------------------------

    async def upload(
        self,
        buffer: bytes,
        filename: str,
        folder: UploadFolder,
        resource_kind: ResourceKind = ResourceKind.AUTO,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> UploadResult:
        """Upload *buffer* to ``<bucket>/<folder>/<filename>`` in one attempt.

        Raises:
            RemoteUploadError: On timeout, botocore errors, or provider rejection.
        """
        kind = resolve_resource_kind(resource_kind, filename)
        key = self.object_key(filename, folder)

        logger.debug(
            "[media/s3] uploading key=%s (%d KB) kind=%s",
            key,
            round(len(buffer) / 1024),
            kind.value,
        )

        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            head = await asyncio.wait_for(
                loop.run_in_executor(
                    None, self._put, buffer, key, kind
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.error("[media/s3] upload timed out after %.1fs: %s", timeout, key)
            raise RemoteUploadError(
                f"Upload timed out after {timeout:.1f}s", filename=filename
            ) from exc
        except ClientError as exc:
            error = exc.response.get("Error", {})
            message = error.get("Message") or error.get("Code") or str(exc)
            logger.error("[media/s3] provider rejected %s: %s", key, message)
            raise RemoteUploadError(message, filename=filename) from exc
        except (Boto3Error, BotoCoreError) as exc:
            logger.error("[media/s3] upload error for %s: %s", key, exc)
            raise RemoteUploadError(str(exc), filename=filename) from exc

        elapsed_ms = (loop.time() - started) * 1000
        stem, extension = split_extension(sanitize_filename(filename))
        metadata = head.get("Metadata") or {}
        created_at = head.get("LastModified") or datetime.now(timezone.utc)

        logger.info("Upload successful: %s (took %dms)", key, elapsed_ms)

        return UploadResult(
            secure_url=self.object_url(key),
            public_id=stem,
            resource_type=metadata.get(_RESOURCE_TYPE_METADATA_KEY, kind.value),
            byte_size=int(head.get("ContentLength", len(buffer))),
            format=extension or "bin",
            created_at=created_at,
            is_fallback=False,
        )
