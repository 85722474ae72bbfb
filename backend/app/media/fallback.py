"""Local fallback store.

Used only after every remote attempt has failed. Files are written to a
single directory, one file per upload, named by the sanitized original
filename:

    <fallback_dir>/<filename>

There is no index or manifest; the presence of a file is the only record.
Writing the same filename twice overwrites the previous file.
"""
import asyncio
import logging
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import quote

from .errors import FallbackWriteError
from .schemas import UploadResult, split_extension

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_DIR = "./uploads/fallback"
DEFAULT_URL_PREFIX = "/fallback/"
_PLACEHOLDER_NAME = "upload.bin"


def sanitize_filename(filename: str) -> str:
    """Reduce *filename* to a bare name with no directory components.

    Examples:
        >>> sanitize_filename("../../etc/passwd")
        'passwd'
        >>> sanitize_filename("C:\\\\temp\\\\clip.mp3")
        'clip.mp3'
    """
    name = PurePosixPath(filename.replace("\\", "/").replace("\x00", "")).name.strip()
    if name in ("", ".", ".."):
        return _PLACEHOLDER_NAME
    return name


class LocalFallbackStore:
    """Durable local store used when remote storage is unreachable.

    Args:
        root: Directory that receives fallback files.
        url_prefix: Namespace prefix of the returned ``secure_url``.
    """

    def __init__(
        self,
        root: str = DEFAULT_FALLBACK_DIR,
        url_prefix: str = DEFAULT_URL_PREFIX,
    ) -> None:
        self._root = Path(root)
        self._url_prefix = url_prefix

    @property
    def root(self) -> Path:
        return self._root

    @property
    def url_prefix(self) -> str:
        return self._url_prefix

    def ensure_root(self) -> None:
        """Create the fallback directory if absent. Safe to call concurrently."""
        self._root.mkdir(parents=True, exist_ok=True)

    def is_fallback_url(self, url: Optional[str]) -> bool:
        """Return True if *url* points at a fallback-stored file."""
        return bool(url) and url.startswith(self._url_prefix)

    def path_for(self, filename: str) -> Optional[Path]:
        """Return the on-disk path of a stored fallback file, or None."""
        file_path = self._root / sanitize_filename(filename)
        if not file_path.is_file():
            return None
        return file_path

    def _write(self, file_path: Path, buffer: bytes) -> None:
        self.ensure_root()
        file_path.write_bytes(buffer)

    async def save_locally(self, buffer: bytes, filename: str) -> UploadResult:
        """Write *buffer* to the fallback directory.

        Args:
            buffer: Payload bytes.
            filename: Original filename; sanitized before use.

        Returns:
            UploadResult with ``is_fallback=True`` and a prefix-relative URL.

        Raises:
            FallbackWriteError: If the filesystem write fails.
        """
        safe_name = sanitize_filename(filename)
        file_path = self._root / safe_name

        try:
            await asyncio.get_running_loop().run_in_executor(
                None, self._write, file_path, buffer
            )
        except OSError as exc:
            logger.error("Failed to save file locally at %s: %s", file_path, exc)
            raise FallbackWriteError(
                f"Failed to save file locally: {exc}", path=str(file_path)
            ) from exc

        logger.info("Fallback: file saved locally at %s (%d bytes)", file_path, len(buffer))

        stem, extension = split_extension(safe_name)
        return UploadResult(
            secure_url=f"{self._url_prefix}{quote(safe_name, safe='')}",
            public_id=stem,
            resource_type=extension or "raw",
            byte_size=len(buffer),
            format=extension or "bin",
            is_fallback=True,
        )
