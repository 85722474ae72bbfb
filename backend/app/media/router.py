"""FastAPI router serving files kept by the local fallback store."""
import logging
import mimetypes

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from .orchestrator import get_upload_orchestrator

logger = logging.getLogger(__name__)

# Mounted by main.create_app() at the configured fallback URL prefix.
router = APIRouter(tags=["media"])


@router.get("/{filename}")
async def download_fallback_file(filename: str):
    """Download a fallback-stored file by name.

    Args:
        filename: Name from the fallback ``secure_url``.

    Returns:
        The file content with a guessed media type.

    Raises:
        HTTPException 503: If the upload pipeline is not initialised.
        HTTPException 404: If no such fallback file exists.
    """
    orchestrator = get_upload_orchestrator()
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Upload pipeline not initialised")

    file_path = orchestrator.fallback.path_for(filename)
    if file_path is None:
        raise HTTPException(status_code=404, detail="File not found")

    logger.debug("Serving fallback file %s", file_path)
    return FileResponse(
        path=file_path,
        filename=file_path.name,
        media_type=mimetypes.guess_type(file_path.name)[0] or "application/octet-stream",
    )
