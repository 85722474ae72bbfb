"""Best-effort PDF text extraction for document uploads.

Extraction is enrichment, not a precondition: a malformed or non-PDF
buffer yields ``None`` and never an exception.
"""
import asyncio
import io
import logging
from typing import Optional

from pypdf import PdfReader

logger = logging.getLogger(__name__)


def extract_text(buffer: bytes) -> Optional[str]:
    """Return the concatenated page text of a PDF *buffer*, or None on failure."""
    try:
        reader = PdfReader(io.BytesIO(buffer))
        pages = [page.extract_text() or "" for page in reader.pages]
    except Exception as exc:
        logger.error("Error extracting text from PDF: %s", exc, exc_info=True)
        return None

    logger.debug("Extracted text from %d PDF page(s)", len(pages))
    return "\n".join(pages)


async def extract_text_async(buffer: bytes) -> Optional[str]:
    """Run :func:`extract_text` in the default executor."""
    return await asyncio.get_running_loop().run_in_executor(None, extract_text, buffer)
