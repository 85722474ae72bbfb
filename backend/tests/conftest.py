"""Shared test fixtures and configuration for backend tests."""
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.media.errors import RemoteUploadError
from app.media.fallback import LocalFallbackStore
from app.media.orchestrator import UploadOrchestrator, set_upload_orchestrator
from app.media.schemas import ResourceKind, UploadFolder, UploadResult, split_extension
from app.media.store import RemoteStore


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------

class FlakyRemoteStore(RemoteStore):
    """Remote store that fails the first *failures* calls, then succeeds.

    ``failures=None`` fails forever.
    """

    def __init__(self, failures: Optional[int] = 0, message: str = "Upload timed out after 60.0s"):
        self.failures = failures
        self.message = message
        self.calls: List[dict] = []
        self.stored: dict = {}

    @property
    def name(self) -> str:
        return "flaky"

    async def upload(
        self,
        buffer: bytes,
        filename: str,
        folder: UploadFolder,
        resource_kind: ResourceKind = ResourceKind.AUTO,
        timeout: float = 60.0,
    ) -> UploadResult:
        self.calls.append(
            {"filename": filename, "folder": folder, "resource_kind": resource_kind, "timeout": timeout}
        )
        if self.failures is None or len(self.calls) <= self.failures:
            raise RemoteUploadError(self.message, filename=filename)

        key = f"{folder.value}/{filename}"
        self.stored[key] = buffer
        stem, extension = split_extension(filename)
        return UploadResult(
            secure_url=f"https://cdn.example.com/{key}",
            public_id=stem,
            resource_type=resource_kind.value,
            byte_size=len(buffer),
            format=extension or "bin",
        )


class RecordingSleep:
    """Async stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_pdf(text: str) -> bytes:
    """Build a minimal single-page PDF that shows *text* in Helvetica."""
    stream = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_offset = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n".encode()
    out += f"startxref\n{xref_offset}\n%%EOF\n".encode()
    return bytes(out)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def api_client():
    """Provide a TestClient for the main FastAPI app.

    The lifespan is not entered, so tests install their own orchestrator.
    """
    return TestClient(app)


@pytest.fixture
def fallback_store(tmp_path):
    """A LocalFallbackStore rooted in a per-test temporary directory."""
    store = LocalFallbackStore(root=str(tmp_path / "fallback"))
    store.ensure_root()
    return store


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def make_orchestrator(fallback_store, recording_sleep):
    """Factory: orchestrator over a FlakyRemoteStore failing *failures* times."""

    def _make(failures: Optional[int] = 0) -> UploadOrchestrator:
        return UploadOrchestrator(
            remote=FlakyRemoteStore(failures=failures),
            fallback=fallback_store,
            sleep=recording_sleep,
        )

    return _make


@pytest.fixture
def installed_orchestrator(make_orchestrator):
    """Install an orchestrator as the process-wide instance for one test."""
    orchestrator = make_orchestrator(failures=None)
    set_upload_orchestrator(orchestrator)
    yield orchestrator
    set_upload_orchestrator(None)
