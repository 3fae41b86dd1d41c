"""
Shared fixtures for the statutory declaration service tests.

The app lifespan is not run by ASGITransport, so the PDF renderer and the
outbound HTTP client are supplied through dependency overrides: a recording
fake renderer and an httpx client backed by ``MockTransport``.
"""
from __future__ import annotations

from typing import AsyncGenerator, List, Optional

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.dependencies.clients import get_http_client, get_pdf_renderer
from app.main import app
from app.services.pdf_renderer import PageOptions, PdfRenderer

FAKE_PDF = b"%PDF-1.4\n% fake declaration\n%%EOF\n"


class FakePdfRenderer(PdfRenderer):
    """Records every render call; returns fixed bytes or raises *error*."""

    backend = "fake"

    def __init__(self, result: bytes = FAKE_PDF, error: Optional[Exception] = None) -> None:
        self.result = result
        self.error = error
        self.calls: List[str] = []

    async def render(self, html: str, options: PageOptions) -> bytes:
        self.calls.append(html)
        if self.error is not None:
            raise self.error
        return self.result


def _default_n8n_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"extracted": True})


# ---------------------------------------------------------------------------
# Per-test fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def pdf_renderer() -> FakePdfRenderer:
    return FakePdfRenderer()


@pytest.fixture
def n8n_requests() -> List[httpx.Request]:
    """Requests captured by the mocked n8n webhook."""
    return []


@pytest.fixture
def n8n_handler():
    """Override per test to change what the mocked n8n webhook answers."""
    return _default_n8n_handler


@pytest_asyncio.fixture
async def client(
    pdf_renderer: FakePdfRenderer,
    n8n_requests: List[httpx.Request],
    n8n_handler,
) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx AsyncClient wired to the FastAPI app with the renderer and the
    outbound client dependencies overridden.
    """

    def _record(request: httpx.Request) -> httpx.Response:
        n8n_requests.append(request)
        return n8n_handler(request)

    outbound = httpx.AsyncClient(transport=httpx.MockTransport(_record))
    app.dependency_overrides[get_pdf_renderer] = lambda: pdf_renderer
    app.dependency_overrides[get_http_client] = lambda: outbound

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    await outbound.aclose()


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

@pytest.fixture
def complete_payload() -> dict:
    return {
        "purchaser": {"name": "Jane Tan", "ic": "900101-10-1234"},
        "address": "1 Jalan X",
        "property": "Unit 5, Block A",
        "bank": "ABC Bank",
        "bankAddress": "HQ, KL",
        "branchAddress": "Branch, Klang",
        "facility": "Term Loan",
        "date": "2024-01-01",
    }
