"""
Dependencies exposing the long-lived handles built in the app lifespan.

The PDF renderer and the outbound HTTP client are constructed once at startup
and stored on ``app.state``; routes receive them through ``Depends`` so tests
can override them.
"""
from __future__ import annotations

import httpx
from fastapi import HTTPException, Request, status

from app.services.pdf_renderer import PdfRenderer


def get_pdf_renderer(request: Request) -> PdfRenderer:
    """Return the renderer selected at startup."""
    renderer = getattr(request.app.state, "pdf_renderer", None)
    if renderer is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="PDF renderer not initialised.",
        )
    return renderer


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Return the shared outbound HTTP client."""
    client = getattr(request.app.state, "http_client", None)
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="HTTP client not initialised.",
        )
    return client
