"""
Statutory declaration endpoints.

POST /webhook       — n8n / form payload of any shape → PDF, or HTML fallback.
POST /generate-pdf  — ``{"extractedData": {...}}`` → PDF only (408 on timeout).
POST /pdf-filler    — typed frontend form → PDF, or HTML fallback.

Non-POST requests to these paths are answered with 405 by the router.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from fastapi.responses import HTMLResponse, Response

from app.config import settings
from app.dependencies.clients import get_pdf_renderer
from app.dependencies.payload import read_raw_payload
from app.models.schemas import DeclarationForm, ErrorResponse, MissingFieldsResponse
from app.services.declaration import (
    RenderedDocument,
    prepare_declaration,
    produce_document,
    render_pdf,
)
from app.services.pdf_renderer import (
    PageOptions,
    PdfRenderer,
    RenderingTimeoutError,
    RenderingUnavailableError,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: {"model": MissingFieldsResponse, "description": "Missing or unreadable declaration data"},
    500: {"model": ErrorResponse, "description": "Unexpected internal failure"},
}
_DOCUMENT_CONTENT: Dict[str, Any] = {
    "application/pdf": {},
    "text/html": {},
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def wants_pdf(output_format: Optional[str], accept: Optional[str]) -> bool:
    """
    Decide the output format.

    An explicit ``?format=`` wins; otherwise an ``Accept`` header asking for
    HTML but not PDF selects HTML; everything else gets a PDF.
    """
    if output_format:
        return output_format == "pdf"
    accept = (accept or "").lower()
    if "text/html" in accept and "application/pdf" not in accept:
        return False
    return True


def _document_response(document: RenderedDocument) -> Response:
    headers = {
        "X-Environment": settings.environment_name,
        "X-PDF-Available": "true" if document.is_pdf else "false",
    }
    if document.is_pdf:
        headers["Content-Disposition"] = f'attachment; filename="{document.filename}"'
        return Response(content=document.content, media_type="application/pdf", headers=headers)

    if document.fallback_reason:
        # Header values must be latin-1 and single-line
        reason = " ".join(document.fallback_reason.split())
        headers["X-PDF-Fallback-Reason"] = reason.encode("latin-1", "replace").decode("latin-1")
    return HTMLResponse(content=document.content, headers=headers)


async def _respond(
    raw: Any,
    renderer: PdfRenderer,
    output_format: Optional[str],
    accept: Optional[str],
) -> Response:
    prepared = prepare_declaration(raw)
    document = await produce_document(
        prepared,
        renderer,
        PageOptions.from_settings(settings),
        want_pdf=wants_pdf(output_format, accept),
    )
    return _document_response(document)


# ---------------------------------------------------------------------------
# POST /webhook
# ---------------------------------------------------------------------------

@router.post(
    "/webhook",
    response_class=Response,
    responses={200: {"content": _DOCUMENT_CONTENT}, **_ERROR_RESPONSES},
    summary="Generate a declaration from a webhook payload",
)
async def declaration_webhook(
    payload: Any = Depends(read_raw_payload),
    output_format: Optional[Literal["pdf", "html"]] = Query(None, alias="format"),
    accept: Optional[str] = Header(None),
    renderer: PdfRenderer = Depends(get_pdf_renderer),
) -> Response:
    """
    Accept a declaration payload in any of the supported shapes.

    - Field aliases and ``data``/``payload`` wrappers are normalised
    - 400 lists **every** missing field
    - Returns a PDF attachment, or the rendered HTML when PDF output is not
      requested or the PDF backend is unavailable (``X-PDF-Available: false``)
    """
    logger.info("Webhook received (%s)", type(payload).__name__)
    return await _respond(payload, renderer, output_format, accept)


# ---------------------------------------------------------------------------
# POST /generate-pdf
# ---------------------------------------------------------------------------

@router.post(
    "/generate-pdf",
    response_class=Response,
    responses={
        200: {"content": {"application/pdf": {}}},
        408: {"description": "PDF generation timeout"},
        503: {"description": "No PDF backend available"},
        **_ERROR_RESPONSES,
    },
    summary="Generate a declaration PDF from extracted data",
)
async def generate_pdf(
    payload: Any = Depends(read_raw_payload),
    renderer: PdfRenderer = Depends(get_pdf_renderer),
) -> Response:
    """
    Strict PDF generation for data already extracted by the n8n workflow.

    Unlike ``/webhook`` there is no HTML fallback: a timeout returns 408 and
    any other backend failure 503.
    """
    extracted = payload.get("extractedData") if isinstance(payload, dict) else None
    if not extracted:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing extractedData in request body.",
        )

    prepared = prepare_declaration(extracted)
    try:
        document = await render_pdf(prepared, renderer, PageOptions.from_settings(settings))
    except RenderingTimeoutError as exc:
        logger.error("PDF generation timed out: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_408_REQUEST_TIMEOUT,
            detail="PDF generation timeout",
        )
    except RenderingUnavailableError as exc:
        logger.error("PDF generation failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"PDF generation failed: {exc}",
        )
    return _document_response(document)


# ---------------------------------------------------------------------------
# POST /pdf-filler
# ---------------------------------------------------------------------------

@router.post(
    "/pdf-filler",
    response_class=Response,
    responses={200: {"content": _DOCUMENT_CONTENT}, **_ERROR_RESPONSES},
    summary="Generate a declaration from the frontend form",
)
async def pdf_filler(
    form: DeclarationForm,
    output_format: Optional[Literal["pdf", "html"]] = Query(None, alias="format"),
    accept: Optional[str] = Header(None),
    renderer: PdfRenderer = Depends(get_pdf_renderer),
) -> Response:
    """Render the form submitted by the frontend (canonical field names)."""
    raw = form.model_dump(by_alias=True, exclude_none=True)
    return await _respond(raw, renderer, output_format, accept)
