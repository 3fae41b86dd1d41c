"""
Declaration pipeline: request body → record → validation → HTML → PDF.

``prepare_declaration`` is the pure part (normalize, validate, render).
``produce_document`` adds the optional PDF step, degrading to the rendered
HTML when the PDF backend cannot deliver.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Any, Optional, Union

from app.models.schemas import DeclarationRecord
from app.services.normalizer import normalize_payload
from app.services.pdf_renderer import PageOptions, PdfRenderer, RenderingUnavailableError
from app.services.template_renderer import DocumentTemplate, render_declaration
from app.services.validation import validate_record
from app.utils.helpers import safe_filename

logger = logging.getLogger(__name__)

PDF_FILENAME_SUFFIX = "_SD_Webhook.pdf"


class UnexpectedInternalError(RuntimeError):
    """Any pipeline failure other than missing fields or PDF unavailability."""


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class PreparedDeclaration:
    """A validated record and its rendered HTML."""

    record: DeclarationRecord
    html: str

    @property
    def pdf_filename(self) -> str:
        return safe_filename(self.record.first_purchaser().name, PDF_FILENAME_SUFFIX)


@dataclasses.dataclass(frozen=True)
class RenderedDocument:
    """Final response body: PDF bytes, or HTML when PDF was not produced."""

    content: Union[bytes, str]
    media_type: str
    filename: Optional[str] = None
    fallback_reason: Optional[str] = None

    @property
    def is_pdf(self) -> bool:
        return self.media_type == "application/pdf"


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def prepare_declaration(
    raw: Any,
    template: Optional[DocumentTemplate] = None,
) -> PreparedDeclaration:
    """
    Normalize, validate and render one request body.

    Raises:
        MissingFieldsError: the body lacks required fields
        UnexpectedInternalError: anything else went wrong
    """
    try:
        record = normalize_payload(raw)
    except Exception as exc:
        raise UnexpectedInternalError("Could not normalize the request payload") from exc

    validate_record(record)

    try:
        html = render_declaration(record, template)
    except Exception as exc:
        raise UnexpectedInternalError("Could not render the declaration template") from exc

    logger.info(
        "Prepared declaration for %d purchaser(s), facility=%r, date=%s",
        len(record.purchasers),
        record.facility,
        record.date,
    )
    return PreparedDeclaration(record=record, html=html)


async def render_pdf(
    prepared: PreparedDeclaration,
    renderer: PdfRenderer,
    options: PageOptions,
) -> RenderedDocument:
    """Strict PDF rendering; ``RenderingUnavailableError`` propagates."""
    pdf_bytes = await renderer.render(prepared.html, options)
    logger.info("Rendered %s (%d bytes) via %s", prepared.pdf_filename, len(pdf_bytes), renderer.backend)
    return RenderedDocument(
        content=pdf_bytes,
        media_type="application/pdf",
        filename=prepared.pdf_filename,
    )


async def produce_document(
    prepared: PreparedDeclaration,
    renderer: PdfRenderer,
    options: PageOptions,
    want_pdf: bool = True,
) -> RenderedDocument:
    """PDF when requested and possible, otherwise the rendered HTML."""
    if not want_pdf:
        return RenderedDocument(content=prepared.html, media_type="text/html")

    try:
        return await render_pdf(prepared, renderer, options)
    except RenderingUnavailableError as exc:
        logger.warning("PDF unavailable via %s, returning HTML: %s", renderer.backend, exc)
        return RenderedDocument(
            content=prepared.html,
            media_type="text/html",
            fallback_reason=str(exc),
        )
