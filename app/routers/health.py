"""
Health check endpoint.
"""
from fastapi import APIRouter, Depends
from datetime import datetime, timezone
import logging

from app.config import settings
from app.dependencies.clients import get_pdf_renderer
from app.models.schemas import HealthCheckResponse
from app.services.pdf_renderer import PdfRenderer

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=HealthCheckResponse)
async def health_check(renderer: PdfRenderer = Depends(get_pdf_renderer)):
    """
    Health check endpoint to verify the service is up.

    Returns:
        HealthCheckResponse with the runtime environment and the PDF backend
        selected at startup
    """
    # "none" means documents are served as HTML only
    overall_status = "healthy" if renderer.backend != "none" else "degraded"

    return HealthCheckResponse(
        status=overall_status,
        environment=settings.environment_name,
        pdf_backend=renderer.backend,
        timestamp=datetime.now(timezone.utc),
    )
