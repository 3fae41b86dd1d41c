"""
Request echo endpoint for wiring up n8n and the frontend.

Answers 404 unless ENABLE_DEBUG_ENDPOINTS is true.
"""
from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.config import settings
from app.dependencies.payload import read_raw_payload
from app.models.schemas import DebugEchoResponse, RequestDebugInfo

logger = logging.getLogger(__name__)


def require_debug_endpoints() -> None:
    """Hide the echo endpoint unless it is explicitly enabled."""
    if not settings.ENABLE_DEBUG_ENDPOINTS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")


router = APIRouter(dependencies=[Depends(require_debug_endpoints)])

# Never echoed back
_REDACTED_HEADERS = {"authorization", "cookie", "x-api-key"}


@router.post("/test", response_model=DebugEchoResponse)
async def echo_request(request: Request):
    """Report how the service decoded the request body."""
    content_type = request.headers.get("content-type", "none")
    try:
        body = await read_raw_payload(request)
        body_type = type(body).__name__
    except HTTPException as exc:
        body = exc.detail
        body_type = "error"

    headers = {
        key: ("<redacted>" if key.lower() in _REDACTED_HEADERS else value)
        for key, value in request.headers.items()
    }
    logger.info("Debug echo: method=%s content-type=%s body-type=%s", request.method, content_type, body_type)

    return DebugEchoResponse(
        success=True,
        debug=RequestDebugInfo(
            method=request.method,
            content_type=content_type,
            body_type=body_type,
            body_value=body,
            headers=headers,
            timestamp=datetime.now(timezone.utc),
            environment=settings.environment_name,
        ),
    )
