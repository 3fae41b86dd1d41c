"""
Relay for the n8n document-extraction webhook.

POST /webhook-proxy — forward an uploaded document (multipart) to n8n and
return its JSON answer wrapped as ``{"success": ..., "data": ...}``.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, status
from starlette.datastructures import UploadFile

from app.config import settings
from app.dependencies.clients import get_http_client
from app.models.schemas import ProxyResponse
from app.utils.helpers import truncate_text

logger = logging.getLogger(__name__)

router = APIRouter()

RAW_RESPONSE_LIMIT = 2000


def _check_size(request: Request) -> None:
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > settings.MAX_PROXY_PAYLOAD_SIZE:
        raise HTTPException(
            status_code=413,
            detail=(
                f"File too large. Maximum size is "
                f"{settings.MAX_PROXY_PAYLOAD_SIZE // (1024 * 1024)} MB."
            ),
        )


@router.post("/webhook-proxy", response_model=ProxyResponse)
async def webhook_proxy(
    request: Request,
    client: httpx.AsyncClient = Depends(get_http_client),
) -> ProxyResponse:
    """
    Forward a document upload to the n8n extraction workflow.

    - 413 when the body exceeds MAX_PROXY_PAYLOAD_SIZE (4 MB by default)
    - 503 when N8N_WEBHOOK_URL is not configured, 502 when n8n is unreachable
    - Non-2xx or non-JSON answers from n8n come back as ``success: false``
    """
    if not settings.N8N_WEBHOOK_URL:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="N8N_WEBHOOK_URL is not configured.",
        )
    _check_size(request)

    form = await request.form()
    data: Dict[str, str] = {}
    files: List[Tuple[str, Tuple[Any, bytes, Any]]] = []
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            files.append((key, (value.filename, await value.read(), value.content_type)))
        else:
            data[key] = value

    logger.info("Forwarding %d field(s) and %d file(s) to n8n", len(data), len(files))
    try:
        n8n_response = await client.post(
            settings.N8N_WEBHOOK_URL,
            data=data,
            files=files or None,
            timeout=settings.PROXY_TIMEOUT_SECONDS,
        )
    except httpx.HTTPError as exc:
        logger.error("n8n webhook unreachable: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"n8n webhook unreachable ({type(exc).__name__})",
        )

    raw_text = n8n_response.text
    logger.info("n8n responded %d (%d bytes)", n8n_response.status_code, len(raw_text))

    if not n8n_response.is_success:
        return ProxyResponse(
            success=False,
            error=f"N8N webhook error: {n8n_response.status_code}",
            status=n8n_response.status_code,
            raw_response=truncate_text(raw_text, RAW_RESPONSE_LIMIT),
        )

    try:
        payload = n8n_response.json()
    except ValueError:
        return ProxyResponse(
            success=False,
            error="Invalid JSON response from n8n",
            raw_response=truncate_text(raw_text, RAW_RESPONSE_LIMIT),
        )
    return ProxyResponse(success=True, data=payload)
