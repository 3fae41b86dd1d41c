"""
Request body decoding for declaration endpoints.

Accepts JSON, urlencoded and multipart bodies.  Form fields whose value is a
JSON object or array (e.g. ``purchasers``) are decoded so that form posts can
carry the same nested shapes as JSON posts.  Uploaded files are ignored.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict

from fastapi import HTTPException, Request, status
from starlette.datastructures import UploadFile

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def _decode_form_value(value: str) -> Any:
    stripped = value.strip()
    if stripped[:1] in ("{", "["):
        try:
            return json.loads(stripped)
        except ValueError:
            return value
    return value


async def _read_form(request: Request) -> Dict[str, Any]:
    form = await request.form()
    return {
        key: _decode_form_value(value)
        for key, value in form.multi_items()
        if not isinstance(value, UploadFile)
    }


async def read_raw_payload(request: Request) -> Any:
    """
    Decode the request body without imposing a shape.

    Raises:
        HTTPException 400: the body is absent or not decodable
    """
    content_type = request.headers.get("content-type", "").lower()

    if content_type.startswith(FORM_CONTENT_TYPES):
        payload: Any = await _read_form(request)
    else:
        body = await request.body()
        if not body.strip():
            payload = None
        else:
            try:
                payload = json.loads(body)
            except ValueError:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Request body must be valid JSON or form data.",
                )

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body is required.",
        )

    logger.debug("Decoded %s payload of type %s", content_type or "untyped", type(payload).__name__)
    return payload
