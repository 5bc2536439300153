from __future__ import annotations

import logging

from fastapi import APIRouter, Response

from ..schemas import HealthzResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


# PUBLIC_INTERFACE
@router.get("/healthz", response_model=HealthzResponse, summary="Health Check")
def healthz() -> Response:
    """
    Health check endpoint.

    Returns:
        A JSON object {"message": "OK"}. Encoding failures are logged and the
        response still answers 200.
    """
    body = b""
    try:
        body = HealthzResponse(message="OK").model_dump_json().encode("utf-8")
    except ValueError:
        logger.exception("Failed to encode health response")
    return Response(content=body, media_type="application/json", status_code=200)
