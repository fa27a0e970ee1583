"""Client-side error reporting endpoint."""

import json
import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Request
from pydantic import ValidationError
from starlette.responses import JSONResponse

from playground.api.schemas import ClientErrorReport

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

HTTP_METHOD_NOT_ALLOWED = 405


async def _read_report(request: Request) -> ClientErrorReport:
    try:
        payload = await request.json()
    except ValueError:
        return ClientErrorReport()
    if not isinstance(payload, dict):
        return ClientErrorReport()
    try:
        return ClientErrorReport.model_validate(payload)
    except ValidationError:
        logger.debug("Client error report did not match schema; logging headers only")
        return ClientErrorReport()


@router.post("/log-error")
async def log_error(request: Request) -> dict[str, bool]:
    """Record a browser error in the server log; always acknowledges."""
    report = await _read_report(request)
    entry = {
        "type": "client-error",
        "timestamp": datetime.now(UTC).isoformat(),
        "userAgent": report.user_agent or request.headers.get("user-agent"),
        "referer": request.headers.get("referer"),
        "url": report.url,
        "locale": report.locale,
        "message": report.message,
        "digest": report.digest,
        "stack": report.stack,
        "additional": report.additional,
    }
    logger.error("[AppError] %s", json.dumps(entry, default=str))
    return {"ok": True}


@router.get("/log-error")
async def log_error_get() -> JSONResponse:
    return JSONResponse({"error": "Method Not Allowed"}, status_code=HTTP_METHOD_NOT_ALLOWED)
