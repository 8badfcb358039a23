"""JSON error envelope for the HTTP side of the server."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from snaproom.server.core.middleware_ex import REQUEST_ID_HEADER

LOGGER = logging.getLogger(__name__)


def error_response(
    request: Request, status: int, code: str, message: str, details: Any = None
) -> JSONResponse:
    body: dict[str, Any] = {"ok": False, "code": code, "message": message}
    if details is not None:
        body["details"] = details
    headers = {}
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        body["request_id"] = request_id
        headers[REQUEST_ID_HEADER] = request_id
    return JSONResponse(body, status_code=status, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        detail = exc.detail
        return error_response(
            request,
            exc.status_code,
            f"http_{exc.status_code}",
            str(detail) if detail else "Request failed",
            details=detail if isinstance(detail, (dict, list)) else None,
        )

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        error_id = uuid.uuid4().hex
        hub = getattr(request.app.state, "hub", None)
        LOGGER.error(
            "Unhandled exception [%s] on %s",
            error_id,
            request.url.path,
            exc_info=(type(exc), exc, exc.__traceback__),
            extra={
                "request_id": getattr(request.state, "request_id", None),
                "coordinator": hub.stats() if hub is not None else None,
            },
        )
        return error_response(
            request,
            500,
            "internal_error",
            "Internal server error",
            details={"error_id": error_id},
        )
