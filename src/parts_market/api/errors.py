"""
parts_market.api.errors

HTTP rendering of application errors.

Responsibilities:
- Map `AppError` subclasses to `{error, message}` responses with their status.
- Map request-schema failures to 400 and unknown routes to 404 in the same shape.
- Log unexpected failures and hide their details from clients.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from parts_market.errors import AppError, Internal
from parts_market.observability.logging import get_logger

log = get_logger(__name__)


async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    if exc.status_code >= 500:
        log.warning("request_failed", error=exc.code, status_code=exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=headers)


async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": [str(p) for p in e.get("loc", ())], "message": str(e.get("msg", ""))}
        for e in exc.errors()
    ]
    message = errors[0]["message"] if errors else "Invalid request"
    return JSONResponse(
        status_code=400,
        content={"error": "invalid_request", "message": message, "details": {"errors": errors}},
    )


async def http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = "not_found" if exc.status_code == 404 else "http_error"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": code, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(_: Request, exc: Exception) -> JSONResponse:
    log.exception("unhandled_error", error_type=type(exc).__name__)
    return JSONResponse(status_code=500, content=Internal().to_body())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)


# --- Module Notes -----------------------------------------------------------
# Store-level exceptions never reach clients verbatim; they end as `internal`
# (unexpected) or `commit_failed` (order writes, see the order workflow).
