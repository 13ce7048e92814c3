"""Exception handlers rendering errors as ``{"message": ..., "errors": {...}}``."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from script_registry.modules.scripts.exceptions import (
    INVALID_DATA_MESSAGE,
    REQUIRED_MESSAGE,
    ScriptValidationError,
)

logger = logging.getLogger(__name__)

_REQUIRED_ERROR_TYPES = {"missing", "string_too_short"}


def _field_name(loc: tuple) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts) or "body"


def _validation_errors(exc: RequestValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        field = _field_name(tuple(error.get("loc", ())))
        if error.get("type") in _REQUIRED_ERROR_TYPES:
            message = REQUIRED_MESSAGE.format(field=field)
        else:
            message = error.get("msg", INVALID_DATA_MESSAGE)
        errors.setdefault(field, []).append(message)
    return errors


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = _validation_errors(exc)
    logger.info("Request validation failed on %s %s: %s", request.method, request.url.path, sorted(errors))
    return JSONResponse(
        status_code=422,
        content={"message": INVALID_DATA_MESSAGE, "errors": errors},
    )


async def script_validation_handler(request: Request, exc: ScriptValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"message": str(exc), "errors": exc.errors},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("HTTP %s on %s %s: %s", exc.status_code, request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def setup_error_handling(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ScriptValidationError, script_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
