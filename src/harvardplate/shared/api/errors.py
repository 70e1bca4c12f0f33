from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from harvardplate.features.recipes.domain.parsing import ParseError
from harvardplate.shared.llm.openai_client import LLMUnavailableError

log = logging.getLogger("api")


class AppError(Exception):
    """An error with a known HTTP status, raised by route handlers and dependencies."""

    def __init__(self, message: str, status_code: int = 500, code: str = "APP_ERROR", details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details


def _body(error: str, code: str, details: Optional[Any] = None, **extra: Any) -> dict:
    body = {"error": error, "code": code}
    if details is not None:
        body["details"] = details
    body.update(extra)
    return body


def _validation_details(exc: RequestValidationError) -> list:
    out = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path", "header")]
        out.append({"field": ".".join(loc), "message": err.get("msg", "")})
    return out


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=_body(exc.message, exc.code, exc.details))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=_body("Invalid request data", "VALIDATION_ERROR", _validation_details(exc)),
    )


async def llm_unavailable_handler(request: Request, exc: LLMUnavailableError) -> JSONResponse:
    log.warning(f"{request.method} {request.url.path}: AI service unavailable: {exc}")
    return JSONResponse(
        status_code=503,
        content=_body("AI service is temporarily unavailable", "AI_SERVICE_UNAVAILABLE", message="Please try again later"),
    )


async def parse_error_handler(request: Request, exc: ParseError) -> JSONResponse:
    log.warning(f"{request.method} {request.url.path}: unusable model reply: {exc}")
    return JSONResponse(status_code=502, content=_body("AI service returned an invalid recipe", "AI_RESPONSE_INVALID"))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content=_body("Route not found", "NOT_FOUND", path=request.url.path))
    return JSONResponse(
        status_code=exc.status_code,
        content=_body(str(exc.detail), "HTTP_ERROR"),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception(f"{request.method} {request.url.path}: unhandled error")
    return JSONResponse(status_code=500, content=_body("Internal server error", "INTERNAL_ERROR"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(LLMUnavailableError, llm_unavailable_handler)
    app.add_exception_handler(ParseError, parse_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
