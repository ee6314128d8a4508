"""
Response Envelope

All API responses share one shape:
    {"success": true, "data": ...}
    {"success": false, "error": "..."}
"""

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException

from app.club.errors import ClubError


def success_response(data: Any = None, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    """Wrap a payload in the success envelope"""
    return JSONResponse(
        status_code=status_code,
        content={"success": True, "data": jsonable_encoder(data)}
    )


def error_response(message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    """Wrap an error message in the failure envelope (no data alongside)"""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message}
    )


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(loc)

    if first.get("type") == "missing" and field:
        return f"Missing required field: {field}"
    if field:
        return f"Invalid value for {field}: {first.get('msg', 'invalid')}"
    return first.get("msg", "Invalid request")


# =============================================
# Exception handlers
# =============================================

async def club_error_handler(request: Request, exc: ClubError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return error_response(exc.message, exc.status_code)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(_describe_validation_error(exc), status.HTTP_400_BAD_REQUEST)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return error_response(str(exc.detail), exc.status_code)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return error_response("Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    """Route every error path through the envelope"""
    app.add_exception_handler(ClubError, club_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
