"""Exception handlers — every error becomes the same JSON envelope.

Learn: Services raise ProjectHubError subclasses that already know their
HTTP status. The handlers here turn those (plus FastAPI's own validation
and HTTP errors, plus anything unexpected) into:

    {"code": status * 10, "message": ..., "timestamp": ..., "path": ...}

Validation errors add an "errors" list with field-level detail.
Unexpected exceptions are logged and answered with a generic 500; their
text never reaches the client.
"""

from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from projecthub.errors import AuthenticationError, ProjectHubError, ValidationFailedError

logger = structlog.get_logger()


def error_body(
    status_code: int,
    message: str,
    path: str,
    errors: Optional[list[dict]] = None,
) -> dict:
    body = {
        "code": status_code * 10,
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": path,
    }
    if errors:
        body["errors"] = errors
    return body


async def handle_projecthub_error(request: Request, exc: ProjectHubError) -> JSONResponse:
    errors = exc.errors if isinstance(exc, ValidationFailedError) else None
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.message, request.url.path, errors),
        headers=headers,
    )


async def handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part != "body"),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=error_body(400, "Validation failed", request.url.path, errors),
    )


async def handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, str(exc.detail), request.url.path),
        headers=getattr(exc, "headers", None),
    )


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("api.unhandled_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=500,
        content=error_body(500, "Internal server error", request.url.path),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProjectHubError, handle_projecthub_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected)
