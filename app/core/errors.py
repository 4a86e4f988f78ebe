"""
Exception handlers: every error leaves the API as
{error, status_code, detail, path} plus code/context for domain errors.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from app.core.config import settings
from app.core.exceptions import AttendanceError

logger = logging.getLogger(__name__)

_JSON_SCALARS = (str, int, float, bool, type(None))


def _error_response(
    request: Request,
    status_code: int,
    detail: Any,
    extra: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content = {
        "error": True,
        "status_code": status_code,
        "detail": detail,
        "path": str(request.url.path),
    }
    if extra:
        content.update(extra)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def attendance_error_handler(request: Request, exc: AttendanceError) -> JSONResponse:
    """Domain errors carry a stable code and a context (record id, slot, field)."""
    if exc.status_code >= 500:
        logger.error("%s on %s: %s context=%s", exc.code, request.url.path, exc.message, exc.context)
    else:
        logger.info("%s on %s: %s", exc.code, request.url.path, exc.message)
    return _error_response(
        request,
        exc.status_code,
        exc.message,
        extra={"code": exc.code, "context": exc.context},
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(request, exc.status_code, exc.detail, headers=getattr(exc, "headers", None))


def _sanitize_validation_error(error: Dict[str, Any]) -> Dict[str, Any]:
    """Validation errors may hold exceptions or bytes in ctx/input; stringify them."""
    err = dict(error)
    if isinstance(err.get("ctx"), dict):
        err["ctx"] = {k: v if isinstance(v, _JSON_SCALARS) else str(v) for k, v in err["ctx"].items()}
    if "input" in err and not isinstance(err["input"], _JSON_SCALARS + (dict, list)):
        err["input"] = str(err["input"])
    return err


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """422 with field errors; details are withheld in production."""
    if settings.APP_ENV == "prod":
        return _error_response(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "Validation error: Invalid request data",
        )
    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error",
        extra={"errors": [_sanitize_validation_error(e) for e in exc.errors()]},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unexpected failures are logged with traceback; the response never includes it."""
    logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=True)
    detail = "Internal server error" if settings.APP_ENV == "prod" else str(exc)
    return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, detail)
