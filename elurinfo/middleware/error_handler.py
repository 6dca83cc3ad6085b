"""
Exception handlers and error middleware.

Every error is logged with a short error id and its stack trace, and
returned to the client as a structured ErrorDetail JSON body.
"""
import hashlib
import json
import logging
import sys
import time
import traceback
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from elurinfo.exceptions import ElurInfoError

logger = logging.getLogger("elurinfo.middleware.error_handler")


class ErrorDetail:
    """Standardized error body."""

    def __init__(
        self,
        status_code: int,
        message: str,
        error_type: str,
        details: Optional[Any] = None
    ):
        self.status_code = status_code
        self.message = message
        self.error_type = error_type
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        """Convert the error to a dictionary."""
        error_dict = {
            "success": False,
            "status_code": self.status_code,
            "message": self.message,
            "error_type": self.error_type,
        }

        if self.details:
            error_dict["details"] = self.details

        return error_dict

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.to_dict())


def _error_id(request: Request) -> str:
    return hashlib.md5(f"{time.time()}-{request.url.path}".encode()).hexdigest()[:8]


def format_stack_trace(stack_trace: str) -> str:
    """Indent the stack trace so it reads as one block in the log."""
    lines = stack_trace.split('\n')
    formatted_lines = []
    for line in lines:
        if line.strip():
            formatted_lines.append(f"  │ {line}")

    return "\n".join(formatted_lines)


def _log_with_trace(message: str) -> None:
    stack_trace = "".join(traceback.format_exception(*sys.exc_info()))
    formatted_trace = format_stack_trace(stack_trace)
    logger.error(f"{message}\n╭─ Stack Trace ─────────────────────────╮\n{formatted_trace}\n╰───────────────────────────────────────╯")


async def error_handler_middleware(request: Request, call_next):
    """
    Middleware that catches exceptions escaping the exception handlers
    and returns a JSON error body.
    """
    try:
        return await call_next(request)
    except Exception as exc:
        error_id = _error_id(request)
        _log_with_trace(
            f"❌ ERR#{error_id}: {request.method} {request.url.path} - {exc.__class__.__name__}: {exc}"
        )
        return ErrorDetail(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="Algo salió mal",
            error_type=exc.__class__.__name__,
        ).to_response()


def setup_error_handlers(app):
    """
    Register the exception handlers on the FastAPI application.
    """
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request, exc):
        """Handler for HTTP exceptions."""
        error_id = _error_id(request)

        if exc.status_code >= 500:
            _log_with_trace(f"❌ HTTP#{error_id}: {request.method} {request.url.path} - {exc.status_code} - {exc.detail}")
        else:
            logger.warning(f"⚠️ HTTP#{error_id}: {exc.status_code} - {exc.detail}")

        return ErrorDetail(
            status_code=exc.status_code,
            message=str(exc.detail),
            error_type="http_exception",
        ).to_response()

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request, exc):
        """Handler for request validation errors."""
        error_id = _error_id(request)
        validation_errors = exc.errors()
        error_details_str = json.dumps(validation_errors, indent=2, default=str)

        logger.warning(
            f"⚠️ VALID#{error_id}: Validation error on {request.method} {request.url.path}\n"
            f"╭─ Validation Errors ──────────────────╮\n  │ {error_details_str}\n╰───────────────────────────────────────╯"
        )

        return ErrorDetail(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            message="Datos de entrada inválidos",
            error_type="validation_error",
            details=json.loads(error_details_str),
        ).to_response()

    @app.exception_handler(ElurInfoError)
    async def elurinfo_exception_handler(request, exc):
        """Handler for the ElurInfo error taxonomy."""
        error_id = _error_id(request)

        if exc.status_code >= 500:
            _log_with_trace(
                f"❌ EXC#{error_id}: {request.method} {request.url.path} - {exc.__class__.__name__}: {exc.message}"
            )
        else:
            logger.warning(f"⚠️ EXC#{error_id}: {exc.status_code} - {exc.message}")

        return ErrorDetail(
            status_code=exc.status_code,
            message=exc.message,
            error_type=exc.__class__.__name__,
        ).to_response()

    @app.exception_handler(Exception)
    async def generic_exception_handler(request, exc):
        """Handler for unexpected exceptions."""
        error_id = _error_id(request)
        _log_with_trace(
            f"❌ EXC#{error_id}: {request.method} {request.url.path} - {exc.__class__.__name__}: {exc}"
        )

        return ErrorDetail(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="Algo salió mal",
            error_type=exc.__class__.__name__,
        ).to_response()
