from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Any, Optional

from inkshare.core.exceptions import InkShareError
from inkshare.core.logging import get_logger
from inkshare.schemas.response import ErrorResponse
from inkshare.core.config import settings

logger = get_logger(__name__)


def error_response(status_code: int, error: str, code: str, details: Optional[Any] = None) -> JSONResponse:
    body = ErrorResponse(error=error, code=code, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def add_exception_handlers(app: FastAPI):
    """
    Registers exception handlers with the FastAPI app.
    Every error leaves the HTTP surface as an ErrorResponse body.
    """
    @app.exception_handler(InkShareError)
    async def inkshare_exception_handler(request: Request, exc: InkShareError):
        logger.warning(f"{request.method} {request.url.path} -> {exc.code}: {exc.message}")
        return error_response(exc.status_code, exc.message, exc.code, exc.details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """
        Routing errors (404, 405...) raised by Starlette itself.
        """
        return error_response(exc.status_code, str(exc.detail), "HTTP_ERROR")

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """
        Malformed webhook bodies and other pydantic failures.
        """
        details = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
            for err in exc.errors()
        ]
        logger.info(f"Rejected malformed request to {request.url.path} ({len(details)} errors)")
        return error_response(422, "Input validation failed", "VALIDATION_ERROR", details)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception on {request.method} {request.url}: {exc}",
            exc_info=True
        )
        message = "An internal error occurred. Please try again later." if settings.is_production else str(exc)
        return error_response(500, message, "INTERNAL_ERROR")
