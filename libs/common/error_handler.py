"""Global exception handlers producing consistent JSON error bodies.

Domain errors expose ``message`` and ``status_code``; their message is safe
to return to the caller. Anything else is logged with its traceback and
answered with a generic message.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from libs.common.field_crypto import CryptoError
from libs.common.logging import get_logger

logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "Ralat dalaman pelayan"


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": message})


def add_exception_handlers(app: FastAPI, *domain_errors: type[Exception]) -> None:
    """Register handlers for the given domain error bases plus ``CryptoError``."""

    async def handle_domain_error(request: Request, exc: Exception) -> JSONResponse:
        status_code = getattr(exc, "status_code", 400)
        if status_code >= 500:
            logger.error(
                "%s on %s %s: %s",
                type(exc).__name__,
                request.method,
                request.url.path,
                exc,
                exc_info=exc.__cause__ or exc,
            )
        else:
            logger.info(
                "%s on %s %s: %s",
                type(exc).__name__,
                request.method,
                request.url.path,
                exc,
            )
        return _error_response(status_code, getattr(exc, "message", str(exc)))

    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
        )
        return _error_response(500, GENERIC_ERROR_MESSAGE)

    for error_cls in (*domain_errors, CryptoError):
        app.add_exception_handler(error_cls, handle_domain_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
