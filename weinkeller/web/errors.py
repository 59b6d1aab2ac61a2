"""Mapping of domain errors to JSON error responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from weinkeller.core.errors import NotFoundError, ValidationError, WeinkellerError

logger = logging.getLogger(__name__)

STATUS_BY_ERROR_TYPE = {
    ValidationError.error_type: 400,
    NotFoundError.error_type: 404,
}


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers producing ``{"error": message}`` bodies."""

    @app.exception_handler(WeinkellerError)
    async def handle_domain_error(request: Request, exc: WeinkellerError) -> JSONResponse:
        status_code = STATUS_BY_ERROR_TYPE.get(exc.error_type, 500)
        logger.warning(f"{request.method} {request.url.path} -> {status_code}: {exc.message}")
        return error_response(status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        message = _describe_validation(exc)
        logger.warning(f"{request.method} {request.url.path} -> 400: {message}")
        return error_response(400, message)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return error_response(500, "Internal Server Error")
