"""
Error responses

Maps failures to the JSON payloads the API returns:
client errors render as {"error": ...}, storage failures as
{"error": "Failed to <action>", "details": ...}.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

CONFIG_ERROR_MESSAGE = "Internal Server Error: Database URL misconfiguration"


class StorageError(Exception):
    """
    A database operation failed.

    Args:
        action: What was being attempted, e.g. "fetch posts"
        error: The underlying exception from the storage layer
    """

    def __init__(self, action: str, error: Exception):
        super().__init__(f"Failed to {action}: {error}")
        self.action = action
        self.error = error

    def to_response(self) -> dict:
        return {"error": f"Failed to {self.action}", "details": str(self.error)}


def error_response(message: str, status_code: int, details=None) -> JSONResponse:
    """Consistent error payloads across the API."""
    content = {"error": message}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def setup_error_handlers(app: FastAPI) -> None:
    """Register the exception handlers on a FastAPI app."""

    @app.exception_handler(StorageError)
    async def storage_exception_handler(request: Request, exc: StorageError):
        logger.error(
            "Error trying to %s on %s %s: %s: %s",
            exc.action,
            request.method,
            request.url.path,
            type(exc.error).__name__,
            exc.error,
            exc_info=exc.error,
        )
        body = exc.to_response()
        return error_response(
            body["error"],
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=body["details"],
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        detail = exc.detail
        message = (
            detail.get("error") if isinstance(detail, dict) else str(detail)
        ) or "Request failed."
        response = error_response(message, exc.status_code)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning("Invalid request body on %s: %s", request.url.path, exc.errors())
        return error_response(
            "Invalid request body",
            status.HTTP_400_BAD_REQUEST,
            details=jsonable_encoder(exc.errors()),
        )

    @app.exception_handler(Exception)
    async def unexpected_exception_handler(request: Request, exc: Exception):
        logger.exception("Unexpected error on %s", request.url.path, exc_info=exc)
        return error_response(
            "Internal server error",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


def setup_config_guard(app: FastAPI) -> None:
    """
    Refuse every request while the database is misconfigured.

    The check runs before routing, so even the liveness route answers 500.
    """

    @app.middleware("http")
    async def database_config_guard(request: Request, call_next):
        database = request.app.state.database
        if not database.configured:
            return PlainTextResponse(
                CONFIG_ERROR_MESSAGE,
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return await call_next(request)
