"""
Error taxonomy shared by the services and the handlers that turn it into
the uniform `{"message": ..., "success": false}` response envelope.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ApiError):
    status_code = 404

    @classmethod
    def for_field(cls, resource: str, field: str, value) -> "NotFoundError":
        return cls(f"{resource} not found with {field}: {value}")


class ValidationError(ApiError):
    status_code = 400


class BusinessRuleError(ApiError):
    status_code = 400


class DuplicateError(ApiError):
    status_code = 409


class ConflictError(DuplicateError):
    """An item is already present where it may appear only once."""


class AuthenticationError(ApiError):
    status_code = 401


class AccessDeniedError(ApiError):
    status_code = 403


def envelope(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message, "success": False})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError):
        return envelope(exc.message, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
            message = f"{location}: {first.get('msg')}" if location else first.get("msg")
        else:
            message = "Invalid request"
        return envelope(message, 400)

    @app.exception_handler(DuplicateKeyError)
    async def handle_duplicate_key(request: Request, exc: DuplicateKeyError):
        return envelope("Duplicate value violates a unique constraint", 409)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return envelope(str(exc.detail), exc.status_code)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return envelope(str(exc) or exc.__class__.__name__, 500)
