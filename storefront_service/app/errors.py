import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class StorefrontError(Exception):
    """Base error; rendered to clients as {"message": ...} with `status_code`."""
    status_code = 500
    message = "Internal server error"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidInput(StorefrontError):
    status_code = 400
    message = "Invalid input"


class Unauthorized(StorefrontError):
    status_code = 401
    message = "Access token required"


class Forbidden(StorefrontError):
    status_code = 403
    message = "Invalid or expired token"


class NotFound(StorefrontError):
    status_code = 404
    message = "Not found"


class Conflict(StorefrontError):
    status_code = 409
    message = "Already exists"


class PersistenceError(StorefrontError):
    """A write failed in the database; multi-statement writes are already rolled back."""
    status_code = 500
    message = "Database write failed"


class Unavailable(StorefrontError):
    status_code = 503
    message = "Database not available (demo mode)"


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    if location:
        return f"Invalid field '{location}': {first.get('msg')}"
    return str(first.get("msg"))


def register_error_handlers(app: FastAPI):
    """Every error leaves the API as a JSON object carrying a `message`."""

    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"message": _describe_validation_error(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("%s %s hit a database error: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"message": "Database error"})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("%s %s failed unexpectedly", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": StorefrontError.message})
