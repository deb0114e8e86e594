import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from bookheaven.config import settings
from bookheaven.errors import BookstoreError, StorageFailure

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, error: str | None = None, headers=None) -> JSONResponse:
    content = {"success": False, "message": message}
    if error is not None:
        content["error"] = error
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _internal_detail(cause: BaseException | None) -> str:
    if settings.expose_error_details and cause is not None:
        return str(cause)
    return "Something went wrong"


async def bookstore_error_handler(request: Request, exc: BookstoreError):
    if isinstance(exc, StorageFailure):
        logger.error(f"{request.method} {request.url.path} failed: {exc.cause}")
        return error_response(exc.status_code, exc.message, _internal_detail(exc.cause))

    return error_response(exc.status_code, exc.message, exc.code)


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"{request.method} {request.url.path} hit a storage error")
    return error_response(500, "Internal server error", _internal_detail(exc))


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail
    if exc.status_code == 404 and message == "Not Found":
        message = "Route not found"
    return error_response(exc.status_code, str(message), headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    )
    return error_response(400, "Invalid request", problems)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(500, "Internal server error", _internal_detail(exc))


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(BookstoreError, bookstore_error_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
