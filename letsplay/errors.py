"""
Error taxonomy and response envelope.

Every failure leaves the API as:
    {"timestamp": ..., "status": 404, "error": "Not Found",
     "message": "Product not found", "path": "/api/products/42"}
"""
from datetime import datetime
from http import HTTPStatus
from typing import Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from letsplay.base_service import BaseService

error_service = BaseService("errors")


class APIError(Exception):
    """Base class for failures that map to a fixed HTTP status."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        self.message = message or self.default_message
        self.headers = headers
        super().__init__(self.message)


class ValidationFailed(APIError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"


class Unauthenticated(APIError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"

    def __init__(self, message: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(message, headers or {"WWW-Authenticate": "Bearer"})


class Forbidden(APIError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class ResourceNotFound(APIError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class Conflict(APIError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


def error_response(
    status_code: int,
    message: str,
    path: str,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Build the error envelope for a status code."""
    content = {
        "timestamp": datetime.utcnow().isoformat(),
        "status": status_code,
        "error": HTTPStatus(status_code).phrase,
        "message": message,
        "path": path,
    }
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        # drop the "body"/"query" prefix
        location = ".".join(str(p) for p in err.get("loc", ())[1:])
        parts.append(f"{location}: {err.get('msg')}" if location else err.get("msg", ""))
    return "; ".join(parts) or ValidationFailed.default_message


async def api_error_handler(request: Request, exc: APIError):
    return error_response(exc.status_code, exc.message, request.url.path, exc.headers)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        _format_validation_errors(exc),
        request.url.path,
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(
        exc.status_code,
        str(exc.detail),
        request.url.path,
        getattr(exc, "headers", None),
    )


async def integrity_error_handler(request: Request, exc: IntegrityError):
    error_service.log_error(exc, context=f"Integrity violation on {request.url.path}")
    return error_response(status.HTTP_409_CONFLICT, Conflict.default_message, request.url.path)


async def unhandled_error_handler(request: Request, exc: Exception):
    error_service.log_error(exc, context=f"Unhandled error on {request.url.path}")
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        APIError.default_message,
        request.url.path,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
