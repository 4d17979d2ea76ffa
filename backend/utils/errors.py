# backend/utils/errors.py
import logging
from typing import Any, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Base class for domain failures that map onto a client-facing HTTP status."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Any]] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationFailed(StoreError):
    default_message = "Validation errors"


class NotFound(StoreError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


# No cart row exists for the user at all (as opposed to a missing line)
class CartNotFound(NotFound):
    default_message = "Cart not found"


class InsufficientStock(StoreError):
    default_message = "Insufficient stock available"


class EmptyCart(StoreError):
    default_message = "Cart is empty"


class CouponNotApplicable(StoreError):
    default_message = "Coupon cannot be applied"


class InvalidTransition(StoreError):
    default_message = "Order status change not allowed"


class Unauthorized(StoreError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not validate credentials"


class Forbidden(Unauthorized):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class AlreadyExists(StoreError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class ServerError(StoreError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"


def error_body(message: str, errors: Optional[List[Any]] = None) -> dict:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return body


async def store_error_handler(request: Request, exc: StoreError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.errors))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Flatten pydantic's error list into {field, message} pairs
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc), "message": err.get("msg", "Invalid value")})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Validation errors", errors),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
        message = "Route not found"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(ServerError.default_message),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
