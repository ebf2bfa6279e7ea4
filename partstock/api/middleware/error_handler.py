"""
Error handling middleware.

Standardizes all API error responses to include:
- error_code: machine-readable identifier
- kind: error taxonomy bucket
- message: human-readable description
- hint: suggested recovery action
"""

import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from partstock.application.dto.responses import ErrorResponse
from partstock.config import get_logger
from partstock.core.exceptions import (
    BusinessRuleViolation,
    ConcurrencyError,
    ConfigurationError,
    NotFoundError,
    PartStockError,
    StorageError,
    StorageTimeoutError,
    ValidationError,
)

logger = get_logger(__name__)


# Map exceptions to HTTP status codes, most specific first
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    BusinessRuleViolation: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ConcurrencyError: status.HTTP_409_CONFLICT,
    StorageTimeoutError: status.HTTP_503_SERVICE_UNAVAILABLE,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ValueError: status.HTTP_400_BAD_REQUEST,
}

# Hint messages per error code / exception type
HINT_MAP: dict[str, str] = {
    "PART_NOT_FOUND": "Check the part ID and try GET /api/inventory/parts to list parts.",
    "ALERT_NOT_FOUND": "Check the alert ID and try GET /api/inventory/alerts?status=all.",
    "INVALID_QUANTITY": "Quantity must be a positive whole number.",
    "INVALID_OPERATION_TYPE": "Use one of IN, OUT, ADJUSTMENT, TRANSFER, DAMAGE, RETURN.",
    "INSUFFICIENT_STOCK": "Reduce the quantity or receive stock first.",
    "INVALID_STOCK_POLICY": "Set max_stock_level above min_stock_level.",
    "PART_INACTIVE": "The part was deactivated and no longer accepts stock movements.",
    "DUPLICATE_PART_NUMBER": "Use GET /api/inventory/parts?search=... to find the existing part.",
    "INVALID_ALERT_TRANSITION": "Only ACTIVE alerts can be acknowledged; only open alerts dismissed.",
    "CONCURRENT_MODIFICATION_CONFLICT": "The part is busy. Retry the request, ideally with the same idempotency_key.",
    "VERSION_CONFLICT": "The record changed while you edited it. Reload and retry.",
    "DATABASE_BUSY": "The database is busy. Retry shortly.",
    "STORAGE_TIMEOUT": "The adjustment timed out and was not confirmed. Re-read the part before retrying.",
    "IDEMPOTENCY_KEY_REUSED": "Use a fresh idempotency_key for a different adjustment.",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
    "DATABASE_ERROR": "A database operation failed. Check server logs.",
    "ValueError": "A parameter value is invalid. Check the request.",
}

# Default hints by HTTP status code
STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    404: "The requested resource was not found. Verify the ID.",
    409: "The resource was modified concurrently. Retry the request.",
    422: "The request could not be processed. Check the input format.",
    500: "An internal error occurred. Check server logs.",
    503: "The service is temporarily unavailable. Retry later.",
}


def _get_hint(error_code: str, status_code: int) -> str:
    """Resolve hint from error code, falling back to status-based hint."""
    return HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code, "")


def status_for(exc: Exception) -> int:
    """HTTP status for an exception."""
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def build_error_response(request: Request, exc: Exception) -> JSONResponse:
    """Convert exception to standardized JSON response."""
    status_code = status_for(exc)

    if isinstance(exc, PartStockError):
        error_code = exc.code
        kind = exc.kind
        message = exc.message
        details = exc.details or None
    else:
        error_code = exc.__class__.__name__
        kind = "InternalError"
        message = str(exc)
        details = None

    request_id = getattr(request.state, "request_id", None)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_failed",
        request_id=request_id,
        path=request.url.path,
        status_code=status_code,
        error_type=error_code,
        kind=kind,
        error=message,
        traceback=traceback.format_exc() if status_code >= 500 else None,
    )

    error_response = ErrorResponse(
        error_code=error_code,
        kind=kind,
        message=message,
        hint=_get_hint(error_code, status_code),
        details=details,
        path=request.url.path,
    )

    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json"),
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Converts exceptions that escaped the exception handlers to standardized
    JSON error responses.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Handle request with error catching."""
        try:
            return await call_next(request)

        except Exception as e:
            return build_error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Set up FastAPI exception handlers."""
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException

    @app.exception_handler(PartStockError)
    async def ledger_exception_handler(
        request: Request,
        exc: PartStockError,
    ) -> JSONResponse:
        """Handle domain errors."""
        return build_error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle Pydantic validation errors."""
        errors = []
        for error in exc.errors():
            loc = " -> ".join(str(part) for part in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(
                error_code="VALIDATION_ERROR",
                kind="ValidationError",
                message="Request validation failed",
                hint="Check the request body fields and types.",
                details={"errors": errors},
                path=request.url.path,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request,
        exc: HTTPException,
    ) -> JSONResponse:
        """Handle HTTP exceptions with standardized format."""
        error_code = _infer_error_code(exc.status_code)

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error_code=error_code,
                kind="HTTPError",
                message=exc.detail or "An error occurred",
                hint=_get_hint(error_code, exc.status_code),
                path=request.url.path,
            ).model_dump(mode="json"),
        )


def _infer_error_code(status_code: int) -> str:
    """Infer a machine-readable error code from an HTTP status."""
    return {
        400: "BAD_REQUEST",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        422: "UNPROCESSABLE_ENTITY",
    }.get(status_code, "HTTP_ERROR")
