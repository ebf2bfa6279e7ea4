"""API middleware."""

from partstock.api.middleware.error_handler import ErrorHandlerMiddleware
from partstock.api.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware", "ErrorHandlerMiddleware"]
