"""
Main Error Handler

Creates standardized HTTPExceptions with proper logging.
"""

from typing import Optional
from fastapi import HTTPException

from .error_types import ErrorType, ErrorContext
from .error_logger import ErrorLogger
from ..exceptions import UpstreamError, UpstreamNetworkError


class ErrorHandler:
    """Centralized error handling utility."""

    @staticmethod
    def create_http_exception(
        error_type: ErrorType,
        context: Optional[ErrorContext] = None,
        original_exception: Optional[Exception] = None,
        log_error: bool = True,
        **format_kwargs
    ) -> HTTPException:
        """
        Create a standardized HTTPException with proper logging.

        Args:
            error_type: The type of error to create
            context: Error context information
            original_exception: Original exception that caused this error
            log_error: Whether to log the error
            **format_kwargs: Additional kwargs for message formatting

        Returns:
            HTTPException with standardized format
        """
        if context is None:
            context = ErrorContext()

        format_dict = {**context.__dict__, **format_kwargs}
        error_detail = error_type.create_error_detail(**format_dict)

        if log_error:
            ErrorLogger.log_error(
                error_type=error_type,
                context=context,
                original_exception=original_exception,
                additional_data={"error_detail": error_detail},
                **format_kwargs
            )

        return HTTPException(
            status_code=error_type.status_code,
            detail=error_detail
        )

    @staticmethod
    def handle_upstream_error(error: UpstreamError, context: ErrorContext) -> HTTPException:
        """Map an inference backend failure to a 502/503 response."""
        if isinstance(error, UpstreamNetworkError):
            return ErrorHandler.create_http_exception(
                error_type=ErrorType.UPSTREAM_NETWORK_ERROR,
                context=context,
                original_exception=error.original_exception,
                log_error=False,  # Already logged when raised
                error_details=error.message
            )

        http_exception = ErrorHandler.create_http_exception(
            error_type=ErrorType.UPSTREAM_HTTP_ERROR,
            context=context,
            log_error=False,
            error_details=error.message
        )
        if error.status_code:
            http_exception.detail["error"]["upstream_status"] = error.status_code
        return http_exception

    @staticmethod
    def handle_validation_error(error_details: str, context: ErrorContext) -> HTTPException:
        """Handle a malformed inbound request."""
        return ErrorHandler.create_http_exception(
            error_type=ErrorType.VALIDATION_ERROR,
            context=context,
            error_details=error_details
        )

    @staticmethod
    def handle_internal_server_error(
        error_details: str,
        context: ErrorContext,
        original_exception: Optional[Exception] = None
    ) -> HTTPException:
        """Handle internal server errors."""
        return ErrorHandler.create_http_exception(
            error_type=ErrorType.INTERNAL_SERVER_ERROR,
            context=context,
            original_exception=original_exception,
            error_details=error_details
        )
