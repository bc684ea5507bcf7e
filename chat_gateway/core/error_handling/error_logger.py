"""
Error Logging Utility

Centralized error logging for consistent error lines across the gateway.
"""

from typing import Dict, Any, Optional

from .error_types import ErrorType, ErrorContext
from ..logging import logger


class ErrorLogger:
    """Единый логгер ошибок, использующий общую систему."""

    @staticmethod
    def log_error(
        error_type: ErrorType,
        context: ErrorContext,
        original_exception: Optional[Exception] = None,
        additional_data: Optional[Dict[str, Any]] = None,
        **format_kwargs
    ):
        """Логировать ошибку с использованием единой системы."""
        log_extra = context.to_log_extra()
        log_extra["error_code"] = error_type.code
        log_extra["http_status_code"] = error_type.status_code

        if additional_data:
            log_extra.update(additional_data)

        log_message = error_type.format_message(**{**context.__dict__, **format_kwargs})

        if original_exception:
            log_extra["original_exception"] = str(original_exception)
            log_extra["original_exception_type"] = type(original_exception).__name__
            logger.error(log_message, exc_info=True, **log_extra)
        else:
            logger.error(log_message, exc_info=False, **log_extra)
